"""
Command-line interface for vendorbuild.

This module provides the `vendorbuild` CLI tool, invoked by a host build
system to vendor the native dependencies into its output directory.
"""

import argparse
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from vendorbuild import __version__
from vendorbuild.build.bindings import is_module_name
from vendorbuild.build.capabilities import CapabilityError, CapabilitySet
from vendorbuild.build.canvas_pipeline import canvas_translator, link_mode_arguments
from vendorbuild.build.errors import PipelineStageError
from vendorbuild.build.linker import DEFAULT_DIRECTIVE_PREFIX, LinkEmitter
from vendorbuild.build.orchestrator import Orchestrator
from vendorbuild.build.pipeline import PipelineError
from vendorbuild.cli_utils import ErrorFormatter, PathValidator, setup_logging
from vendorbuild.config import (
    BuildContext,
    BuildContextError,
    LinkMode,
    VendorConfig,
    VendorConfigError,
)
from vendorbuild.packages.cache import PathResolver
from vendorbuild.packages.platform_utils import Platform, PlatformDetector, PlatformError
from vendorbuild.packages.targets import DEFAULT_TARGETS, TargetError

CONFIG_ERRORS = (
    VendorConfigError,
    BuildContextError,
    PlatformError,
    TargetError,
    CapabilityError,
)


@dataclass
class RunArgs:
    """Arguments for the run command."""

    project_dir: Path
    out_dir: Optional[Path] = None
    features: List[str] = field(default_factory=list)
    link_mode: Optional[str] = None
    platform: Optional[str] = None
    jobs: Optional[int] = None
    directive_prefix: Optional[str] = None
    type_prefix: Optional[str] = None
    verbose: bool = False


@dataclass
class ConfigureArgs:
    """Arguments for the args command."""

    project_dir: Path
    features: List[str] = field(default_factory=list)
    link_mode: Optional[str] = None
    platform: Optional[str] = None


def load_config(project_dir: Path) -> Optional[VendorConfig]:
    """Load vendorbuild.ini from the project directory, if there is one."""
    return VendorConfig.find(project_dir)


def resolve_features(cli_features: List[str], config: Optional[VendorConfig]) -> CapabilitySet:
    """Capability toggles from the ini file and the command line."""
    names = list(config.get_features()) if config else []
    for value in cli_features:
        names.extend(CapabilitySet.parse_list(value))
    return CapabilitySet.from_names(names)


def resolve_link_mode(cli_value: Optional[str], config: Optional[VendorConfig]) -> LinkMode:
    value = cli_value or (config.get("link_mode") if config else None)
    return LinkMode.from_string(value) if value else LinkMode.STATIC


def resolve_platform(cli_value: Optional[str]) -> Platform:
    return Platform.from_string(cli_value) if cli_value else PlatformDetector.detect()


def resolve_output_dir(
    args: RunArgs,
    config: Optional[VendorConfig],
    environ: Mapping[str, str],
) -> Optional[Path]:
    """Output directory by precedence: --out-dir, then $OUT_DIR, then the ini file.

    Returns None when the environment should supply it.
    """
    if args.out_dir is not None:
        return args.out_dir
    if environ.get("OUT_DIR", "").strip():
        return None
    ini_value = config.get("out_dir") if config else None
    if ini_value:
        path = Path(ini_value)
        return path if path.is_absolute() else args.project_dir / path
    return None


def create_context(
    args: RunArgs,
    config: Optional[VendorConfig],
    environ: Optional[Mapping[str, str]] = None,
) -> BuildContext:
    """Build the context for a run from the command line, environment and ini file.

    Raises:
        BuildContextError: If no output directory is configured
        VendorConfigError: If the ini file holds invalid values
    """
    environ = os.environ if environ is None else environ
    jobs = args.jobs if args.jobs is not None else (config.get_jobs() if config else None)
    if jobs is not None and jobs < 1:
        raise BuildContextError(f"--jobs must be at least 1, got {jobs}")

    return BuildContext.from_environment(
        environ=environ,
        output_dir=resolve_output_dir(args, config, environ),
        features=resolve_features(args.features, config),
        platform=resolve_platform(args.platform),
        link_mode=resolve_link_mode(args.link_mode, config),
        jobs=jobs,
    )


def run_command(args: RunArgs) -> None:
    """Vendor the native dependencies into the output directory.

    Examples:
        vendorbuild run                           # Use $OUT_DIR and vendorbuild.ini
        vendorbuild run --out-dir build/native    # Explicit output directory
        vendorbuild run -f x11,ncurses            # Enable canvas capabilities
        vendorbuild run --link-mode dynamic       # Link libcaca dynamically
    """
    try:
        config = load_config(args.project_dir)
        targets = config.apply_target_overrides(DEFAULT_TARGETS) if config else dict(DEFAULT_TARGETS)
        context = create_context(args, config)

        directive_prefix = args.directive_prefix or (
            config.get("directive_prefix", DEFAULT_DIRECTIVE_PREFIX) if config else DEFAULT_DIRECTIVE_PREFIX
        )
        type_prefix = args.type_prefix or (config.get("type_prefix") if config else None)
        if type_prefix is not None and not is_module_name(type_prefix):
            raise VendorConfigError(f"type_prefix must be a Python module name, got '{type_prefix}'")
        bindings_name = config.get("bindings", "bindings.py") if config else "bindings.py"

        setup_logging(PathResolver(context.output_dir).log_path, args.verbose)

        orchestrator = Orchestrator(
            context,
            emitter=LinkEmitter(prefix=directive_prefix),
            targets=targets,
            type_prefix=type_prefix,
            bindings_name=bindings_name,
            show_progress=sys.stderr.isatty(),
        )
        result = orchestrator.run()

        ErrorFormatter.print_success("Vendored build successful!")
        print(f"Prefix: {orchestrator.resolver.prefix.root}", file=sys.stderr)
        print(f"Bindings: {result.bindings_path}", file=sys.stderr)
        print(f"Build time: {result.build_time:.2f}s", file=sys.stderr)
        sys.exit(0)

    except CONFIG_ERRORS as e:
        ErrorFormatter.handle_config_error(e)
    except (PipelineStageError, PipelineError) as e:
        ErrorFormatter.handle_stage_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def args_command(args: ConfigureArgs) -> None:
    """Print the libcaca configure arguments without building anything.

    Examples:
        vendorbuild args -f x11                   # Arguments for this host
        vendorbuild args -f x11 --platform macos  # Arguments for macOS
    """
    try:
        config = load_config(args.project_dir)
        features = resolve_features(args.features, config)
        arguments = link_mode_arguments(resolve_link_mode(args.link_mode, config))
        arguments += canvas_translator().translate(features, resolve_platform(args.platform))
        for argument in arguments:
            print(argument)
        sys.exit(0)

    except CONFIG_ERRORS as e:
        ErrorFormatter.handle_config_error(e)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory holding vendorbuild.ini (default: current directory)",
    )
    parser.add_argument(
        "-f",
        "--features",
        action="append",
        default=[],
        help="Capabilities to enable, comma separated (repeatable)",
    )
    parser.add_argument(
        "--link-mode",
        choices=[mode.value for mode in LinkMode],
        default=None,
        help="Build libcaca statically or link it dynamically (default: static)",
    )
    parser.add_argument(
        "--platform",
        default=None,
        help="Target platform: windows, macos or unix (default: host platform)",
    )


def main() -> None:
    """vendorbuild - reproducible vendored builds of native dependencies."""
    parser = argparse.ArgumentParser(
        prog="vendorbuild",
        description="vendorbuild - reproducible vendored builds of native dependencies",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vendorbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Fetch, build and install the vendored dependencies",
    )
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=None,
        help="Output directory (default: $OUT_DIR, then out_dir from vendorbuild.ini)",
    )
    run_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Parallel compile jobs (default: logical CPU count)",
    )
    run_parser.add_argument(
        "--directive-prefix",
        default=None,
        help=f"Prefix for link directives (default: {DEFAULT_DIRECTIVE_PREFIX})",
    )
    run_parser.add_argument(
        "--type-prefix",
        default=None,
        help="Module name for the generated cffi bindings (default: bindings file name)",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Args command
    args_parser = subparsers.add_parser(
        "args",
        help="Print the libcaca configure arguments for a feature set",
    )
    _add_common_arguments(args_parser)

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    # Validate project directory exists
    PathValidator.validate_project_dir(parsed_args.project_dir)

    # Execute command
    if parsed_args.command == "run":
        run_args = RunArgs(
            project_dir=parsed_args.project_dir,
            out_dir=parsed_args.out_dir,
            features=parsed_args.features,
            link_mode=parsed_args.link_mode,
            platform=parsed_args.platform,
            jobs=parsed_args.jobs,
            directive_prefix=parsed_args.directive_prefix,
            type_prefix=parsed_args.type_prefix,
            verbose=parsed_args.verbose,
        )
        run_command(run_args)
    elif parsed_args.command == "args":
        configure_args = ConfigureArgs(
            project_dir=parsed_args.project_dir,
            features=parsed_args.features,
            link_mode=parsed_args.link_mode,
            platform=parsed_args.platform,
        )
        args_command(configure_args)


if __name__ == "__main__":
    main()

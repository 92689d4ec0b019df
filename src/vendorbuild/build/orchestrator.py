"""
Build orchestration for vendored native dependencies.

This module runs the whole vendoring session, one stage after another:
- Prepare the isolated prefix under the output directory
- Point compiler/linker flags at the prefix
- Build and install zlib-ng (CMake, static)
- Build and install libcaca (autotools, caller-selected features)
- Generate the binding module from the installed libcaca headers

Targets are never built concurrently: both install into the same prefix.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..config.build_context import BuildContext
from ..packages.cache import PathResolver
from ..packages.source_fetcher import SourceFetcher
from ..packages.targets import DEFAULT_TARGETS, BuildTarget
from .bindings import BindingGenerator
from .canvas_pipeline import CanvasPipeline
from .command_runner import CommandRunner, SubprocessRunner
from .compression_pipeline import CompressionPipeline
from .linker import LinkEmitter
from .pipeline import PipelineResult

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a complete vendoring session."""

    context: BuildContext
    results: List[PipelineResult] = field(default_factory=list)
    directives: List[str] = field(default_factory=list)
    bindings_path: Optional[Path] = None
    build_time: float = 0.0


class Orchestrator:
    """
    Runs both pipelines and the binding generator in order.

    Example usage:
        context = BuildContext.from_environment()
        result = Orchestrator(context).run()
        print(result.bindings_path)

    Any stage failure propagates unchanged; nothing after it runs.
    """

    def __init__(
        self,
        context: BuildContext,
        runner: Optional[CommandRunner] = None,
        emitter: Optional[LinkEmitter] = None,
        targets: Optional[Dict[str, BuildTarget]] = None,
        type_prefix: Optional[str] = None,
        bindings_name: str = "bindings.py",
        show_progress: bool = True,
    ):
        """Initialize orchestrator.

        Args:
            context: Build context read from the environment
            runner: Runner for external tools (defaults to SubprocessRunner)
            emitter: Link directive emitter (defaults to cargo-style on stdout)
            targets: Pinned targets keyed by name (defaults to DEFAULT_TARGETS)
            type_prefix: Module name cffi registers the binding types under
            bindings_name: File name of the generated bindings
            show_progress: Show download progress for archive pins
        """
        self.context = context
        self.runner = runner or SubprocessRunner()
        self.emitter = emitter or LinkEmitter()
        self.targets = dict(targets or DEFAULT_TARGETS)
        self.type_prefix = type_prefix
        self.resolver = PathResolver(context.output_dir, bindings_name=bindings_name)
        self.fetcher = SourceFetcher(
            self.resolver,
            self.runner,
            show_progress=show_progress,
        )

    def run(self) -> BuildResult:
        """Run the full session.

        Returns:
            BuildResult with the final context, per-target results and bindings path

        Raises:
            PipelineStageError: If any stage of any target fails
        """
        start_time = time.time()

        # Phase 1: Prefix
        logger.info("[1/4] Preparing %s", self.resolver.prefix.root)
        self.resolver.ensure_directories()
        context = self.context.with_prefix_flags(self.resolver.prefix.root)
        result = BuildResult(context=context)

        # Phase 2: zlib-ng
        logger.info("[2/4] Building %s", self.targets["zlib-ng"].name)
        compression = CompressionPipeline(
            self.targets["zlib-ng"],
            context,
            self.resolver,
            self.runner,
            self.fetcher,
            self.emitter,
        )
        result.results.append(compression.run())

        # Phase 3: libcaca
        logger.info("[3/4] Building %s", self.targets["libcaca"].name)
        canvas = CanvasPipeline(
            self.targets["libcaca"],
            context,
            self.resolver,
            self.runner,
            self.fetcher,
            self.emitter,
        )
        result.results.append(canvas.run())

        # Phase 4: Bindings
        logger.info("[4/4] Generating bindings")
        generator = BindingGenerator(self.resolver, self.runner, env=context.child_env())
        result.bindings_path = generator.generate(canvas.binding_spec(self.type_prefix))

        result.directives = [line for r in result.results for line in r.directives]
        result.build_time = time.time() - start_time
        logger.info("Vendored build finished in %.2fs", result.build_time)
        return result

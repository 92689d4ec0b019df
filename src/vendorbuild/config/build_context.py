"""Build context threaded through the pipeline.

The host build system hands its inputs over through environment variables.
They are read exactly once into a BuildContext, which is then passed
explicitly to every stage. Compiler and linker flags are appended to, never
overwritten, so values the caller supplied keep their place at the front.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..build.capabilities import CapabilitySet
from ..packages.platform_utils import Platform, PlatformDetector


class BuildContextError(Exception):
    """Raised when host inputs are missing or invalid."""

    pass


class LinkMode(Enum):
    """How the canvas dependency is built and linked."""

    STATIC = "static"
    DYNAMIC = "dynamic"

    @classmethod
    def from_string(cls, value: str) -> "LinkMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise BuildContextError(
                f"Invalid link mode '{value}'. Expected 'static' or 'dynamic'"
            ) from None


def append_flag(current: str, flag: str) -> str:
    """Append a flag to a space separated flag string.

    Example:
        >>> append_flag("-O2", "-I/x/include")
        '-O2 -I/x/include'
        >>> append_flag("", "-I/x/include")
        '-I/x/include'
    """
    current = current.strip()
    if current:
        return f"{current} {flag}"
    return flag


@dataclass(frozen=True)
class BuildContext:
    """Host inputs for one pipeline run.

    Attributes:
        output_dir: Scratch directory designated by the host
        cflags: Compiler flags (CFLAGS)
        ldflags: Linker flags (LDFLAGS)
        features: Caller's capability toggles
        platform: Platform being built for
        link_mode: Canvas orchestration mode
        jobs: Parallel compile jobs (None means detect)
        base_env: Environment the run started with
    """

    output_dir: Path
    cflags: str = ""
    ldflags: str = ""
    features: CapabilitySet = field(default_factory=CapabilitySet)
    platform: Platform = Platform.UNIX
    link_mode: LinkMode = LinkMode.STATIC
    jobs: Optional[int] = None
    base_env: Mapping[str, str] = field(
        default_factory=lambda: dict(os.environ), repr=False, compare=False
    )

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        output_dir: Optional[Path] = None,
        features: Optional[CapabilitySet] = None,
        platform: Optional[Platform] = None,
        link_mode: LinkMode = LinkMode.STATIC,
        jobs: Optional[int] = None,
    ) -> "BuildContext":
        """Read host inputs from an environment mapping.

        Args:
            environ: Environment to read (defaults to os.environ)
            output_dir: Explicit output directory (defaults to $OUT_DIR)
            features: Explicit toggles, merged over $VENDORBUILD_FEATURES
            platform: Platform override (defaults to the host platform)
            link_mode: Canvas orchestration mode
            jobs: Parallel compile jobs override

        Raises:
            BuildContextError: If no output directory is available
        """
        env = dict(os.environ if environ is None else environ)

        if output_dir is None:
            out_dir = env.get("OUT_DIR", "").strip()
            if not out_dir:
                raise BuildContextError(
                    "No output directory: pass --out-dir or set OUT_DIR"
                )
            output_dir = Path(out_dir)

        toggles = CapabilitySet.from_names(
            CapabilitySet.parse_list(env.get("VENDORBUILD_FEATURES", ""))
        )
        if features is not None:
            toggles = toggles.merged(features)

        return cls(
            output_dir=Path(output_dir),
            cflags=env.get("CFLAGS", "").strip(),
            ldflags=env.get("LDFLAGS", "").strip(),
            features=toggles,
            platform=platform or PlatformDetector.detect(),
            link_mode=link_mode,
            jobs=jobs,
            base_env=env,
        )

    def with_prefix_flags(self, prefix_root: Path) -> "BuildContext":
        """Return a context with the isolated prefix added to the flags.

        Args:
            prefix_root: Root of the isolated prefix

        Returns:
            New context with -I<prefix>/include and -L<prefix>/lib appended
        """
        root = Path(prefix_root)
        return replace(
            self,
            cflags=append_flag(self.cflags, f"-I{(root / 'include').as_posix()}"),
            ldflags=append_flag(self.ldflags, f"-L{(root / 'lib').as_posix()}"),
        )

    def child_env(self) -> Dict[str, str]:
        """Environment for external build steps."""
        env = dict(self.base_env)
        env["CFLAGS"] = self.cflags
        env["LDFLAGS"] = self.ldflags
        return env

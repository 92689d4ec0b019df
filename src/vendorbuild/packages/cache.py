"""Output directory layout for vendored dependencies.

This module derives every path the pipeline touches from the scratch
directory designated by the host build system.

Layout:
    {out_dir}/
    ├── dist/                   # Isolated prefix
    │   ├── include/            # Installed public headers
    │   ├── lib/                # Installed libraries
    │   └── build/              # CMake build scratch (removed after install)
    ├── downloads/              # Release archives for archive-pinned targets
    ├── {checkout}/             # One source checkout per target
    ├── bindings.py             # Generated binding module
    └── vendorbuild.log         # Rotating log

Nothing outside this tree is read for headers or libraries, so a build on
one machine resolves exactly the same files as on another.
"""

from dataclasses import dataclass
from pathlib import Path

from .targets import BuildTarget


@dataclass(frozen=True)
class IsolatedPrefix:
    """Private install root for one build session."""

    root: Path

    @property
    def include_dir(self) -> Path:
        return self.root / "include"

    @property
    def lib_dir(self) -> Path:
        return self.root / "lib"

    @property
    def build_scratch_dir(self) -> Path:
        return self.root / "build"


class PathResolver:
    """Resolves the isolated prefix and per-target paths.

    All methods are pure functions of the output directory given at
    construction; calling them repeatedly always yields identical paths.
    """

    PREFIX_NAME = "dist"

    def __init__(self, output_dir: Path, bindings_name: str = "bindings.py"):
        """Initialize resolver.

        Args:
            output_dir: Scratch directory designated by the host build system
            bindings_name: File name of the generated binding module
        """
        self.output_dir = Path(output_dir).resolve()
        self.bindings_name = bindings_name

    @property
    def prefix(self) -> IsolatedPrefix:
        """The isolated install prefix ({output_dir}/dist)."""
        return IsolatedPrefix(self.output_dir / self.PREFIX_NAME)

    @property
    def include_dir(self) -> Path:
        return self.prefix.include_dir

    @property
    def lib_dir(self) -> Path:
        return self.prefix.lib_dir

    @property
    def downloads_dir(self) -> Path:
        """Directory for downloaded release archives."""
        return self.output_dir / "downloads"

    @property
    def bindings_path(self) -> Path:
        """Fixed location of the generated binding module."""
        return self.output_dir / self.bindings_name

    @property
    def log_path(self) -> Path:
        return self.output_dir / "vendorbuild.log"

    def source_dir(self, target: BuildTarget) -> Path:
        """Get the transient checkout directory for a target.

        Args:
            target: Build target

        Returns:
            Path to the target's source checkout
        """
        return self.output_dir / target.checkout_name

    def ensure_directories(self) -> None:
        """Create the output directory and the prefix library directory."""
        for directory in [self.output_dir, self.lib_dir]:
            directory.mkdir(parents=True, exist_ok=True)

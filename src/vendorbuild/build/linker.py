"""Linker directive emission.

Once a target is installed into the isolated prefix, the host build system
is told where to find it and what to link, one directive per line on stdout:

    cargo:rustc-link-search=native=/out/dist/lib
    cargo:rustc-link-lib=static=caca
    cargo:rustc-link-lib=dylib=X11

The ``cargo:rustc-`` part is the configurable directive prefix.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, TextIO


DEFAULT_DIRECTIVE_PREFIX = "cargo:rustc-"


class ArtifactKind(Enum):
    """How a library is linked."""

    STATIC = "static"
    DYNAMIC = "dylib"


@dataclass(frozen=True)
class Artifact:
    """A library produced by a pipeline (or required from the system)."""

    kind: ArtifactKind
    name: str

    @classmethod
    def static(cls, name: str) -> "Artifact":
        return cls(ArtifactKind.STATIC, name)

    @classmethod
    def dynamic(cls, name: str) -> "Artifact":
        return cls(ArtifactKind.DYNAMIC, name)


class LinkEmitter:
    """Prints link directives for the host build system.

    Emission cannot fail; every directive is also kept in ``emitted`` so the
    orchestrator can report them. A search path is announced only once per
    emitter, however many artifacts live in it.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_DIRECTIVE_PREFIX,
        stream: Optional[TextIO] = None,
    ):
        """Initialize emitter.

        Args:
            prefix: Text put in front of every directive
            stream: Directive channel (defaults to sys.stdout at emit time)
        """
        self.prefix = prefix
        self.stream = stream
        self.emitted: List[str] = []

    def search_directive(self, lib_dir: Path) -> str:
        return f"{self.prefix}link-search=native={Path(lib_dir).as_posix()}"

    def link_directive(self, artifact: Artifact) -> str:
        return f"{self.prefix}link-lib={artifact.kind.value}={artifact.name}"

    def directives(
        self,
        lib_dir: Path,
        artifact: Artifact,
        system_libraries: Sequence[Artifact] = (),
    ) -> List[str]:
        """Directives for one installed artifact, in emission order."""
        lines = [self.search_directive(lib_dir), self.link_directive(artifact)]
        lines.extend(self.link_directive(lib) for lib in system_libraries)
        return lines

    def emit(
        self,
        lib_dir: Path,
        artifact: Artifact,
        system_libraries: Sequence[Artifact] = (),
    ) -> List[str]:
        """Print the directives for an installed artifact.

        Args:
            lib_dir: Library directory of the isolated prefix
            artifact: Library the pipeline produced
            system_libraries: Auxiliary system libraries needed by enabled capabilities

        Returns:
            The printed directive lines (a search path already announced is skipped)
        """
        stream = self.stream if self.stream is not None else sys.stdout
        lines = self.directives(lib_dir, artifact, system_libraries)
        if lines[0] in self.emitted:
            lines = lines[1:]
        for line in lines:
            print(line, file=stream)
        stream.flush()
        self.emitted.extend(lines)
        return lines

"""zlib-ng pipeline.

zlib-ng is built with CMake in zlib-compatible mode with a fixed feature
set: no tests, fuzzers, sanitizers, coverage or host-specific instructions,
so the resulting static libz is the same on every machine.
"""

from typing import List, Tuple

from .linker import Artifact
from .pipeline import TargetPipeline


CMAKE_DEFINES: Tuple[Tuple[str, str], ...] = (
    ("ZLIB_COMPAT", "ON"),
    ("ZLIB_ENABLE_TESTS", "OFF"),
    ("WITH_GZFILEOP", "ON"),
    ("WITH_OPTIM", "ON"),
    ("WITH_NEW_STRATEGIES", "ON"),
    ("WITH_NATIVE_INSTRUCTIONS", "OFF"),
    ("WITH_SANITIZER", "OFF"),
    ("WITH_FUZZERS", "OFF"),
    ("WITH_MAINTAINER_WARNINGS", "OFF"),
    ("WITH_CODE_COVERAGE", "OFF"),
    ("BUILD_SHARED_LIBS", "OFF"),
    ("CMAKE_BUILD_TYPE", "Release"),
)


class CompressionPipeline(TargetPipeline):
    """Builds zlib-ng as a static zlib-compatible library."""

    def configure_arguments(self) -> List[str]:
        return [f"-D{key}={value}" for key, value in CMAKE_DEFINES]

    def artifact(self) -> Artifact:
        return Artifact.static("z")

"""Pinned upstream dependencies.

This module defines the BuildTarget record and the two dependencies that
vendorbuild vendors: zlib-ng (compression, CMake) and libcaca (canvas,
autotools).
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional

from .platform_utils import Platform


class TargetError(Exception):
    """Raised when a build target definition is invalid."""

    pass


class FetchMethod(Enum):
    """How a target's pinned revision is acquired."""

    GIT = "git"
    ARCHIVE = "archive"


class BuildSystem(Enum):
    """Native build system driving a target."""

    CMAKE = "cmake"
    AUTOTOOLS = "autotools"


ALL_PLATFORMS: FrozenSet[Platform] = frozenset(Platform)

_COMMIT_SHA = re.compile(r"^[0-9a-f]{40}$")


@dataclass(frozen=True)
class BuildTarget:
    """One external dependency to vendor.

    Attributes:
        name: Short identifier, also used for config sections and diagnostics
        revision: Pinned tag, branch or full commit SHA
        url: Git URL of the upstream repository
        build_system: Native build system of the upstream tree
        platforms: Platforms the target can be built on
        checkout_dir: Directory name of the checkout under the output directory
        archive_url: Pinned release archive, used instead of git when set
        archive_sha256: Expected SHA-256 of the release archive
    """

    name: str
    revision: str
    url: str
    build_system: BuildSystem
    platforms: FrozenSet[Platform] = ALL_PLATFORMS
    checkout_dir: Optional[str] = None
    archive_url: Optional[str] = None
    archive_sha256: Optional[str] = None

    def __post_init__(self):
        if not self.revision:
            raise TargetError(f"Target '{self.name}' has no pinned revision")
        if self.archive_url and not self.archive_sha256:
            raise TargetError(
                f"Target '{self.name}' pins an archive without a sha256 checksum"
            )

    @property
    def checkout_name(self) -> str:
        """Directory name used for the source checkout."""
        return self.checkout_dir or f"{self.name}-{self.revision}"

    @property
    def fetch_method(self) -> FetchMethod:
        return FetchMethod.ARCHIVE if self.archive_url else FetchMethod.GIT

    @property
    def is_commit_pin(self) -> bool:
        """True if the revision is a full commit SHA rather than a ref name."""
        return bool(_COMMIT_SHA.match(self.revision.lower()))

    def supports(self, platform: Platform) -> bool:
        return platform in self.platforms

    def with_overrides(self, overrides: Dict[str, str]) -> "BuildTarget":
        """Return a copy with revision/url/archive fields replaced.

        Args:
            overrides: Mapping with any of revision, url, archive_url, archive_sha256

        Raises:
            TargetError: If an unsupported key is given
        """
        allowed = {"revision", "url", "archive_url", "archive_sha256"}
        unknown = set(overrides) - allowed
        if unknown:
            raise TargetError(
                f"Unsupported override(s) for target '{self.name}': "
                + ", ".join(sorted(unknown))
            )
        return replace(self, **overrides)


ZLIB_NG = BuildTarget(
    name="zlib-ng",
    revision="2.0.3",
    url="https://github.com/zlib-ng/zlib-ng",
    build_system=BuildSystem.CMAKE,
)

LIBCACA = BuildTarget(
    name="libcaca",
    revision="v0.99.beta20",
    url="https://github.com/cacalabs/libcaca",
    build_system=BuildSystem.AUTOTOOLS,
    checkout_dir="libcaca",
)

DEFAULT_TARGETS: Dict[str, BuildTarget] = {
    ZLIB_NG.name: ZLIB_NG,
    LIBCACA.name: LIBCACA,
}

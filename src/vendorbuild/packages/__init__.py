"""Package management for vendorbuild.

This module handles the pinned build targets, the isolated prefix layout,
and acquiring sources by shallow git checkout or archive download.
"""

from .cache import IsolatedPrefix, PathResolver
from .downloader import ChecksumError, DownloadError, ExtractionError, PackageDownloader
from .platform_utils import Platform, PlatformDetector, PlatformError
from .source_fetcher import SourceFetcher
from .targets import (
    DEFAULT_TARGETS,
    LIBCACA,
    ZLIB_NG,
    BuildSystem,
    BuildTarget,
    FetchMethod,
    TargetError,
)

__all__ = [
    "IsolatedPrefix",
    "PathResolver",
    "PackageDownloader",
    "DownloadError",
    "ChecksumError",
    "ExtractionError",
    "Platform",
    "PlatformDetector",
    "PlatformError",
    "SourceFetcher",
    "DEFAULT_TARGETS",
    "LIBCACA",
    "ZLIB_NG",
    "BuildSystem",
    "BuildTarget",
    "FetchMethod",
    "TargetError",
]

"""Platform Detection Utilities.

This module provides the host platform classification used to decide which
optional capabilities a vendored dependency can be configured with.

Supported Platforms:
    - Windows
    - macOS
    - Unix (Linux, BSD and every other non-macOS Unix)
"""

import platform
from enum import Enum
from typing import Optional


class PlatformError(Exception):
    """Raised when platform detection fails or platform is unsupported."""

    pass


class Platform(Enum):
    """Host platform families that capability availability is keyed on."""

    WINDOWS = "windows"
    MACOS = "macos"
    UNIX = "unix"

    @classmethod
    def from_string(cls, value: str) -> "Platform":
        """Convert a user supplied name ('linux', 'darwin', 'win32', ...) to a Platform.

        Raises:
            PlatformError: If the name does not map to a known platform
        """
        name = value.strip().lower()
        aliases = {
            "windows": cls.WINDOWS,
            "win32": cls.WINDOWS,
            "win64": cls.WINDOWS,
            "macos": cls.MACOS,
            "darwin": cls.MACOS,
            "osx": cls.MACOS,
            "unix": cls.UNIX,
            "linux": cls.UNIX,
            "freebsd": cls.UNIX,
            "openbsd": cls.UNIX,
            "netbsd": cls.UNIX,
        }
        if name not in aliases:
            raise PlatformError(
                f"Unknown platform: {value}. "
                + f"Expected one of: {', '.join(sorted(aliases))}"
            )
        return aliases[name]


class PlatformDetector:
    """Detects the current platform for capability selection."""

    @staticmethod
    def detect(system: Optional[str] = None) -> Platform:
        """Detect the host platform family.

        Args:
            system: Optional system name override (as returned by platform.system())

        Returns:
            Platform enum value

        Raises:
            PlatformError: If platform is unsupported
        """
        system = (system if system is not None else platform.system()).lower()

        if system == "windows" or system.startswith(("cygwin", "msys", "mingw")):
            return Platform.WINDOWS
        elif system == "darwin":
            return Platform.MACOS
        elif system in ("linux", "freebsd", "openbsd", "netbsd", "dragonfly", "sunos", "aix"):
            return Platform.UNIX
        else:
            raise PlatformError(f"Unsupported platform: {system}")

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform.

        Returns:
            Dictionary with platform information including system, machine and Python info
        """
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "platform": platform.platform(),
            "python_version": platform.python_version(),
            "family": PlatformDetector.detect().value,
        }

"""Configuration modules for vendorbuild."""

from .build_context import BuildContext, BuildContextError, LinkMode, append_flag
from .ini_parser import VendorConfig, VendorConfigError

__all__ = [
    "BuildContext",
    "BuildContextError",
    "LinkMode",
    "append_flag",
    "VendorConfig",
    "VendorConfigError",
]

"""
vendorbuild.ini configuration parser.

This module reads the optional project configuration file that sets defaults
for a pipeline run and overrides pinned target definitions.
"""

import configparser
from pathlib import Path
from typing import Dict, List, Optional

from ..packages.targets import BuildTarget, TargetError


class VendorConfigError(Exception):
    """Exception raised for vendorbuild.ini configuration errors."""

    pass


class VendorConfig:
    """
    Parser for vendorbuild.ini configuration files.

    Example vendorbuild.ini:
        [vendorbuild]
        out_dir = build/native
        features = x11, ncurses
        link_mode = static
        jobs = 8

        [target:libcaca]
        revision = v0.99.beta20

    Usage:
        config = VendorConfig(Path("vendorbuild.ini"))
        features = config.get_features()
        targets = config.apply_target_overrides(DEFAULT_TARGETS)
    """

    FILE_NAME = "vendorbuild.ini"
    MAIN_SECTION = "vendorbuild"
    KNOWN_OPTIONS = {
        "out_dir",
        "features",
        "link_mode",
        "directive_prefix",
        "jobs",
        "type_prefix",
        "bindings",
    }

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a vendorbuild.ini file.

        Args:
            ini_path: Path to the vendorbuild.ini file

        Raises:
            VendorConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise VendorConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise VendorConfigError(f"Failed to parse {ini_path}: {e}") from e

        if self.MAIN_SECTION in self.config:
            unknown = set(self.config[self.MAIN_SECTION]) - self.KNOWN_OPTIONS
            if unknown:
                raise VendorConfigError(
                    f"Unknown option(s) in [{self.MAIN_SECTION}]: "
                    + ", ".join(sorted(unknown))
                )

    @classmethod
    def find(cls, project_dir: Path) -> Optional["VendorConfig"]:
        """Load vendorbuild.ini from a project directory if present."""
        ini_path = Path(project_dir) / cls.FILE_NAME
        if not ini_path.exists():
            return None
        return cls(ini_path)

    def get(self, option: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get an option from the [vendorbuild] section.

        Args:
            option: Option name
            default: Value returned when the option is absent or empty

        Returns:
            Stripped option value or default
        """
        if self.MAIN_SECTION not in self.config:
            return default
        value = self.config[self.MAIN_SECTION].get(option)
        if value is None or not value.strip():
            return default
        return value.strip()

    def get_features(self) -> List[str]:
        """
        Parse the feature list.

        Example:
            For features = x11, ncurses
            Returns: ['x11', 'ncurses']
        """
        features_str = self.get("features", "") or ""
        return [f for f in features_str.replace(",", " ").split() if f]

    def get_jobs(self) -> Optional[int]:
        """Parallel job override, or None when absent."""
        value = self.get("jobs")
        if value is None:
            return None
        try:
            jobs = int(value)
        except ValueError:
            raise VendorConfigError(f"jobs must be an integer, got '{value}'") from None
        if jobs < 1:
            raise VendorConfigError(f"jobs must be at least 1, got {jobs}")
        return jobs

    def get_target_sections(self) -> List[str]:
        """
        Get list of all target names with override sections.

        Example:
            For [target:libcaca], returns ['libcaca']
        """
        return [
            section.split(":", 1)[1]
            for section in self.config.sections()
            if section.startswith("target:")
        ]

    def get_target_overrides(self, name: str) -> Dict[str, str]:
        """Get the override values for one target.

        Raises:
            VendorConfigError: If an option is given without a value
        """
        section = f"target:{name}"
        if section not in self.config:
            return {}
        overrides = {}
        for key, value in self.config[section].items():
            if value is None:
                raise VendorConfigError(f"Option '{key}' in [{section}] needs a value")
            overrides[key] = value.strip()
        return overrides

    def apply_target_overrides(
        self, targets: Dict[str, BuildTarget]
    ) -> Dict[str, BuildTarget]:
        """
        Return target definitions with [target:<name>] overrides applied.

        Args:
            targets: Pinned target definitions keyed by name

        Raises:
            VendorConfigError: If a section names an unknown target or option
        """
        result = dict(targets)
        for name in self.get_target_sections():
            if name not in result:
                available = ", ".join(sorted(result))
                raise VendorConfigError(
                    f"Unknown target '{name}'. Available targets: {available}"
                )
            try:
                result[name] = result[name].with_overrides(self.get_target_overrides(name))
            except TargetError as e:
                raise VendorConfigError(str(e)) from e
        return result

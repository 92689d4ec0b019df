"""Unit tests for vendorbuild.ini parsing."""

from pathlib import Path

import pytest

from vendorbuild.config.ini_parser import VendorConfig, VendorConfigError
from vendorbuild.packages.targets import DEFAULT_TARGETS


def write_ini(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "vendorbuild.ini"
    path.write_text(text)
    return path


class TestVendorConfig:
    """Test cases for VendorConfig."""

    def test_missing_file(self, tmp_path):
        """Test a missing file raises."""
        with pytest.raises(VendorConfigError, match="not found"):
            VendorConfig(tmp_path / "vendorbuild.ini")

    def test_find(self, tmp_path):
        """Test find returns None without a file."""
        assert VendorConfig.find(tmp_path) is None
        write_ini(tmp_path, "[vendorbuild]\n")
        assert isinstance(VendorConfig.find(tmp_path), VendorConfig)

    def test_options(self, tmp_path):
        """Test reading options from [vendorbuild]."""
        config = VendorConfig(write_ini(tmp_path, """
[vendorbuild]
out_dir = build/native
link_mode = dynamic
directive_prefix = build:
type_prefix = ct
"""))
        assert config.get("out_dir") == "build/native"
        assert config.get("link_mode") == "dynamic"
        assert config.get("directive_prefix") == "build:"
        assert config.get("bindings", "bindings.py") == "bindings.py"

    def test_no_main_section(self, tmp_path):
        """Test defaults without a [vendorbuild] section."""
        config = VendorConfig(write_ini(tmp_path, "[target:libcaca]\nrevision = v0.99.beta19\n"))
        assert config.get("out_dir", "x") == "x"
        assert config.get_features() == []
        assert config.get_jobs() is None

    def test_unknown_option(self, tmp_path):
        """Test typos in [vendorbuild] are reported."""
        with pytest.raises(VendorConfigError, match="featurs"):
            VendorConfig(write_ini(tmp_path, "[vendorbuild]\nfeaturs = x11\n"))

    def test_parse_error(self, tmp_path):
        """Test malformed files raise VendorConfigError."""
        with pytest.raises(VendorConfigError, match="Failed to parse"):
            VendorConfig(write_ini(tmp_path, "no section header\n"))

    def test_features(self, tmp_path):
        """Test feature lists with commas, spaces and newlines."""
        config = VendorConfig(write_ini(tmp_path, "[vendorbuild]\nfeatures = x11, ncurses\n    gl\n"))
        assert config.get_features() == ["x11", "ncurses", "gl"]

    def test_interpolation(self, tmp_path):
        """Test ${section:option} references."""
        config = VendorConfig(write_ini(tmp_path, """
[common]
drivers = x11 ncurses

[vendorbuild]
features = ${common:drivers} gl
"""))
        assert config.get_features() == ["x11", "ncurses", "gl"]

    @pytest.mark.parametrize("value,expected", [("8", 8), ("1", 1)])
    def test_jobs(self, tmp_path, value, expected):
        """Test the jobs override."""
        config = VendorConfig(write_ini(tmp_path, f"[vendorbuild]\njobs = {value}\n"))
        assert config.get_jobs() == expected

    @pytest.mark.parametrize("value", ["0", "many"])
    def test_invalid_jobs(self, tmp_path, value):
        """Test invalid job counts."""
        config = VendorConfig(write_ini(tmp_path, f"[vendorbuild]\njobs = {value}\n"))
        with pytest.raises(VendorConfigError, match="jobs"):
            config.get_jobs()

    def test_target_overrides(self, tmp_path):
        """Test [target:<name>] sections re-pin targets."""
        config = VendorConfig(write_ini(tmp_path, """
[target:libcaca]
revision = v0.99.beta19

[target:zlib-ng]
url = https://example.com/mirror/zlib-ng
"""))
        assert sorted(config.get_target_sections()) == ["libcaca", "zlib-ng"]

        targets = config.apply_target_overrides(DEFAULT_TARGETS)

        assert targets["libcaca"].revision == "v0.99.beta19"
        assert targets["zlib-ng"].url == "https://example.com/mirror/zlib-ng"
        assert targets["zlib-ng"].revision == DEFAULT_TARGETS["zlib-ng"].revision
        assert DEFAULT_TARGETS["libcaca"].revision == "v0.99.beta20"

    def test_unknown_target(self, tmp_path):
        """Test sections for unknown targets are errors."""
        config = VendorConfig(write_ini(tmp_path, "[target:openssl]\nrevision = 3.0\n"))
        with pytest.raises(VendorConfigError, match="Unknown target 'openssl'"):
            config.apply_target_overrides(DEFAULT_TARGETS)

    def test_unknown_target_option(self, tmp_path):
        """Test unsupported override keys are errors."""
        config = VendorConfig(write_ini(tmp_path, "[target:libcaca]\nbuild_system = cmake\n"))
        with pytest.raises(VendorConfigError, match="build_system"):
            config.apply_target_overrides(DEFAULT_TARGETS)

    def test_target_option_without_value(self, tmp_path):
        """Test a bare key in a target section is a configuration error."""
        config = VendorConfig(write_ini(tmp_path, "[target:libcaca]\nrevision\n"))
        with pytest.raises(VendorConfigError, match="'revision' in \\[target:libcaca\\] needs a value"):
            config.apply_target_overrides(DEFAULT_TARGETS)

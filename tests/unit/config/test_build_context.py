"""Unit tests for BuildContext."""

from pathlib import Path

import pytest

from vendorbuild.build.capabilities import CapabilitySet
from vendorbuild.config.build_context import (
    BuildContext,
    BuildContextError,
    LinkMode,
    append_flag,
)
from vendorbuild.packages.platform_utils import Platform


class TestAppendFlag:
    """Test cases for append_flag."""

    def test_append_to_existing(self):
        """Test flags are appended after one space."""
        assert append_flag("-O2", "-I/x/include") == "-O2 -I/x/include"

    def test_append_to_empty(self):
        """Test no leading space when nothing was set."""
        assert append_flag("", "-L/x/lib") == "-L/x/lib"
        assert append_flag("   ", "-L/x/lib") == "-L/x/lib"


class TestLinkMode:
    """Test cases for LinkMode."""

    def test_from_string(self):
        """Test parsing link modes."""
        assert LinkMode.from_string("static") is LinkMode.STATIC
        assert LinkMode.from_string(" Dynamic ") is LinkMode.DYNAMIC

    def test_from_string_invalid(self):
        """Test invalid link modes are rejected."""
        with pytest.raises(BuildContextError, match="Invalid link mode"):
            LinkMode.from_string("shared")


class TestBuildContext:
    """Test cases for BuildContext."""

    def test_from_environment(self):
        """Test host inputs are read from the environment."""
        environ = {
            "OUT_DIR": "/tmp/out",
            "CFLAGS": "-O2",
            "LDFLAGS": "-s",
            "VENDORBUILD_FEATURES": "x11, ncurses",
        }
        context = BuildContext.from_environment(environ, platform=Platform.UNIX)

        assert context.output_dir == Path("/tmp/out")
        assert context.cflags == "-O2"
        assert context.ldflags == "-s"
        assert context.features.names() == ["x11", "ncurses"]
        assert context.platform is Platform.UNIX
        assert context.link_mode is LinkMode.STATIC
        assert context.base_env == environ

    def test_missing_output_dir(self):
        """Test an output directory is required."""
        with pytest.raises(BuildContextError, match="OUT_DIR"):
            BuildContext.from_environment({}, platform=Platform.UNIX)

    def test_explicit_output_dir_wins(self):
        """Test an explicit output directory overrides OUT_DIR."""
        context = BuildContext.from_environment(
            {"OUT_DIR": "/env"}, output_dir=Path("/cli"), platform=Platform.UNIX
        )
        assert context.output_dir == Path("/cli")

    def test_explicit_features_merge_over_environment(self):
        """Test explicit toggles override environment toggles."""
        context = BuildContext.from_environment(
            {"OUT_DIR": "/o", "VENDORBUILD_FEATURES": "x11 gl"},
            features=CapabilitySet({"gl": False, "network": True}),
            platform=Platform.UNIX,
        )
        assert context.features == CapabilitySet({"x11": True, "gl": False, "network": True})

    def test_with_prefix_flags_appends(self):
        """Test the prefix is appended to caller flags, never replacing them."""
        context = BuildContext(output_dir=Path("/o"), cflags="-O2", ldflags="")
        updated = context.with_prefix_flags(Path("/x"))

        assert updated.cflags == "-O2 -I/x/include"
        assert updated.ldflags == "-L/x/lib"
        assert context.cflags == "-O2"

    def test_child_env(self):
        """Test build tools get the combined flags on top of the base environment."""
        context = BuildContext(
            output_dir=Path("/o"), cflags="-O2", base_env={"PATH": "/bin", "CFLAGS": "-O0"}
        ).with_prefix_flags(Path("/x"))

        env = context.child_env()

        assert env == {"PATH": "/bin", "CFLAGS": "-O2 -I/x/include", "LDFLAGS": "-L/x/lib"}
        assert context.base_env["CFLAGS"] == "-O0"

    def test_default_base_env_is_process_environment(self, monkeypatch):
        """Test contexts built directly inherit the process environment."""
        monkeypatch.setenv("VENDORBUILD_PROBE", "1")
        context = BuildContext(output_dir=Path("/o"))
        assert context.child_env()["VENDORBUILD_PROBE"] == "1"

    def test_context_is_immutable(self):
        """Test contexts are values."""
        context = BuildContext(output_dir=Path("/o"))
        with pytest.raises(Exception):
            context.cflags = "-O3"

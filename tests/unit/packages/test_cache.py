"""Unit tests for the isolated prefix and path resolution."""

from pathlib import Path

from vendorbuild.packages.cache import IsolatedPrefix, PathResolver
from vendorbuild.packages.targets import LIBCACA, ZLIB_NG


class TestIsolatedPrefix:
    """Test cases for IsolatedPrefix."""

    def test_subdirectories(self, tmp_path):
        """Test include, lib and build scratch paths."""
        prefix = IsolatedPrefix(tmp_path / "dist")
        assert prefix.include_dir == tmp_path / "dist" / "include"
        assert prefix.lib_dir == tmp_path / "dist" / "lib"
        assert prefix.build_scratch_dir == tmp_path / "dist" / "build"


class TestPathResolver:
    """Test cases for PathResolver."""

    def test_prefix_is_dist_under_output(self, tmp_path):
        """Test the prefix is derived as <output>/dist."""
        resolver = PathResolver(tmp_path)
        assert resolver.prefix.root == tmp_path.resolve() / "dist"
        assert resolver.include_dir == tmp_path.resolve() / "dist" / "include"
        assert resolver.lib_dir == tmp_path.resolve() / "dist" / "lib"

    def test_output_dir_is_absolute(self, tmp_path, monkeypatch):
        """Test relative output directories are made absolute."""
        monkeypatch.chdir(tmp_path)
        resolver = PathResolver(Path("out"))
        assert resolver.output_dir.is_absolute()
        assert resolver.output_dir == (tmp_path / "out").resolve()

    def test_repeated_calls_are_identical(self, tmp_path):
        """Test every path is stable across calls."""
        resolver = PathResolver(tmp_path)
        assert resolver.prefix == resolver.prefix
        assert resolver.source_dir(ZLIB_NG) == resolver.source_dir(ZLIB_NG)
        assert PathResolver(tmp_path).prefix == resolver.prefix

    def test_source_dir_uses_checkout_name(self, tmp_path):
        """Test per-target checkout paths."""
        resolver = PathResolver(tmp_path)
        assert resolver.source_dir(ZLIB_NG) == tmp_path.resolve() / "zlib-ng-2.0.3"
        assert resolver.source_dir(LIBCACA) == tmp_path.resolve() / "libcaca"

    def test_bindings_path(self, tmp_path):
        """Test bindings path and custom file name."""
        assert PathResolver(tmp_path).bindings_path == tmp_path.resolve() / "bindings.py"
        resolver = PathResolver(tmp_path, bindings_name="caca_sys.py")
        assert resolver.bindings_path == tmp_path.resolve() / "caca_sys.py"

    def test_resolver_has_no_side_effects(self, tmp_path):
        """Test constructing and querying creates nothing."""
        out = tmp_path / "out"
        resolver = PathResolver(out)
        resolver.prefix
        resolver.source_dir(LIBCACA)
        assert not out.exists()

    def test_ensure_directories(self, tmp_path):
        """Test ensure_directories creates the output and lib directories."""
        resolver = PathResolver(tmp_path / "out")
        resolver.ensure_directories()
        resolver.ensure_directories()
        assert resolver.output_dir.is_dir()
        assert resolver.lib_dir.is_dir()

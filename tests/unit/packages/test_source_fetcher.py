"""Unit tests for SourceFetcher."""

import hashlib
from pathlib import Path
from unittest.mock import Mock

import pytest

from vendorbuild.build.command_runner import CommandLaunchError, ExitResult
from vendorbuild.build.errors import FetchError
from vendorbuild.packages.cache import PathResolver
from vendorbuild.packages.downloader import DownloadError, PackageDownloader
from vendorbuild.packages.source_fetcher import SourceFetcher
from vendorbuild.packages.targets import LIBCACA, ZLIB_NG

SHA = "0123456789abcdef0123456789abcdef01234567"


@pytest.fixture
def resolver(tmp_path):
    return PathResolver(tmp_path / "out")


def _clone_writes(files):
    """Side effect emulating git clone populating the destination."""

    def side_effect(cmd, cwd):
        dest = Path(cmd[-1])
        dest.mkdir(parents=True)
        for name, text in files.items():
            (dest / name).write_text(text)

    return side_effect


class TestSourceFetcher:
    """Test cases for SourceFetcher."""

    def test_shallow_clone_of_pinned_tag(self, resolver, runner):
        """Test a tag pin is fetched with a shallow single-branch clone."""
        fetcher = SourceFetcher(resolver, runner)
        dest = fetcher.fetch(LIBCACA)

        assert dest == resolver.source_dir(LIBCACA)
        assert runner.commands() == [
            ["git", "clone", "--depth=1", "-b", "v0.99.beta20", LIBCACA.url, str(dest)]
        ]
        assert runner.calls[0]["cwd"] == resolver.output_dir

    def test_missing_checkout_is_not_an_error(self, resolver, runner):
        """Test fetching with no previous checkout succeeds."""
        assert not resolver.source_dir(ZLIB_NG).exists()
        SourceFetcher(resolver, runner).fetch(ZLIB_NG)
        assert runner.invoked("git", "clone") == 1

    def test_refetch_is_idempotent(self, resolver, runner):
        """Test fetching twice leaves the same tree as fetching once."""
        runner.script(["git", "clone"], side_effect=_clone_writes({"CMakeLists.txt": "x"}))
        fetcher = SourceFetcher(resolver, runner)

        dest = fetcher.fetch(ZLIB_NG)
        (dest / "stale.o").write_text("left over from an earlier build")
        fetcher.fetch(ZLIB_NG)

        assert sorted(p.name for p in dest.iterdir()) == ["CMakeLists.txt"]

    def test_removal_propagates_other_errors(self, resolver, runner, monkeypatch):
        """Test only a missing checkout is ignored when clearing the old one."""
        resolver.source_dir(ZLIB_NG).mkdir(parents=True)

        def denied(path):
            raise PermissionError("denied")

        monkeypatch.setattr("vendorbuild.build.build_utils.shutil.rmtree", denied)
        with pytest.raises(PermissionError):
            SourceFetcher(resolver, runner).fetch(ZLIB_NG)
        assert runner.calls == []

    def test_clone_failure_raises_fetch_error(self, resolver, runner):
        """Test a non-zero exit from git is a FetchError with diagnostics."""
        runner.script(
            ["git", "clone"],
            ExitResult(128, stderr="fatal: Remote branch v0.99.beta20 not found"),
        )

        with pytest.raises(FetchError) as excinfo:
            SourceFetcher(resolver, runner).fetch(LIBCACA)

        error = excinfo.value
        assert error.target == "libcaca"
        assert "Remote branch" in error.stderr
        assert "exited with status 128" in str(error)

    def test_git_missing_raises_fetch_error(self, resolver, runner):
        """Test a git that cannot be launched is a FetchError."""
        runner.script(["git"], raises=CommandLaunchError(["git"], "No such file or directory"))
        with pytest.raises(FetchError, match="Failed to launch git"):
            SourceFetcher(resolver, runner).fetch(ZLIB_NG)

    def test_commit_pin_fetches_single_commit(self, resolver, runner):
        """Test full SHAs are fetched with init + shallow fetch + checkout."""
        target = ZLIB_NG.with_overrides({"revision": SHA})
        dest = SourceFetcher(resolver, runner).fetch(target)

        assert runner.commands() == [
            ["git", "init", "--quiet"],
            ["git", "remote", "add", "origin", ZLIB_NG.url],
            ["git", "fetch", "--depth=1", "origin", SHA],
            ["git", "checkout", "--quiet", "FETCH_HEAD"],
        ]
        assert all(call["cwd"] == dest for call in runner.calls)

    def test_commit_pin_stops_at_first_failure(self, resolver, runner):
        """Test a failed fetch skips the checkout."""
        runner.script(["git", "fetch"], ExitResult(1, stderr="not our ref"))
        target = ZLIB_NG.with_overrides({"revision": SHA})

        with pytest.raises(FetchError, match="git fetch exited"):
            SourceFetcher(resolver, runner).fetch(target)
        assert runner.invoked("git", "checkout") == 0


class TestArchiveFetch:
    """Test cases for archive pinned targets."""

    @pytest.fixture
    def archived(self):
        return ZLIB_NG.with_overrides(
            {
                "archive_url": "https://example.com/zlib-ng-2.0.3.tar.gz",
                "archive_sha256": hashlib.sha256(b"archive").hexdigest(),
            }
        )

    def test_archive_download_and_extract(self, resolver, runner, archived):
        """Test archive targets are downloaded, verified and extracted."""
        downloader = Mock(spec=PackageDownloader)
        downloader.archive_name.return_value = "zlib-ng-2.0.3.tar.gz"

        dest = SourceFetcher(resolver, runner, downloader=downloader, show_progress=False).fetch(archived)

        archive = resolver.downloads_dir / "zlib-ng-2.0.3.tar.gz"
        downloader.download.assert_called_once_with(
            archived.archive_url, archive, archived.archive_sha256, show_progress=False
        )
        downloader.extract_archive.assert_called_once_with(archive, dest)
        assert runner.calls == []

    def test_cached_archive_is_reused(self, resolver, runner, archived):
        """Test a cached archive with a valid checksum is not downloaded again."""
        archive = resolver.downloads_dir / "zlib-ng-2.0.3.tar.gz"
        archive.parent.mkdir(parents=True)
        archive.write_bytes(b"archive")

        downloader = Mock(spec=PackageDownloader)
        downloader.archive_name.return_value = archive.name
        downloader.verify_checksum.return_value = True

        SourceFetcher(resolver, runner, downloader=downloader).fetch(archived)

        downloader.download.assert_not_called()
        downloader.extract_archive.assert_called_once()

    def test_download_failure_raises_fetch_error(self, resolver, runner, archived):
        """Test downloader errors become FetchError."""
        downloader = Mock(spec=PackageDownloader)
        downloader.archive_name.return_value = "zlib-ng-2.0.3.tar.gz"
        downloader.download.side_effect = DownloadError("404 Not Found")

        with pytest.raises(FetchError, match="404 Not Found"):
            SourceFetcher(resolver, runner, downloader=downloader).fetch(archived)
        downloader.extract_archive.assert_not_called()

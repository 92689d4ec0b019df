"""Source acquisition for pinned build targets.

Every fetch starts by deleting whatever checkout a previous run left behind,
then acquires exactly the pinned revision with no history beyond it:

    git clone --depth=1 -b <tag> <url> <dir>        # tag or branch pins
    git init / fetch --depth=1 origin <sha> / checkout FETCH_HEAD   # commit pins

Targets that pin a release archive are downloaded, checksum-verified and
unpacked instead.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..build.build_utils import remove_tree
from ..build.command_runner import CommandLaunchError, CommandRunner, ExitResult
from ..build.errors import FetchError
from .cache import PathResolver
from .downloader import ChecksumError, DownloadError, ExtractionError, PackageDownloader
from .targets import BuildTarget, FetchMethod

logger = logging.getLogger(__name__)


class SourceFetcher:
    """Acquires the pinned revision of a build target."""

    def __init__(
        self,
        resolver: PathResolver,
        runner: CommandRunner,
        downloader: Optional[PackageDownloader] = None,
        git: str = "git",
        show_progress: bool = True,
    ):
        """Initialize source fetcher.

        Args:
            resolver: Path resolver for the current output directory
            runner: Runner used to invoke git
            downloader: Archive downloader (created lazily for archive targets)
            git: git executable
            show_progress: Whether to show download progress bars
        """
        self.resolver = resolver
        self.runner = runner
        self.downloader = downloader
        self.git = git
        self.show_progress = show_progress

    def fetch(self, target: BuildTarget) -> Path:
        """Fetch a target into a fresh checkout directory.

        Args:
            target: Target to fetch

        Returns:
            Path to the checkout

        Raises:
            FetchError: If acquisition fails
        """
        dest = self.resolver.source_dir(target)
        remove_tree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Fetching %s %s", target.name, target.revision)

        if target.fetch_method is FetchMethod.ARCHIVE:
            self._fetch_archive(target, dest)
        elif target.is_commit_pin:
            self._fetch_commit(target, dest)
        else:
            self._git(
                target,
                [
                    "clone",
                    "--depth=1",
                    "-b",
                    target.revision,
                    target.url,
                    str(dest),
                ],
                cwd=self.resolver.output_dir,
            )

        return dest

    def _fetch_commit(self, target: BuildTarget, dest: Path) -> None:
        dest.mkdir(parents=True)
        for args in (
            ["init", "--quiet"],
            ["remote", "add", "origin", target.url],
            ["fetch", "--depth=1", "origin", target.revision],
            ["checkout", "--quiet", "FETCH_HEAD"],
        ):
            self._git(target, args, cwd=dest)

    def _git(self, target: BuildTarget, args: List[str], cwd: Path) -> ExitResult:
        cmd = [self.git] + args
        try:
            result = self.runner.run(cmd, cwd=cwd)
        except CommandLaunchError as e:
            raise FetchError(target.name, str(e)) from e

        if not result.success:
            raise FetchError(
                target.name,
                f"git {args[0]} exited with status {result.returncode}",
                result.stdout,
                result.stderr,
            )
        return result

    def _fetch_archive(self, target: BuildTarget, dest: Path) -> None:
        if self.downloader is None:
            self.downloader = PackageDownloader()

        archive = self.resolver.downloads_dir / self.downloader.archive_name(
            target.archive_url
        )

        try:
            if archive.exists():
                try:
                    self.downloader.verify_checksum(archive, target.archive_sha256)
                    logger.info("Using cached %s", archive.name)
                except ChecksumError:
                    logger.warning("Cached %s is stale, downloading again", archive.name)
                    archive.unlink()

            if not archive.exists():
                self.downloader.download(
                    target.archive_url,
                    archive,
                    target.archive_sha256,
                    show_progress=self.show_progress,
                )

            self.downloader.extract_archive(archive, dest)
        except (DownloadError, ChecksumError, ExtractionError) as e:
            raise FetchError(target.name, str(e)) from e

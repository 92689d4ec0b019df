"""Per-target pipeline.

A pipeline takes one BuildTarget from nothing to linkable:

    fetch -> [bootstrap] -> configure -> build -> install -> link directives

Stages run strictly in order; the first failure propagates and nothing after
it runs.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.build_context import BuildContext
from ..packages.cache import PathResolver
from ..packages.source_fetcher import SourceFetcher
from ..packages.targets import BuildTarget
from .command_runner import CommandRunner
from .executor import BuildExecutor, TargetState, executor_class
from .linker import Artifact, LinkEmitter

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised when a pipeline is misconfigured (not for stage failures)."""

    pass


@dataclass
class PipelineResult:
    """Outcome of a completed target pipeline."""

    target: BuildTarget
    state: TargetState
    source_dir: Path
    artifact: Artifact
    configure_arguments: List[str] = field(default_factory=list)
    directives: List[str] = field(default_factory=list)


class TargetPipeline:
    """Base class for the pipeline of one vendored dependency."""

    def __init__(
        self,
        target: BuildTarget,
        context: BuildContext,
        resolver: PathResolver,
        runner: CommandRunner,
        fetcher: SourceFetcher,
        emitter: LinkEmitter,
    ):
        """Initialize pipeline.

        Args:
            target: Pinned dependency to build
            context: Build context (flags already carry the prefix)
            resolver: Path resolver for the output directory
            runner: Runner for external build tools
            fetcher: Source fetcher
            emitter: Link directive emitter
        """
        self.target = target
        self.context = context
        self.resolver = resolver
        self.runner = runner
        self.fetcher = fetcher
        self.emitter = emitter
        self.executor: Optional[BuildExecutor] = None

    def create_executor(self, source_dir: Path) -> BuildExecutor:
        """Executor for the target's build system, installing into the prefix."""
        return executor_class(self.target)(
            self.target,
            source_dir,
            self.resolver.prefix,
            self.runner,
            env=self.context.child_env(),
            jobs=self.context.jobs,
        )

    def configure_arguments(self) -> List[str]:
        raise NotImplementedError

    def artifact(self) -> Artifact:
        raise NotImplementedError

    def system_libraries(self) -> List[Artifact]:
        """Auxiliary system libraries to link; none by default."""
        return []

    def run(self) -> PipelineResult:
        """Fetch, build, install and emit link directives.

        Raises:
            PipelineError: If the target cannot be built on this platform
            PipelineStageError: If any stage fails
        """
        if not self.target.supports(self.context.platform):
            raise PipelineError(
                f"{self.target.name} cannot be built on {self.context.platform.value}"
            )

        source_dir = self.fetcher.fetch(self.target)

        arguments = self.configure_arguments()
        self.executor = self.create_executor(source_dir)
        state = self.executor.run(arguments)

        artifact = self.artifact()
        directives = self.emitter.emit(
            self.resolver.lib_dir, artifact, self.system_libraries()
        )
        logger.info("[%s] installed into %s", self.target.name, self.resolver.prefix.root)

        return PipelineResult(
            target=self.target,
            state=state,
            source_dir=source_dir,
            artifact=artifact,
            configure_arguments=arguments,
            directives=directives,
        )

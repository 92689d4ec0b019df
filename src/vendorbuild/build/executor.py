"""Native build execution.

This module drives a fetched source tree through its native build system
into the isolated prefix.

State machine per target:

    FETCHED -> BOOTSTRAPPED -> CONFIGURED -> BUILT -> INSTALLED   (autotools)
    FETCHED ---------------->  CONFIGURED -> BUILT -> INSTALLED   (CMake)

Any step that cannot be launched or exits non-zero moves the executor to
FAILED and raises the stage's error with the captured output. FAILED and
INSTALLED are terminal. Nothing is retried.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Collection, Dict, List, Mapping, Optional, Sequence, Type

from ..packages.cache import IsolatedPrefix
from ..packages.targets import BuildSystem, BuildTarget
from .build_utils import detect_jobs, remove_tree
from .command_runner import CommandLaunchError, CommandRunner, ExitResult
from .errors import (
    BootstrapError,
    BuildError,
    ConfigureError,
    InstallError,
    InvalidTransitionError,
    PipelineStageError,
)

logger = logging.getLogger(__name__)


class TargetState(Enum):
    """Build progress of one target."""

    FETCHED = "fetched"
    BOOTSTRAPPED = "bootstrapped"
    CONFIGURED = "configured"
    BUILT = "built"
    INSTALLED = "installed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TargetState.INSTALLED, TargetState.FAILED)


class BuildExecutor:
    """Base class for native build drivers.

    Subclasses supply the commands for each step; this class owns the state
    machine and the failure policy.
    """

    def __init__(
        self,
        target: BuildTarget,
        source_dir: Path,
        prefix: IsolatedPrefix,
        runner: CommandRunner,
        env: Optional[Mapping[str, str]] = None,
        jobs: Optional[int] = None,
    ):
        """Initialize executor for a freshly fetched target.

        Args:
            target: Target being built
            source_dir: Checkout of the pinned revision
            prefix: Isolated install prefix
            runner: Runner for external commands
            env: Environment for the build tools (carries CFLAGS/LDFLAGS)
            jobs: Parallel compile jobs (None detects the logical CPU count)
        """
        self.target = target
        self.source_dir = Path(source_dir)
        self.prefix = prefix
        self.runner = runner
        self.env = dict(env) if env is not None else None
        self.jobs = detect_jobs(jobs)
        self.state = TargetState.FETCHED

    def bootstrap(self) -> None:
        raise NotImplementedError

    def configure(self, arguments: Sequence[str]) -> None:
        raise NotImplementedError

    def build(self) -> None:
        raise NotImplementedError

    def install(self) -> None:
        raise NotImplementedError

    def run(self, arguments: Sequence[str]) -> TargetState:
        """Drive every step from FETCHED to INSTALLED.

        Args:
            arguments: Configure arguments for the native build system

        Returns:
            Final state (always INSTALLED; failures raise)
        """
        raise NotImplementedError

    def _step(
        self,
        name: str,
        cmd: List[str],
        cwd: Path,
        error_cls: Type[PipelineStageError],
        allowed_from: Collection[TargetState],
        next_state: TargetState,
    ) -> ExitResult:
        """Run one external step and advance the state machine.

        Raises:
            InvalidTransitionError: If the step is not allowed from the current state
            PipelineStageError: Subclass given by error_cls if the step fails
        """
        if self.state not in allowed_from:
            raise InvalidTransitionError(
                f"Cannot {name} {self.target.name} from state '{self.state.value}'"
            )

        logger.info("[%s] %s", self.target.name, name)
        try:
            result = self.runner.run(cmd, cwd=cwd, env=self.env)
        except CommandLaunchError as e:
            self.state = TargetState.FAILED
            raise error_cls(self.target.name, str(e)) from e

        if not result.success:
            self.state = TargetState.FAILED
            raise error_cls(
                self.target.name,
                f"{' '.join(cmd[:2])} exited with status {result.returncode}",
                result.stdout,
                result.stderr,
            )

        self.state = next_state
        return result


class AutotoolsExecutor(BuildExecutor):
    """bootstrap / configure / make / make install."""

    def bootstrap(self) -> None:
        """Prepare the source tree (generates ./configure)."""
        self._step(
            "bootstrap",
            ["./bootstrap"],
            self.source_dir,
            BootstrapError,
            (TargetState.FETCHED,),
            TargetState.BOOTSTRAPPED,
        )

    def configure_command(self, arguments: Sequence[str]) -> List[str]:
        return ["./configure", f"--prefix={self.prefix.root}"] + list(arguments)

    def configure(self, arguments: Sequence[str]) -> None:
        self._step(
            "configure",
            self.configure_command(arguments),
            self.source_dir,
            ConfigureError,
            (TargetState.BOOTSTRAPPED,),
            TargetState.CONFIGURED,
        )

    def build(self) -> None:
        self._step(
            "make",
            ["make", "-j", str(self.jobs)],
            self.source_dir,
            BuildError,
            (TargetState.CONFIGURED,),
            TargetState.BUILT,
        )

    def install(self) -> None:
        self._step(
            "make install",
            ["make", "install"],
            self.source_dir,
            InstallError,
            (TargetState.BUILT,),
            TargetState.INSTALLED,
        )

    def run(self, arguments: Sequence[str]) -> TargetState:
        self.bootstrap()
        self.configure(arguments)
        self.build()
        self.install()
        return self.state


class CMakeExecutor(BuildExecutor):
    """cmake configure / cmake --build / install target.

    The build tree lives in the prefix's build-scratch directory and is
    removed once the install step succeeds.
    """

    BUILD_CONFIG = "Release"

    @property
    def build_dir(self) -> Path:
        return self.prefix.build_scratch_dir

    def bootstrap(self) -> None:
        raise InvalidTransitionError(
            f"{self.target.name} is a CMake target and has no bootstrap step"
        )

    def configure_command(self, arguments: Sequence[str]) -> List[str]:
        return [
            "cmake",
            "-S",
            str(self.source_dir),
            "-B",
            str(self.build_dir),
            f"-DCMAKE_INSTALL_PREFIX={self.prefix.root}",
            "-DCMAKE_INSTALL_LIBDIR=lib",
            "-DCMAKE_INSTALL_INCLUDEDIR=include",
        ] + list(arguments)

    def configure(self, arguments: Sequence[str]) -> None:
        """Configure into an empty build tree.

        Any tree left by an earlier failed run is discarded, together with
        its CMakeCache.txt.
        """
        if self.state is TargetState.FETCHED:
            remove_tree(self.build_dir)
        self.build_dir.mkdir(parents=True, exist_ok=True)
        self._step(
            "cmake configure",
            self.configure_command(arguments),
            self.build_dir,
            ConfigureError,
            (TargetState.FETCHED,),
            TargetState.CONFIGURED,
        )

    def build(self) -> None:
        self._step(
            "cmake build",
            [
                "cmake",
                "--build",
                str(self.build_dir),
                "--config",
                self.BUILD_CONFIG,
                "--parallel",
                str(self.jobs),
            ],
            self.build_dir,
            BuildError,
            (TargetState.CONFIGURED,),
            TargetState.BUILT,
        )

    def install(self) -> None:
        self._step(
            "cmake install",
            [
                "cmake",
                "--build",
                str(self.build_dir),
                "--target",
                "install",
                "--config",
                self.BUILD_CONFIG,
            ],
            self.build_dir,
            InstallError,
            (TargetState.BUILT,),
            TargetState.INSTALLED,
        )
        remove_tree(self.build_dir)

    def run(self, arguments: Sequence[str]) -> TargetState:
        self.configure(arguments)
        self.build()
        self.install()
        return self.state


EXECUTORS: Dict[BuildSystem, Type[BuildExecutor]] = {
    BuildSystem.AUTOTOOLS: AutotoolsExecutor,
    BuildSystem.CMAKE: CMakeExecutor,
}


def executor_class(target: BuildTarget) -> Type[BuildExecutor]:
    """Executor that drives the target's native build system."""
    return EXECUTORS[target.build_system]

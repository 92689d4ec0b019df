"""External command execution.

This module wraps subprocess invocation of the fetch tool, build tools and
the C preprocessor behind a small interface so pipelines can be driven by a
scripted fake in tests.

Design:
    - Every invocation is synchronous and blocking, with no timeout
    - stdout/stderr are captured so failures can be reported verbatim
    - A tool that cannot be started raises CommandLaunchError
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandLaunchError(Exception):
    """Raised when an external command cannot be started."""

    def __init__(self, args: Sequence[str], reason: str):
        super().__init__(f"Failed to launch {' '.join(args)}: {reason}")
        self.args_list = list(args)
        self.reason = reason


@dataclass(frozen=True)
class ExitResult:
    """Outcome of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Interface for running external commands."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
    ) -> ExitResult:
        """Run a command to completion.

        Args:
            args: Program and arguments
            cwd: Working directory
            env: Complete environment for the child process (None inherits)
            input_text: Text fed to the child's stdin

        Returns:
            ExitResult with exit status and captured output

        Raises:
            CommandLaunchError: If the program cannot be started
        """
        raise NotImplementedError


class SubprocessRunner(CommandRunner):
    """Runs commands with subprocess.run."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
    ) -> ExitResult:
        cmd = [str(arg) for arg in args]
        logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
                input=input_text,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise CommandLaunchError(cmd, str(e)) from e

        if result.stdout:
            logger.debug("%s stdout:\n%s", cmd[0], result.stdout.rstrip())
        if result.stderr:
            logger.debug("%s stderr:\n%s", cmd[0], result.stderr.rstrip())

        return ExitResult(result.returncode, result.stdout, result.stderr)

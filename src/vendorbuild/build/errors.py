"""Pipeline stage failures.

Every stage of a target's pipeline has its own exception type. Each one
carries the identity of the failing target and whatever the failing external
process wrote, so the top-level caller can report it verbatim.
"""

from typing import Optional


class PipelineStageError(Exception):
    """Base class for a fatal failure of one pipeline stage."""

    stage = "pipeline"

    def __init__(
        self,
        target: str,
        message: str,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
    ):
        """Initialize stage error.

        Args:
            target: Name of the target whose pipeline failed
            message: Short description of the failure
            stdout: Captured standard output of the failing process
            stderr: Captured standard error of the failing process
        """
        super().__init__(message)
        self.target = target
        self.message = message
        self.stdout = stdout or ""
        self.stderr = stderr or ""

    @property
    def diagnostics(self) -> str:
        """Captured process output, stderr first."""
        parts = []
        if self.stderr.strip():
            parts.append(f"stderr:\n{self.stderr.rstrip()}")
        if self.stdout.strip():
            parts.append(f"stdout:\n{self.stdout.rstrip()}")
        return "\n".join(parts)

    def __str__(self) -> str:
        text = f"{self.stage} failed for {self.target}: {self.message}"
        if self.diagnostics:
            text += f"\n{self.diagnostics}"
        return text


class FetchError(PipelineStageError):
    """Source acquisition failed."""

    stage = "fetch"


class BootstrapError(PipelineStageError):
    """Source-tree preparation (./bootstrap) failed."""

    stage = "bootstrap"


class ConfigureError(PipelineStageError):
    """Native configuration step failed."""

    stage = "configure"


class BuildError(PipelineStageError):
    """Native compile step failed."""

    stage = "build"


class InstallError(PipelineStageError):
    """Installing into the isolated prefix failed."""

    stage = "install"


class BindingGenerationError(PipelineStageError):
    """Header parsing or binding output failed."""

    stage = "binding generation"


class InvalidTransitionError(Exception):
    """Raised when a build step is requested out of order."""

    pass

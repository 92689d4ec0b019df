"""vendorbuild - reproducible vendored builds of native dependencies."""

from .build.orchestrator import BuildResult, Orchestrator
from .config.build_context import BuildContext, LinkMode

__version__ = "0.1.0"

__all__ = ["BuildContext", "BuildResult", "LinkMode", "Orchestrator", "__version__"]

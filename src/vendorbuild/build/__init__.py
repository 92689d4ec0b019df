"""
Build system components for vendorbuild.

This module provides the native build machinery including:
- External command execution
- Capability to configure-flag translation
- Autotools and CMake step drivers
- Link directive emission
- Binding generation

The pipelines and the orchestrator live in their own modules
(``vendorbuild.build.orchestrator``) since they depend on the packages layer.
"""

from .bindings import BindingGenerator, BindingSpec, DeclarationCollector
from .build_utils import detect_jobs, remove_tree
from .capabilities import (
    CANVAS_ALWAYS_DISABLED,
    CANVAS_CAPABILITIES,
    CANVAS_SYSTEM_LIBRARIES,
    Capability,
    CapabilityError,
    CapabilitySet,
    CapabilityTranslator,
)
from .command_runner import CommandLaunchError, CommandRunner, ExitResult, SubprocessRunner
from .errors import (
    BindingGenerationError,
    BootstrapError,
    BuildError,
    ConfigureError,
    FetchError,
    InstallError,
    InvalidTransitionError,
    PipelineStageError,
)
from .executor import AutotoolsExecutor, BuildExecutor, CMakeExecutor, TargetState
from .linker import DEFAULT_DIRECTIVE_PREFIX, Artifact, ArtifactKind, LinkEmitter

__all__ = [
    "BindingGenerator",
    "BindingSpec",
    "DeclarationCollector",
    "detect_jobs",
    "remove_tree",
    "CANVAS_ALWAYS_DISABLED",
    "CANVAS_CAPABILITIES",
    "CANVAS_SYSTEM_LIBRARIES",
    "Capability",
    "CapabilityError",
    "CapabilitySet",
    "CapabilityTranslator",
    "CommandLaunchError",
    "CommandRunner",
    "ExitResult",
    "SubprocessRunner",
    "BindingGenerationError",
    "BootstrapError",
    "BuildError",
    "ConfigureError",
    "FetchError",
    "InstallError",
    "InvalidTransitionError",
    "PipelineStageError",
    "AutotoolsExecutor",
    "BuildExecutor",
    "CMakeExecutor",
    "TargetState",
    "DEFAULT_DIRECTIVE_PREFIX",
    "Artifact",
    "ArtifactKind",
    "LinkEmitter",
]

"""libcaca pipeline.

libcaca is built with autotools. Its output drivers and integrations are
chosen by the caller's capability toggles; everything else optional is
switched off. The link mode picks between a static vendored build and a
shared build linked dynamically.
"""

from typing import List, Optional

from ..config.build_context import LinkMode
from .bindings import BindingSpec
from .capabilities import (
    CANVAS_ALWAYS_DISABLED,
    CANVAS_CAPABILITIES,
    CANVAS_SYSTEM_LIBRARIES,
    CapabilityTranslator,
)
from .linker import Artifact
from .pipeline import TargetPipeline

LIBRARY_NAME = "caca"
PUBLIC_HEADER = "caca0.h"
CONIO_HEADER = "caca_conio.h"


def canvas_translator() -> CapabilityTranslator:
    return CapabilityTranslator(CANVAS_CAPABILITIES, CANVAS_ALWAYS_DISABLED)


def link_mode_arguments(link_mode: LinkMode) -> List[str]:
    if link_mode is LinkMode.DYNAMIC:
        return ["--enable-shared", "--disable-static"]
    return ["--enable-static", "--disable-shared"]


class CanvasPipeline(TargetPipeline):
    """Builds libcaca with a caller-selected feature set."""

    translator = canvas_translator()

    def configure_arguments(self) -> List[str]:
        return link_mode_arguments(self.context.link_mode) + self.translator.translate(
            self.context.features, self.context.platform
        )

    def artifact(self) -> Artifact:
        if self.context.link_mode is LinkMode.DYNAMIC:
            return Artifact.dynamic(LIBRARY_NAME)
        return Artifact.static(LIBRARY_NAME)

    def capability_active(self, name: str) -> bool:
        return self.translator.is_active(name, self.context.features, self.context.platform)

    def system_libraries(self) -> List[Artifact]:
        return [
            Artifact.dynamic(library)
            for capability, library in CANVAS_SYSTEM_LIBRARIES.items()
            if self.capability_active(capability)
        ]

    def binding_spec(self, type_prefix: Optional[str] = None) -> BindingSpec:
        """Headers to bind, including platform-conditional ones that are switched on."""
        headers = [PUBLIC_HEADER]
        if self.capability_active("conio"):
            headers.append(CONIO_HEADER)
        return BindingSpec(tuple(headers), type_prefix=type_prefix, library=self.target.name)

"""Capability to configure-flag translation.

This module turns the caller's declarative feature toggles into the
command-line tokens of an autotools ``./configure`` script.

Design:
    - Capabilities are a plain data table: name, platforms it exists on,
      and an optional extra flag emitted when it is switched on
    - Capabilities unavailable on the current platform emit no token at all
    - A fixed list of auxiliary features is always disabled, whatever the
      caller asks for
    - Translation is deterministic: the same toggles and platform always
      produce the same tokens in the same order
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..packages.platform_utils import Platform

logger = logging.getLogger(__name__)


ANY_PLATFORM: FrozenSet[Platform] = frozenset(Platform)
WINDOWS_ONLY: FrozenSet[Platform] = frozenset({Platform.WINDOWS})
MACOS_ONLY: FrozenSet[Platform] = frozenset({Platform.MACOS})
UNIX_NON_MACOS: FrozenSet[Platform] = frozenset({Platform.UNIX})


class CapabilityError(Exception):
    """Raised when a capability table or toggle set is malformed."""

    pass


@dataclass(frozen=True)
class Capability:
    """One optional feature of a vendored dependency.

    Attributes:
        name: Feature name, used in ``--enable-<name>``/``--disable-<name>``
        platforms: Platforms on which the configure script has this switch
        extra_flag: Additional token emitted right after the enable token
    """

    name: str
    platforms: FrozenSet[Platform] = ANY_PLATFORM
    extra_flag: Optional[str] = None

    def available_on(self, platform: Platform) -> bool:
        return platform in self.platforms


class CapabilitySet:
    """Ordered mapping of capability name to on/off toggle.

    A missing toggle reads as disabled.
    """

    def __init__(self, toggles: Optional[Mapping[str, bool]] = None):
        self._toggles: "OrderedDict[str, bool]" = OrderedDict()
        for name, enabled in (toggles or {}).items():
            self._toggles[self.normalize(name)] = bool(enabled)

    @staticmethod
    def normalize(name: str) -> str:
        return name.strip().lower().replace("_", "-")

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "CapabilitySet":
        """Build a set where every listed name is switched on.

        Args:
            names: Capability names, e.g. parsed from "x11, ncurses"
        """
        return cls(OrderedDict((name, True) for name in names if name.strip()))

    @staticmethod
    def parse_list(value: str) -> List[str]:
        """Split a comma and/or whitespace separated feature list."""
        return [item for item in value.replace(",", " ").split() if item]

    def enabled(self, name: str) -> bool:
        return self._toggles.get(self.normalize(name), False)

    def names(self) -> List[str]:
        return list(self._toggles)

    def items(self) -> List[Tuple[str, bool]]:
        return list(self._toggles.items())

    def merged(self, other: "CapabilitySet") -> "CapabilitySet":
        """Return a new set where toggles in other override this one."""
        combined = OrderedDict(self._toggles)
        combined.update(other._toggles)
        return CapabilitySet(combined)

    def __eq__(self, other):
        if not isinstance(other, CapabilitySet):
            return NotImplemented
        return self._toggles == other._toggles

    def __repr__(self) -> str:
        return f"CapabilitySet({dict(self._toggles)!r})"


class CapabilityTranslator:
    """Translates a CapabilitySet into configure tokens.

    Example:
        >>> translator = CapabilityTranslator(CANVAS_CAPABILITIES, CANVAS_ALWAYS_DISABLED)
        >>> translator.translate(CapabilitySet({"x11": True}), Platform.UNIX)[:2]
        ['--enable-x11', '--with-X']
    """

    def __init__(
        self,
        capabilities: Sequence[Capability],
        always_disabled: Sequence[str] = (),
    ):
        """Initialize translator.

        Args:
            capabilities: Declared capability table, in emission order
            always_disabled: Features switched off unconditionally

        Raises:
            CapabilityError: If names repeat or overlap the fixed disable list
        """
        names = [cap.name for cap in capabilities]
        if len(set(names)) != len(names):
            raise CapabilityError(f"Duplicate capability in table: {names}")
        if len(set(always_disabled)) != len(always_disabled):
            raise CapabilityError("Duplicate entry in the always-disabled list")
        overlap = set(names) & set(always_disabled)
        if overlap:
            raise CapabilityError(
                f"Capabilities cannot also be always disabled: {', '.join(sorted(overlap))}"
            )

        self.capabilities = tuple(capabilities)
        self.always_disabled = tuple(always_disabled)
        self._by_name: Dict[str, Capability] = {cap.name: cap for cap in capabilities}

    def known(self, name: str) -> bool:
        return CapabilitySet.normalize(name) in self._by_name

    def unknown_names(self, caps: CapabilitySet) -> List[str]:
        """Names in caps that are not declared capabilities."""
        return [name for name in caps.names() if name not in self._by_name]

    def available(self, platform: Platform) -> List[Capability]:
        """Capabilities the configure script offers on platform."""
        return [cap for cap in self.capabilities if cap.available_on(platform)]

    def is_active(self, name: str, caps: CapabilitySet, platform: Platform) -> bool:
        """True if a capability is both available on platform and switched on."""
        cap = self._by_name.get(CapabilitySet.normalize(name))
        return cap is not None and cap.available_on(platform) and caps.enabled(cap.name)

    def translate(self, caps: CapabilitySet, platform: Platform) -> List[str]:
        """Translate toggles into configure tokens.

        Args:
            caps: Caller's feature toggles
            platform: Platform being built for

        Returns:
            Ordered list of configure tokens
        """
        for name in self.unknown_names(caps):
            logger.warning("Ignoring unknown capability '%s'", name)

        tokens: List[str] = []
        for cap in self.capabilities:
            if not cap.available_on(platform):
                continue
            if caps.enabled(cap.name):
                tokens.append(f"--enable-{cap.name}")
                if cap.extra_flag:
                    tokens.append(cap.extra_flag)
            else:
                tokens.append(f"--disable-{cap.name}")

        tokens.extend(f"--disable-{name}" for name in self.always_disabled)
        return tokens


# libcaca output drivers and optional integrations, in configure order.
CANVAS_CAPABILITIES: Tuple[Capability, ...] = (
    Capability("conio", WINDOWS_ONLY),
    Capability("win32", WINDOWS_ONLY),
    Capability("x11", UNIX_NON_MACOS, extra_flag="--with-X"),
    Capability("cocoa", MACOS_ONLY),
    Capability("ncurses"),
    Capability("slang"),
    Capability("gl"),
    Capability("network"),
    Capability("imlib2"),
)

# Language bindings, docs, tests, instrumentation and plugin loading.
CANVAS_ALWAYS_DISABLED: Tuple[str, ...] = (
    "kernel",
    "vga",
    "csharp",
    "java",
    "cxx",
    "python",
    "ruby",
    "php",
    "perl",
    "debug",
    "profiling",
    "plugins",
    "doc",
    "cppunit",
    "zzuf",
    "dependency-tracking",
    "silent-rules",
)

# Auxiliary system libraries an enabled capability must be linked against.
CANVAS_SYSTEM_LIBRARIES: Dict[str, str] = {
    "x11": "X11",
}

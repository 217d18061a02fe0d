"""Hook registry: callbacks that may change field values before they are built.

Callbacks have the signature ``(key, value, original_value) -> value``. For
each field they run in registration order; ``value`` is the previous
callback's result and ``original_value`` the value from the fixture source.

``global_hooks`` holds process-wide callbacks. Every FixtureBuilder takes a
snapshot of it when created, so later global registrations do not reach
existing builders and instance registrations never reach the global set.
Reset it between test runs with ``global_hooks.clear()``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable

from fixtureseed.errors import InvalidHookError
from fixtureseed.utils.naming import underscorize

logger = logging.getLogger(__name__)

HookCallback = Callable[[str, Any, Any], Any]


class HookKind(str, Enum):
    """Points in the build where hooks fire."""

    PRE_SET_BUILD = "pre_set_build"

    @classmethod
    def parse(cls, kind: HookKind | str) -> HookKind:
        """Accept a HookKind, its value, or a spelling such as ``"PreSetBuild"``."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls(underscorize(str(kind)))
        except ValueError:
            raise InvalidHookError(f"Invalid hook kind: {kind!r}") from None


class HookRegistry:
    """Callbacks keyed by (hook kind, entity)."""

    def __init__(self) -> None:
        self._callbacks: dict[tuple[HookKind, str], list[HookCallback]] = defaultdict(list)

    def register(self, kind: HookKind | str, entity: str, callback: HookCallback) -> None:
        kind = HookKind.parse(kind)
        if not callable(callback):
            raise InvalidHookError(f"Hook callback for {entity} is not callable")
        self._callbacks[(kind, entity)].append(callback)
        logger.debug(f"Registered {kind.value} hook for {entity}")

    def callbacks(self, kind: HookKind | str, entity: str) -> list[HookCallback]:
        return list(self._callbacks.get((HookKind.parse(kind), entity), []))

    def apply(self, kind: HookKind | str, entity: str, key: str, value: Any) -> Any:
        """Run the callback chain for one field and return the final value."""
        original = value
        for callback in self.callbacks(kind, entity):
            value = callback(key, value, original)
        return value

    def copy(self) -> HookRegistry:
        snapshot = HookRegistry()
        for key, callbacks in self._callbacks.items():
            snapshot._callbacks[key] = list(callbacks)
        return snapshot

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return sum(len(callbacks) for callbacks in self._callbacks.values())


global_hooks = HookRegistry()

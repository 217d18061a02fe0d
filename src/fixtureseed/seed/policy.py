"""Relationship include policies for seeds.

Exactly one policy is active on a seed at a time; each is an immutable value
and changing the policy replaces it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union


@dataclass(frozen=True)
class IncludeNone:
    """Only declared children are built (the default)."""

    def includes(self, entity: str) -> bool:
        return False


@dataclass(frozen=True)
class IncludeAll:
    """Every one-to-many relationship is built."""

    def includes(self, entity: str) -> bool:
        return True


@dataclass(frozen=True)
class IncludeList:
    """Only the listed relationships are built."""

    entities: tuple[str, ...] = ()

    def includes(self, entity: str) -> bool:
        return entity in self.entities

    def adding(self, names: Iterable[str]) -> IncludeList:
        return IncludeList(_merge(self.entities, names))


@dataclass(frozen=True)
class ExcludeList:
    """Every relationship except the listed ones is built."""

    entities: tuple[str, ...] = ()

    def includes(self, entity: str) -> bool:
        # An empty exclusion list behaves like IncludeNone
        return bool(self.entities) and entity not in self.entities

    def adding(self, names: Iterable[str]) -> ExcludeList:
        return ExcludeList(_merge(self.entities, names))


IncludePolicy = Union[IncludeNone, IncludeAll, IncludeList, ExcludeList]


def _merge(existing: tuple[str, ...], names: Iterable[str]) -> tuple[str, ...]:
    merged = list(existing)
    for name in names:
        if name not in merged:
            merged.append(name)
    return tuple(merged)

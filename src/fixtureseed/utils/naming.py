"""Name normalization helpers."""

from __future__ import annotations

import re
from typing import Iterable, TypeVar

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def underscorize(name: str) -> str:
    """Convert ``shopId`` / ``ShopID`` / ``shop_id`` to ``shop_id``."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name.strip()).replace("-", "_").lower()


def unique(items: Iterable[T]) -> list[T]:
    """Stable de-duplication: the first occurrence keeps its position."""
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result

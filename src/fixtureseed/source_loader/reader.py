"""Fixture source reader: decodes JSON and YAML fixture files into field maps.

A fixture file holds the records of one entity, named after the file stem
(``users.json`` → ``users``)::

    [
        {"user_id": 1, "shop_id": 1, "name": "Jimmy"}
    ]
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from fixtureseed.config.settings import get_settings
from fixtureseed.errors import SourceFormatError

logger = logging.getLogger(__name__)


class SourceFormat(str, Enum):
    """Detected fixture file format."""

    JSON = "json"
    YAML = "yaml"
    UNKNOWN = "unknown"


class FixtureSourceReader:
    """Finds fixture files in a directory and decodes them."""

    def __init__(self, patterns: Optional[list[str]] = None):
        self.patterns = patterns or get_settings().FIXTURE_PATTERNS

    @staticmethod
    def detect(path: Path, content: str = "") -> SourceFormat:
        """Detect the format from the extension, falling back to the content."""
        ext = path.suffix.lower().lstrip(".")
        mapping = {
            "json": SourceFormat.JSON,
            "yaml": SourceFormat.YAML,
            "yml": SourceFormat.YAML,
        }
        if ext in mapping:
            return mapping[ext]

        stripped = content.strip()
        if stripped.startswith("[") or stripped.startswith("{"):
            return SourceFormat.JSON
        if stripped.startswith("-"):
            return SourceFormat.YAML
        return SourceFormat.UNKNOWN

    def scan(self, directory: str | Path) -> dict[str, Path]:
        """Return fixture files keyed by entity name, sorted by name.

        When two files share a stem (``users.json`` and ``users.yaml``) the
        one matched by the earlier pattern wins.
        """
        directory = Path(directory)
        found: dict[str, Path] = {}
        if not directory.is_dir():
            return found
        for pattern in self.patterns:
            for path in sorted(directory.glob(pattern)):
                if path.is_file():
                    found.setdefault(path.stem, path)
        return dict(sorted(found.items()))

    def read(self, path: str | Path) -> Any:
        """Decode a fixture file. Raises SourceFormatError on malformed content."""
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceFormatError(path, f"unreadable ({e})") from e

        fmt = self.detect(path, content)
        try:
            if fmt == SourceFormat.JSON:
                data = json.loads(content) if content.strip() else None
            elif fmt == SourceFormat.YAML:
                data = yaml.safe_load(content)
            else:
                raise SourceFormatError(path, "unknown fixture format")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SourceFormatError(path, f"cannot decode {fmt.value} ({e})") from e

        logger.debug(f"Read fixture {path.name} as {fmt.value}")
        return data

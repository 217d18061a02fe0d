"""Schema provider for JSON or YAML schema definitions.

Accepts the simplified table format, which is handy for planning build
queues without a database::

    tables:
      - name: users
        columns:
          - {name: user_id, type: integer, pk: true}
          - {name: shop_id, type: integer, nullable: false}
          - "name:text"
        foreign_keys:
          - {column: shop_id, references: shops, references_column: shop_id}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from fixtureseed.schema.base import Column, ForeignKey, SchemaProvider


class DefinitionSchemaProvider(SchemaProvider):
    """Schema provider built from an in-memory table definition."""

    def __init__(self, definition: dict[str, Any]):
        self._columns: dict[str, dict[str, Column]] = {}
        self._foreign_keys: dict[str, list[ForeignKey]] = {}
        self._primary_keys: dict[str, list[str]] = {}
        for table in definition.get("tables", []):
            self._add_table(table)

    @classmethod
    def from_string(cls, content: str) -> DefinitionSchemaProvider:
        return cls(cls._load(content))

    @classmethod
    def from_file(cls, path: str | Path) -> DefinitionSchemaProvider:
        return cls.from_string(Path(path).read_text(encoding="utf-8"))

    @staticmethod
    def _load(content: str) -> dict:
        stripped = content.strip()
        if stripped.startswith("{"):
            return json.loads(stripped)
        return yaml.safe_load(stripped) or {}

    def _add_table(self, table: dict) -> None:
        name = table.get("name", table.get("table_name", ""))
        columns: dict[str, Column] = {}
        primary_key: list[str] = []

        for c in table.get("columns", []):
            if isinstance(c, str):
                # "column_name:type" format
                parts = c.split(":")
                column = Column(
                    name=parts[0].strip(),
                    data_type=parts[1].strip() if len(parts) > 1 else "varchar",
                )
            else:
                is_pk = c.get("pk", c.get("primary_key", c.get("is_primary_key", False)))
                column = Column(
                    name=c.get("name", c.get("column_name", "")),
                    nullable=c.get("nullable", True) and not is_pk,
                    data_type=c.get("type", c.get("data_type", "varchar")),
                    is_primary_key=is_pk,
                )
            if column.is_primary_key:
                primary_key.append(column.name)
            columns[column.name] = column

        self._columns[name] = columns
        self._primary_keys[name] = primary_key
        self._foreign_keys[name] = [
            ForeignKey(
                column=fk.get("column", fk.get("fk_column", "")),
                related_entity=fk.get("references", fk.get("referenced_table", "")),
                related_column=fk.get("references_column", fk.get("referenced_column", "id")),
            )
            for fk in table.get("foreign_keys", table.get("fks", []))
        ]

    def entities(self) -> list[str]:
        return list(self._columns)

    def get_columns(self, entity: str) -> dict[str, Column]:
        self.require_entity(entity)
        return self._columns[entity]

    def get_foreign_keys(self, entity: str) -> list[ForeignKey]:
        self.require_entity(entity)
        return self._foreign_keys[entity]

    def get_primary_key(self, entity: str) -> list[str]:
        self.require_entity(entity)
        return self._primary_keys[entity]

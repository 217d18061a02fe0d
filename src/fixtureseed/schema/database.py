"""Schema provider backed by SQLAlchemy runtime inspection."""

from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from fixtureseed.schema.base import Column, ForeignKey, SchemaProvider

logger = logging.getLogger(__name__)


class DatabaseSchemaProvider(SchemaProvider):
    """Reads tables, columns and keys from a live database.

    Metadata is cached per provider; call ``refresh()`` after DDL changes.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._entities: list[str] | None = None
        self._columns: dict[str, dict[str, Column]] = {}
        self._foreign_keys: dict[str, list[ForeignKey]] = {}
        self._primary_keys: dict[str, list[str]] = {}

    def refresh(self) -> None:
        self._entities = None
        self._columns.clear()
        self._foreign_keys.clear()
        self._primary_keys.clear()

    def entities(self) -> list[str]:
        if self._entities is None:
            self._entities = sorted(inspect(self.engine).get_table_names())
            logger.debug(f"Inspected {len(self._entities)} tables")
        return self._entities

    def get_columns(self, entity: str) -> dict[str, Column]:
        if entity not in self._columns:
            self.require_entity(entity)
            primary_key = set(self.get_primary_key(entity))
            self._columns[entity] = {
                col["name"]: Column(
                    name=col["name"],
                    nullable=bool(col.get("nullable", True)) and col["name"] not in primary_key,
                    data_type=str(col.get("type", "")).lower(),
                    is_primary_key=col["name"] in primary_key,
                )
                for col in inspect(self.engine).get_columns(entity)
            }
        return self._columns[entity]

    def get_foreign_keys(self, entity: str) -> list[ForeignKey]:
        if entity not in self._foreign_keys:
            self.require_entity(entity)
            foreign_keys = []
            for fk in inspect(self.engine).get_foreign_keys(entity):
                constrained = fk.get("constrained_columns") or []
                referred = fk.get("referred_columns") or []
                if len(constrained) != 1:
                    # Composite keys are not supported
                    logger.warning(f"Skipping composite foreign key on {entity}: {constrained}")
                    continue
                foreign_keys.append(ForeignKey(
                    column=constrained[0],
                    related_entity=fk["referred_table"],
                    related_column=referred[0] if referred else "id",
                ))
            self._foreign_keys[entity] = foreign_keys
        return self._foreign_keys[entity]

    def get_primary_key(self, entity: str) -> list[str]:
        if entity not in self._primary_keys:
            self.require_entity(entity)
            constraint = inspect(self.engine).get_pk_constraint(entity)
            self._primary_keys[entity] = list(constraint.get("constrained_columns") or [])
        return self._primary_keys[entity]

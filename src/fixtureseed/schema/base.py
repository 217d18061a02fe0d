"""Schema types and the abstract schema provider.

Providers only have to describe tables, columns, primary keys and foreign
keys. Relationships are derived from the foreign keys here, the same way
for every provider:

- many-to-one: every single-column foreign key of the entity;
- one-to-many: every foreign key of another entity that references it;
- join entities (exactly two foreign keys that together form the primary
  key) take part in neither direction and only expose their foreign keys.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fixtureseed.errors import UnknownEntityError


class RelationshipKind(str, Enum):
    """Direction of a relationship as seen from the entity being asked about."""

    MANY_TO_ONE = "many-to-one"
    ONE_TO_MANY = "one-to-many"


@dataclass(frozen=True)
class Column:
    """A column of an entity."""

    name: str
    nullable: bool = True
    data_type: str = ""
    is_primary_key: bool = False


@dataclass(frozen=True)
class ForeignKey:
    """A foreign key constraint: ``column`` references ``related_entity.related_column``."""

    column: str
    related_entity: str
    related_column: str = "id"


@dataclass(frozen=True)
class Relationship:
    """A relationship between two entities.

    ``column`` is the column on the entity being described. For many-to-one
    it is the local foreign key; for one-to-many it is the referenced column
    and ``related_column`` is the foreign key on ``related_entity``.
    """

    kind: RelationshipKind
    column: str
    related_entity: str
    related_column: str


class SchemaProvider(ABC):
    """Exposes column, key and relationship metadata per entity name."""

    @abstractmethod
    def entities(self) -> list[str]:
        """Return all entity names, in a stable order."""
        ...

    @abstractmethod
    def get_columns(self, entity: str) -> dict[str, Column]:
        """Return the columns of an entity keyed by name, in table order."""
        ...

    @abstractmethod
    def get_foreign_keys(self, entity: str) -> list[ForeignKey]:
        """Return the single-column foreign keys of an entity."""
        ...

    @abstractmethod
    def get_primary_key(self, entity: str) -> list[str]:
        """Return the primary key column names of an entity."""
        ...

    def has_entity(self, entity: str) -> bool:
        return entity in self.entities()

    def require_entity(self, entity: str) -> None:
        if not self.has_entity(entity):
            raise UnknownEntityError(entity)

    def is_join(self, entity: str) -> bool:
        """True for pure join entities such as ``categories_products``."""
        foreign_keys = self.get_foreign_keys(entity)
        if len(foreign_keys) != 2:
            return False
        primary_key = set(self.get_primary_key(entity))
        return bool(primary_key) and primary_key == {fk.column for fk in foreign_keys}

    def get_relationships(
        self, entity: str, kind: Optional[RelationshipKind | str] = None
    ) -> list[Relationship]:
        """Return relationships of an entity, optionally filtered by kind.

        Many-to-one relationships follow the entity's foreign key order;
        one-to-many relationships follow ``entities()`` order.
        """
        self.require_entity(entity)
        kind = RelationshipKind(kind) if kind is not None else None

        if self.is_join(entity):
            return []

        relationships: list[Relationship] = []

        if kind in (None, RelationshipKind.MANY_TO_ONE):
            for fk in self.get_foreign_keys(entity):
                relationships.append(Relationship(
                    kind=RelationshipKind.MANY_TO_ONE,
                    column=fk.column,
                    related_entity=fk.related_entity,
                    related_column=fk.related_column,
                ))

        if kind in (None, RelationshipKind.ONE_TO_MANY):
            for other in self.entities():
                if self.is_join(other):
                    continue
                for fk in self.get_foreign_keys(other):
                    if fk.related_entity != entity:
                        continue
                    relationships.append(Relationship(
                        kind=RelationshipKind.ONE_TO_MANY,
                        column=fk.related_column,
                        related_entity=other,
                        related_column=fk.column,
                    ))

        return relationships

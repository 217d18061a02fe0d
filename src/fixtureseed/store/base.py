"""Record type and the abstract record store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Record:
    """A single fixture record.

    ``values`` holds the assigned fields; after persistence it also holds
    any generated primary key values, and ``identity`` the primary key.
    """

    entity: str
    values: dict[str, Any] = field(default_factory=dict)
    identity: tuple = ()

    @property
    def persisted(self) -> bool:
        return bool(self.identity)

    @property
    def primary_key(self) -> Any:
        """Scalar primary key, or a tuple for join entities."""
        if len(self.identity) == 1:
            return self.identity[0]
        return self.identity or None

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]


class RecordStore(ABC):
    """Creates, persists and deletes records of named entities."""

    @abstractmethod
    def create_record(self, entity: str) -> Record:
        """Return a new, unsaved record for the entity."""
        ...

    @abstractmethod
    def set_field(self, record: Record, name: str, value: Any) -> None:
        """Assign a field; raises UnknownPropertyError for unknown columns."""
        ...

    @abstractmethod
    def persist(self, record: Record) -> Record:
        """Save the record; raises PersistenceError on constraint violations."""
        ...

    @abstractmethod
    def delete_all(self, entity: str) -> int:
        """Delete every row of the entity and return the number removed."""
        ...

"""SQLAlchemy record store: inserts and deletes fixture rows with Core statements."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import MetaData, Table, create_engine, event
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, NoSuchTableError

from fixtureseed.config.settings import get_settings
from fixtureseed.errors import PersistenceError, UnknownEntityError, UnknownPropertyError
from fixtureseed.store.base import Record, RecordStore

logger = logging.getLogger(__name__)


def create_database_engine(url: str, echo: bool | None = None) -> Engine:
    """Create an engine for fixture work. SQLite connections enforce foreign keys."""
    if echo is None:
        echo = get_settings().SQL_ECHO

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args, echo=echo)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info(f"Fixture database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


class DatabaseRecordStore(RecordStore):
    """Record store over reflected tables; every persist runs in its own transaction."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.metadata = MetaData()
        self._tables: dict[str, Table] = {}

    def table(self, entity: str) -> Table:
        if entity not in self._tables:
            try:
                self._tables[entity] = Table(entity, self.metadata, autoload_with=self.engine)
            except NoSuchTableError as e:
                raise UnknownEntityError(entity) from e
        return self._tables[entity]

    def create_record(self, entity: str) -> Record:
        self.table(entity)
        return Record(entity=entity)

    def set_field(self, record: Record, name: str, value: Any) -> None:
        table = self.table(record.entity)
        if name not in table.c:
            raise UnknownPropertyError(record.entity, name)
        record.values[name] = self._coerce(table.c[name].type, value)

    def persist(self, record: Record) -> Record:
        table = self.table(record.entity)
        stmt = table.insert()
        if record.values:
            stmt = stmt.values(dict(record.values))

        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
                identity = tuple(result.inserted_primary_key or ())
        except DBAPIError as e:
            raise PersistenceError(record.entity, str(e.orig)) from e

        for column, value in zip(table.primary_key.columns, identity):
            record.values.setdefault(column.name, value)
        record.identity = identity
        logger.debug(f"Persisted {record.entity} {record.primary_key}")
        return record

    def delete_all(self, entity: str) -> int:
        table = self.table(entity)
        try:
            with self.engine.begin() as conn:
                deleted = conn.execute(table.delete()).rowcount
        except DBAPIError as e:
            raise PersistenceError(entity, str(e.orig), operation="delete") from e
        logger.debug(f"Deleted {deleted} {entity} rows")
        return deleted

    @staticmethod
    def _coerce(column_type: sqltypes.TypeEngine, value: Any) -> Any:
        """Turn ISO strings from fixture files into the date objects DATE/DATETIME columns expect."""
        if not isinstance(value, str):
            return value
        if isinstance(column_type, sqltypes.DateTime):
            return datetime.fromisoformat(value)
        if isinstance(column_type, sqltypes.Date):
            return date.fromisoformat(value[:10])
        return value

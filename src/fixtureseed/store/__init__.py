"""Record stores: create, persist and delete fixture records."""

from fixtureseed.store.base import Record, RecordStore
from fixtureseed.store.database import DatabaseRecordStore, create_database_engine

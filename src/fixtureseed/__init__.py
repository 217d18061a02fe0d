"""fixtureseed: dependency-ordered test fixtures for relational databases."""

from fixtureseed.errors import FixtureError
from fixtureseed.fixture.builder import FixtureBuilder
from fixtureseed.fixture.hooks import HookKind, HookRegistry
from fixtureseed.schema.database import DatabaseSchemaProvider
from fixtureseed.schema.definition import DefinitionSchemaProvider
from fixtureseed.seed.node import Seed
from fixtureseed.store.database import DatabaseRecordStore, create_database_engine

__version__ = "0.1.0"

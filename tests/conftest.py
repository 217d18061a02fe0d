"""Shared fixtures: a SQLite shop database per test and fixture file roots."""

from pathlib import Path

import pytest

from fixtureseed.config.settings import Settings, set_settings
from fixtureseed.fixture.builder import FixtureBuilder
from fixtureseed.schema.database import DatabaseSchemaProvider
from fixtureseed.store.database import DatabaseRecordStore, create_database_engine

FIXTURES_ROOT = Path(__file__).parent / "fixtures"

SHOP_SCHEMA = """
CREATE TABLE shops (
    shop_id  INTEGER PRIMARY KEY,
    name     TEXT
);

CREATE TABLE suppliers (
    supplier_id INTEGER PRIMARY KEY,
    name        TEXT
);

CREATE TABLE users (
    user_id        INTEGER PRIMARY KEY,
    shop_id        INTEGER NOT NULL,
    name           TEXT,
    last_logged_in DATE,
    FOREIGN KEY(shop_id) REFERENCES shops(shop_id)
);

CREATE TABLE categories (
    category_id INTEGER PRIMARY KEY,
    parent_id   INTEGER,
    name        TEXT,
    ordinal     INTEGER,
    FOREIGN KEY(parent_id) REFERENCES categories(category_id)
);

CREATE TABLE products (
    product_id  INTEGER PRIMARY KEY,
    shop_id     INTEGER NOT NULL,
    supplier_id INTEGER,
    name        TEXT,
    version     TEXT,
    catalog     TEXT,
    price       REAL,
    FOREIGN KEY(shop_id) REFERENCES shops(shop_id),
    FOREIGN KEY(supplier_id) REFERENCES suppliers(supplier_id)
);

CREATE TABLE product_descriptions (
    product_description_id INTEGER PRIMARY KEY,
    product_id  INTEGER NOT NULL,
    description TEXT,
    locale      TEXT,
    FOREIGN KEY(product_id) REFERENCES products(product_id)
);

CREATE TABLE offerings (
    offering_id INTEGER PRIMARY KEY,
    product_id  INTEGER NOT NULL,
    price       REAL,
    valid_from  DATE,
    valid_until DATE,
    version     TEXT,
    FOREIGN KEY(product_id) REFERENCES products(product_id)
);

CREATE TABLE price_tiers (
    price_tier_id INTEGER PRIMARY KEY,
    offering_id   INTEGER NOT NULL,
    min_units     INTEGER NOT NULL,
    price         REAL,
    FOREIGN KEY(offering_id) REFERENCES offerings(offering_id)
);

CREATE TABLE categories_products (
    category_id INTEGER NOT NULL,
    product_id  INTEGER NOT NULL,
    FOREIGN KEY(category_id) REFERENCES categories(category_id),
    FOREIGN KEY(product_id) REFERENCES products(product_id),
    PRIMARY KEY(category_id, product_id)
)
"""


def count_rows(engine, table: str) -> int:
    with engine.connect() as conn:
        return conn.exec_driver_sql(f"SELECT COUNT(*) FROM {table}").scalar()


@pytest.fixture(autouse=True)
def isolated_configuration():
    """No configured database, no global hooks and default settings around each test."""
    set_settings(Settings(DATABASE_URL=None))
    FixtureBuilder.set_database(None)
    FixtureBuilder.reset_global_hooks()
    yield
    FixtureBuilder.set_database(None)
    FixtureBuilder.reset_global_hooks()
    set_settings(None)


@pytest.fixture
def engine(tmp_path):
    engine = create_database_engine(f"sqlite:///{tmp_path / 'fixtures.db'}")
    with engine.begin() as conn:
        for statement in SHOP_SCHEMA.split(";"):
            if statement.strip():
                conn.exec_driver_sql(statement)
    yield engine
    engine.dispose()


@pytest.fixture
def schema(engine):
    return DatabaseSchemaProvider(engine)


@pytest.fixture
def store(engine):
    return DatabaseRecordStore(engine)

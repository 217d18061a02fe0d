"""Fixture builder: creates fixture records in dependency order and removes them again.

Fixture files are found in a root directory (one JSON or YAML file per
entity, named after the entity). A replacements root may override single
entities with very specific records, e.g. fixtures shipped with a test
module. Seeds can be added for programmatic fixtures.

Only entities in the white list, and whatever they depend on, are built;
without a white list everything found is built.

Typical use in a test suite::

    FixtureBuilder.set_database("sqlite:///test.db")
    fixture = FixtureBuilder.create("tests/fixtures", white_list=["users"])
    records = fixture.build()
    ...
    fixture.tear_down()

A failed build tears down whatever it created before the error is
re-raised. Teardown empties the built tables in reverse build order; it
does not reset generated identifiers.

The builder is not thread-safe and owns its record store while building.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, ClassVar, Iterable, Optional

from sqlalchemy.engine import Engine

from fixtureseed.config.settings import get_settings
from fixtureseed.errors import (
    EmptyFixtureRootError,
    InvalidFixtureError,
    MissingDependencyError,
    NoDatabaseConfiguredError,
)
from fixtureseed.fixture.hooks import HookCallback, HookKind, HookRegistry, global_hooks
from fixtureseed.fixture.materializer import SeedMaterializer
from fixtureseed.planner.dependency_queue import DependencyQueueBuilder
from fixtureseed.schema.base import SchemaProvider
from fixtureseed.schema.database import DatabaseSchemaProvider
from fixtureseed.seed.node import Seed
from fixtureseed.source_loader.reader import FixtureSourceReader
from fixtureseed.store.base import Record, RecordStore
from fixtureseed.store.database import DatabaseRecordStore, create_database_engine
from fixtureseed.utils.naming import unique

logger = logging.getLogger(__name__)

FixtureSource = list[dict[str, Any]] | Seed


class FixtureBuilder:
    """Loads fixture sources, builds their records and tears them down."""

    _database: ClassVar[Optional[tuple[RecordStore, SchemaProvider]]] = None

    # ------------------------------------------------------------------
    # Class-level configuration
    # ------------------------------------------------------------------

    @classmethod
    def set_database(cls, database: Engine | str | None) -> None:
        """Set the database used by ``create()``. Pass None to unset it."""
        if database is None:
            cls._database = None
            return
        engine = create_database_engine(database) if isinstance(database, str) else database
        cls._database = (DatabaseRecordStore(engine), DatabaseSchemaProvider(engine))

    @classmethod
    def create(
        cls,
        root: str | Path | None,
        white_list: Optional[Iterable[str]] = None,
        replacements_root: str | Path | None = None,
        *,
        store: Optional[RecordStore] = None,
        schema: Optional[SchemaProvider] = None,
        hooks: Optional[HookRegistry] = None,
    ) -> FixtureBuilder:
        """Create a builder and load its fixture files.

        The store and schema default to the database given to
        ``set_database()``, or to FIXTURES_DATABASE_URL.
        """
        if store is None or schema is None:
            default_store, default_schema = cls._configured_database()
            store = store or default_store
            schema = schema or default_schema

        fixture = cls(root, store, schema, white_list, replacements_root, hooks=hooks)
        fixture.load()
        return fixture

    @classmethod
    def _configured_database(cls) -> tuple[RecordStore, SchemaProvider]:
        if cls._database is None:
            url = get_settings().DATABASE_URL
            if not url:
                raise NoDatabaseConfiguredError(
                    "Database not set: call FixtureBuilder.set_database() or set FIXTURES_DATABASE_URL"
                )
            cls.set_database(url)
        return cls._database

    @classmethod
    def register_global_hook_callback(cls, kind: HookKind | str, entity: str, callback: HookCallback) -> None:
        """Register a hook for every builder created from now on."""
        global_hooks.register(kind, entity, callback)

    @classmethod
    def reset_global_hooks(cls) -> None:
        global_hooks.clear()

    # ------------------------------------------------------------------
    # Instance
    # ------------------------------------------------------------------

    def __init__(
        self,
        root: str | Path | None,
        store: RecordStore,
        schema: SchemaProvider,
        white_list: Optional[Iterable[str]] = None,
        replacements_root: str | Path | None = None,
        hooks: Optional[HookRegistry] = None,
        reader: Optional[FixtureSourceReader] = None,
        rng: Optional[random.Random] = None,
    ):
        self.root = Path(root) if root is not None else None
        self.replacements_root = Path(replacements_root) if replacements_root is not None else None
        self.store = store
        self.schema = schema
        if isinstance(white_list, str):
            white_list = [white_list]
        self.white_list = list(white_list) if white_list else None
        self.hooks = (hooks if hooks is not None else global_hooks).copy()
        self.reader = reader or FixtureSourceReader()
        self.rng = rng or random.Random(get_settings().RANDOM_SEED)
        self.queues = DependencyQueueBuilder(schema)

        self.sources: dict[str, FixtureSource] = {}
        self._teardown_plan: list[str] = []
        # Entities in the order their first record was persisted
        self._created: list[str] = []
        self._completed: set[str] = set()
        self._building: set[str] = set()
        self._results: dict[str, list[Record]] = {}

    @property
    def teardown_plan(self) -> list[str]:
        return list(self._teardown_plan)

    def register_hook_callback(self, kind: HookKind | str, entity: str, callback: HookCallback) -> None:
        """Register a hook for this builder only."""
        self.hooks.register(kind, entity, callback)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read every fixture file. Replacement files win over root files of the same entity."""
        if self.replacements_root is not None:
            self._load_directory(self.replacements_root)
        if self.root is not None:
            self._load_directory(self.root)
        logger.info(f"Loaded fixtures for {len(self.sources)} entities: {sorted(self.sources)}")

    def _load_directory(self, directory: Path) -> None:
        files = self.reader.scan(directory)
        if not files:
            raise EmptyFixtureRootError(directory)

        for entity, path in files.items():
            if entity in self.sources:
                continue
            self.sources[entity] = self._validate_records(path, self.reader.read(path))

    @staticmethod
    def _validate_records(path: Path, data: Any) -> list[dict[str, Any]]:
        if not data:
            raise InvalidFixtureError(path)
        if not isinstance(data, list) or not all(isinstance(record, dict) for record in data):
            raise InvalidFixtureError(path, "expected a list of records")
        return [dict(record) for record in data]

    def add_seed(self, seed: Seed) -> FixtureBuilder:
        """Build the seed tree instead of any fixture file for its entity."""
        if seed.parent is not None:
            raise ValueError(f"Only root seeds can be added, {seed.entity} has a parent")
        self.sources[seed.entity] = seed
        return self

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def build_queue(self) -> list[str]:
        """Entities to build, in order, for every white-listed source."""
        queue: list[str] = []
        for entity, source in self.sources.items():
            if self.white_list and entity not in self.white_list:
                continue
            queue.extend(self.queues.fixture_queue(entity, self.sources))

        queue = unique(queue)
        self._check_seed_dependencies(queue)
        logger.info(f"Build queue: {queue}")
        return queue

    def _check_seed_dependencies(self, queue: list[str]) -> None:
        """Entities a seed queue needs but its tree does not create must have a source."""
        seeds = [s for e, s in self.sources.items() if isinstance(s, Seed) and e in queue]
        created = {entity for seed in seeds for entity in self.queues.tree_entities(seed)}

        for seed in seeds:
            for entity in seed.compute_build_queue():
                if entity not in created and entity not in self.sources:
                    raise MissingDependencyError(seed.entity, entity)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> dict[str, list[Record]]:
        """Create all records in dependency order; return them per entity.

        On any error everything built so far is torn down and the error is
        re-raised unchanged.
        """
        self._completed = set()
        self._created = []
        self._results = {}

        try:
            queue = self.build_queue()
            self._teardown_plan = list(queue)

            for entity in queue:
                self._build_entity(entity)

        except Exception:
            logger.error(f"Fixture build failed, tearing down {self._teardown_plan}")
            self._tear_down_after_failure()
            raise

        summary = ", ".join(f"{e}={len(r)}" for e, r in self._results.items())
        logger.info(f"Built fixtures: {summary}")
        return dict(self._results)

    def _build_entity(self, entity: str) -> None:
        if entity in self._completed or entity in self._building:
            return

        source = self.sources.get(entity)
        if source is None:
            # Created by the seed tree that includes it
            return

        self._building.add(entity)
        try:
            if isinstance(source, Seed):
                self._build_seed(source)
            else:
                self._build_records(entity, source)
        finally:
            self._building.discard(entity)

        self._completed.add(entity)

    def _build_records(self, entity: str, records: list[dict[str, Any]]) -> None:
        for record_data in records:
            self._build_record(entity, record_data)
        logger.info(f"Built {len(records)} {entity} records")

    def _build_seed(self, seed: Seed) -> None:
        tree = self.queues.tree_entities(seed)
        # Entities the tree creates itself, not from their file sources
        claimed = [entity for entity in tree if entity not in self._building]
        self._building.update(claimed)
        try:
            materializer = SeedMaterializer(self.schema, self._build_record, self.rng)
            materializer.materialize(seed)
        finally:
            self._building.difference_update(claimed)
        self._completed.update(tree)

    def _build_record(self, entity: str, values: dict[str, Any]) -> Record:
        record = self.store.create_record(entity)
        foreign_keys = {fk.column: fk.related_entity for fk in self.schema.get_foreign_keys(entity)}

        for key, value in values.items():
            value = self.hooks.apply(HookKind.PRE_SET_BUILD, entity, key, value)
            if key in foreign_keys and value is not None:
                self._ensure_built(foreign_keys[key], entity)
            self.store.set_field(record, key, value)

        self.store.persist(record)
        self._results.setdefault(entity, []).append(record)
        if entity not in self._created:
            self._created.append(entity)
        if entity not in self._teardown_plan:
            self._teardown_plan.append(entity)
        return record

    def _ensure_built(self, related: str, entity: str) -> None:
        """Build a referenced entity that has a source but has not been built yet."""
        if related == entity or related in self._completed or related in self._building:
            return
        if related not in self.sources:
            return

        logger.info(f"Building {related} ahead of {entity}")
        created_before = len(self._created)
        self._build_entity(related)
        self._plan_before(self._created[created_before:], entity)

    def _plan_before(self, entities: list[str], entity: str) -> None:
        """Move entities built out of queue order just ahead of the entity that needed them.

        ``entities`` are in creation order, so their own dependencies stay
        ahead of them and teardown still deletes referencing rows first.
        """
        if entity not in self._teardown_plan:
            return
        for moved in entities:
            if moved in self._teardown_plan:
                self._teardown_plan.remove(moved)
        position = self._teardown_plan.index(entity)
        self._teardown_plan[position:position] = entities

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def tear_down(self) -> None:
        """Delete all records of every built entity, in reverse build order."""
        if not self._teardown_plan:
            logger.debug("Nothing to tear down")
            return

        entities = unique(reversed(self._teardown_plan))
        for entity in entities:
            deleted = self.store.delete_all(entity)
            logger.debug(f"Deleted {deleted} {entity} records")

        logger.info(f"Tore down {len(entities)} entities: {entities}")
        self._teardown_plan = []
        self._completed = set()
        self._created = []

    def _tear_down_after_failure(self) -> None:
        try:
            self.tear_down()
        except Exception:
            logger.exception("Teardown after a failed build failed as well")

"""Tests for turning seed trees into records."""

import random

from fixtureseed.fixture.materializer import SeedMaterializer
from fixtureseed.schema.definition import DefinitionSchemaProvider
from fixtureseed.seed.node import Seed
from fixtureseed.store.base import Record

LEDGER_SCHEMA = """
tables:
  - name: accounts
    columns:
      - {name: account_id, type: integer, pk: true}
      - "name:text"
  - name: transfers
    columns:
      - {name: transfer_id, type: integer, pk: true}
      - {name: from_account_id, type: integer, nullable: false}
      - {name: to_account_id, type: integer}
      - "amount:integer"
    foreign_keys:
      - {column: from_account_id, references: accounts, references_column: account_id}
      - {column: to_account_id, references: accounts, references_column: account_id}
"""


class InMemoryRecords:
    """build_record stand-in that numbers records per entity."""

    def __init__(self, schema):
        self.schema = schema
        self.records = []

    def __call__(self, entity, values):
        key = self.schema.get_primary_key(entity)[0]
        identity = sum(1 for r in self.records if r.entity == entity) + 1
        record = Record(entity=entity, values={**values, key: identity}, identity=(identity,))
        self.records.append(record)
        return record

    def of(self, entity):
        return [r for r in self.records if r.entity == entity]


class TestSeedMaterializer:
    """Tests for SeedMaterializer."""

    def setup_method(self):
        self.schema = DefinitionSchemaProvider.from_string(LEDGER_SCHEMA)
        self.records = InMemoryRecords(self.schema)
        self.materializer = SeedMaterializer(self.schema, self.records, random.Random(42))

    def test_counts_per_parent(self):
        seed = Seed(self.schema, "accounts", 2)
        seed.add_child("transfers", 3).set_property("amount", 10, 20)

        counts = self.materializer.materialize(seed)

        assert counts == {"accounts": 2, "transfers": 6}
        assert [r["amount"] for r in self.records.of("transfers")] == [10, 20, 10, 20, 10, 20]

    def test_children_link_to_current_parent(self):
        seed = Seed(self.schema, "accounts", 2)
        seed.add_child("transfers", 2)

        self.materializer.materialize(seed)

        assert [r["from_account_id"] for r in self.records.of("transfers")] == [1, 1, 2, 2]

    def test_route_selects_foreign_key(self):
        seed = Seed(self.schema, "accounts", 1)
        seed.add_child("transfers", 2, route="to_account_id").set_property("from_account_id", 7)

        self.materializer.materialize(seed)

        for transfer in self.records.of("transfers"):
            assert transfer["to_account_id"] == 1
            assert transfer["from_account_id"] == 7

    def test_link_overrides_specified_value(self):
        seed = Seed(self.schema, "accounts", 1)
        seed.add_child("transfers", 1).set_property("from_account_id", 99)

        self.materializer.materialize(seed)

        assert self.records.of("transfers")[0]["from_account_id"] == 1

    def test_included_relationship_without_child_builds_one_per_parent(self):
        seed = Seed(self.schema, "accounts", 3).include_all()

        counts = self.materializer.materialize(seed)

        assert counts == {"accounts": 3, "transfers": 3}

    def test_seed_record_is_last_persisted(self):
        seed = Seed(self.schema, "accounts", 2).set_property("name", lambda s, n: f"Account {n}")
        child = seed.add_child("transfers", 1).set_property("amount", lambda s, n: len(s.up().record["name"]) + n)

        self.materializer.materialize(seed)

        assert seed.record["name"] == "Account 2"
        assert child.record.persisted
        assert [r["amount"] for r in self.records.of("transfers")] == [10, 11]

    def test_zero_count_builds_nothing(self):
        seed = Seed(self.schema, "accounts", 0)
        seed.add_child("transfers", 2)

        assert self.materializer.materialize(seed) == {}
        assert self.records.records == []

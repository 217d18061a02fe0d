"""Tests for seed and fixture build queues."""

import pytest

from fixtureseed.errors import MissingDependencyError, MissingForeignKeyError
from fixtureseed.planner.dependency_queue import DependencyQueueBuilder
from fixtureseed.schema.definition import DefinitionSchemaProvider
from fixtureseed.seed.node import Seed

LIBRARY_SCHEMA = """
tables:
  - name: books
    columns:
      - {name: book_id, type: integer, pk: true}
      - {name: editor_id, type: integer, nullable: true}
      - "title:text"
    foreign_keys:
      - {column: editor_id, references: editors, references_column: editor_id}
  - name: chapters
    columns:
      - {name: chapter_id, type: integer, pk: true}
      - {name: book_id, type: integer, nullable: false}
    foreign_keys:
      - {column: book_id, references: books, references_column: book_id}
  - name: editors
    columns:
      - {name: editor_id, type: integer, pk: true}
      - "name:text"
"""

CYCLIC_SCHEMA = """
tables:
  - name: a
    columns:
      - {name: a_id, type: integer, pk: true}
      - {name: b_id, type: integer, nullable: false}
    foreign_keys:
      - {column: b_id, references: b, references_column: b_id}
  - name: b
    columns:
      - {name: b_id, type: integer, pk: true}
      - {name: a_id, type: integer, nullable: false}
    foreign_keys:
      - {column: a_id, references: a, references_column: a_id}
"""


class TestSeedQueue:
    """Tests for Seed.build_queue against the shop schema."""

    def test_required_parent_comes_first(self, schema):
        assert Seed(schema, "users").build_queue() == ["shops", "users"]

    def test_nullable_parent_is_not_a_dependency(self, schema):
        queue = Seed(schema, "products").build_queue()
        assert queue == ["shops", "products"]
        assert "suppliers" not in queue

    def test_include_all_with_child(self, schema):
        seed = Seed(schema, "products")
        seed.include_all().add_child("offerings")
        assert seed.build_queue() == ["shops", "products", "offerings", "product_descriptions"]

    def test_include_all_on_child(self, schema):
        seed = Seed(schema, "products")
        seed.include_all().add_child("offerings").include_all()
        assert seed.build_queue() == [
            "shops", "products", "offerings", "price_tiers", "product_descriptions",
        ]

    def test_include_relation_restricts_root(self, schema):
        seed = Seed(schema, "products")
        seed.include_all().add_child("offerings").include_all()
        seed.include_relation(["offerings"])
        assert seed.build_queue() == ["shops", "products", "offerings", "price_tiers"]

    def test_multi_level_tree(self, schema):
        seed = Seed(schema, "products")
        (seed.set_property("catalog", "movie")
             .add_child("offerings", 2)
                 .add_child("price_tiers", 3)
                 .up("products")
             .add_child("product_descriptions", 2))
        assert seed.build_queue() == [
            "shops", "products", "offerings", "price_tiers", "product_descriptions",
        ]

    def test_exclude_relation(self, schema):
        seed = Seed(schema, "products").exclude_relation("offerings")
        assert seed.build_queue() == ["shops", "products", "product_descriptions"]

    def test_dependencies_only(self, schema):
        seed = Seed(schema, "products").include_all()
        assert seed.build_queue(dependencies_only=True) == ["shops", "products"]

    def test_queue_has_no_duplicates(self, schema):
        seed = Seed(schema, "shops").include_all()
        seed.add_child("products").include_all().add_child("offerings").include_all()
        queue = seed.build_queue()
        assert len(queue) == len(set(queue))
        assert queue.index("shops") < queue.index("products") < queue.index("offerings")

    def test_every_required_parent_precedes_entity(self, schema):
        seed = Seed(schema, "shops").include_all()
        queue = seed.build_queue()
        for entity in queue:
            for fk in schema.get_foreign_keys(entity):
                column = schema.get_columns(entity)[fk.column]
                if not column.nullable and fk.related_entity != entity:
                    assert queue.index(fk.related_entity) < queue.index(entity)

    def test_join_entities_are_never_reached(self, schema):
        seed = Seed(schema, "products").include_all()
        assert "categories_products" not in seed.build_queue()


class TestTreeEntities:
    """Tests for the entities a seed tree creates itself."""

    def test_tree_entities(self, schema):
        seed = Seed(schema, "products")
        seed.include_all().add_child("offerings")
        assert DependencyQueueBuilder(schema).tree_entities(seed) == [
            "products", "offerings", "product_descriptions",
        ]

    def test_tree_entities_exclude_parents(self, schema):
        seed = Seed(schema, "users")
        assert DependencyQueueBuilder(schema).tree_entities(seed) == ["users"]


class TestDefinitionSchemaQueue:
    """Build queues over a schema definition instead of a database."""

    def setup_method(self):
        self.schema = DefinitionSchemaProvider.from_string(LIBRARY_SCHEMA)

    def test_children_follow_definition_order(self):
        seed = Seed(self.schema, "books").include_all()
        assert seed.build_queue() == ["books", "chapters"]

    def test_required_parent(self):
        assert Seed(self.schema, "chapters").build_queue() == ["books", "chapters"]

    def test_nullable_parent_skipped(self):
        assert "editors" not in Seed(self.schema, "books").build_queue()

    def test_cyclic_required_keys_terminate(self):
        schema = DefinitionSchemaProvider.from_string(CYCLIC_SCHEMA)
        assert Seed(schema, "a").build_queue() == ["b", "a"]


class TestFixtureQueue:
    """Tests for queues derived from flat fixture records."""

    def test_required_dependency(self, schema):
        sources = {
            "shops": [{"shop_id": 1}],
            "users": [{"user_id": 1, "shop_id": 1}],
        }
        assert DependencyQueueBuilder(schema).fixture_queue("users", sources) == ["shops", "users"]

    def test_missing_required_key_raises(self, schema):
        sources = {
            "shops": [{"shop_id": 1}],
            "users": [{"user_id": 1, "shop_id": 1}, {"user_id": 2}],
        }
        with pytest.raises(MissingForeignKeyError) as excinfo:
            DependencyQueueBuilder(schema).fixture_queue("users", sources)
        assert excinfo.value.column == "shop_id"

    def test_missing_dependency_source_raises(self, schema):
        sources = {"users": [{"user_id": 1, "shop_id": 1}]}
        with pytest.raises(MissingDependencyError) as excinfo:
            DependencyQueueBuilder(schema).fixture_queue("users", sources)
        assert excinfo.value.dependency == "shops"

    def test_optional_key_counts_when_set(self, schema):
        sources = {
            "shops": [{"shop_id": 1}],
            "suppliers": [{"supplier_id": 1}],
            "products": [{"product_id": 1, "shop_id": 1}, {"product_id": 2, "shop_id": 1, "supplier_id": 1}],
        }
        queue = DependencyQueueBuilder(schema).fixture_queue("products", sources)
        assert set(queue) == {"shops", "suppliers", "products"}
        assert queue[-1] == "products"

    def test_optional_key_ignored_when_unset(self, schema):
        sources = {
            "shops": [{"shop_id": 1}],
            "suppliers": [{"supplier_id": 1}],
            "products": [{"product_id": 1, "shop_id": 1}],
        }
        assert DependencyQueueBuilder(schema).fixture_queue("products", sources) == ["shops", "products"]

    def test_self_reference_is_not_a_dependency(self, schema):
        sources = {"categories": [{"category_id": 1}, {"category_id": 2, "parent_id": 1}]}
        assert DependencyQueueBuilder(schema).fixture_queue("categories", sources) == ["categories"]

    def test_seed_source_uses_seed_queue(self, schema):
        seed = Seed(schema, "products")
        seed.add_child("offerings")
        sources = {"shops": [{"shop_id": 1}], "products": seed}
        assert DependencyQueueBuilder(schema).fixture_queue("products", sources) == [
            "shops", "products", "offerings",
        ]

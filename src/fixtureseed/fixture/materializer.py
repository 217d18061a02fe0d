"""Seed materializer: turns a seed tree into persisted records.

The tree is walked along the same relationships the seed's build queue
follows. A seed builds ``count`` records per parent record (the root builds
``count`` in total); a relationship included by policy without a declared
child builds one record per parent record. Each child record is linked to
its parent through the child's foreign key.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Optional

from fixtureseed.planner.dependency_queue import DependencyQueueBuilder
from fixtureseed.schema.base import Relationship, SchemaProvider
from fixtureseed.seed.node import Seed
from fixtureseed.store.base import Record

logger = logging.getLogger(__name__)

BuildRecord = Callable[[str, dict[str, Any]], Record]


class SeedMaterializer:
    """Generates field maps from value specifications and hands them to ``build_record``."""

    def __init__(self, schema: SchemaProvider, build_record: BuildRecord, rng: Optional[random.Random] = None):
        self.schema = schema
        self.queues = DependencyQueueBuilder(schema)
        self.build_record = build_record
        self.rng = rng or random.Random()
        self._sequence: dict[Seed, int] = {}

    def materialize(self, seed: Seed) -> dict[str, int]:
        """Build every record of the tree rooted at ``seed``; return record counts per entity."""
        seed.compute_build_queue()
        counts: dict[str, int] = {}
        self._build(seed, seed.entity, context=seed, node=seed, link=None, path=frozenset(), counts=counts)
        logger.info(f"Materialized seed {seed.entity}: {counts}")
        return counts

    def _build(
        self,
        root: Seed,
        entity: str,
        context: Optional[Seed],
        node: Optional[Seed],
        link: Optional[tuple[str, Any]],
        path: frozenset[str],
        counts: dict[str, int],
    ) -> None:
        path = path | {entity}
        children = self._children(root, entity, context, node, path)
        count = node.count if node is not None else 1

        for _ in range(count):
            record = self._build_one(entity, node, link)
            counts[entity] = counts.get(entity, 0) + 1

            for relationship, child_context, child_node in children:
                child_link = (relationship.related_column, record.get(relationship.column))
                self._build(
                    root,
                    relationship.related_entity,
                    context=child_context,
                    node=child_node,
                    link=child_link,
                    path=path,
                    counts=counts,
                )

    def _children(
        self,
        root: Seed,
        entity: str,
        context: Optional[Seed],
        node: Optional[Seed],
        path: frozenset[str],
    ) -> list[tuple[Relationship, Optional[Seed], Optional[Seed]]]:
        """Relationships to follow from ``entity``, one per child entity.

        The policy context follows the build queue exactly; the node that
        supplies values is the child declared under ``node``, falling back to
        the child the queue found on the root.
        """
        chosen: dict[str, tuple[Relationship, Optional[Seed], Optional[Seed]]] = {}
        for relationship, child_context in self.queues.included_children(root, entity, context, path):
            related = relationship.related_entity
            child_node = node.child_named(related) if node is not None else None
            if child_node is None:
                child_node = child_context

            route = child_node.route if child_node is not None else None
            if route is not None and relationship.related_column != route:
                continue
            chosen.setdefault(related, (relationship, child_context, child_node))
        return list(chosen.values())

    def _build_one(self, entity: str, node: Optional[Seed], link: Optional[tuple[str, Any]]) -> Record:
        values: dict[str, Any] = {}

        if node is not None:
            number = self._sequence.get(node, 0) + 1
            self._sequence[node] = number
            for name, spec in node.specs.items():
                values[name] = spec.evaluate(node, number, self.rng)

        if link is not None:
            column, value = link
            values[column] = value

        record = self.build_record(entity, values)
        if node is not None:
            node.record = record
        return record

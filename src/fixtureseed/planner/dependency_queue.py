"""Dependency queue builder: the order in which fixture entities are created.

Two flavours share the same rule (required parents before the entity):

- seed queues walk the schema from a seed's entity, up through required
  many-to-one relationships and down through the one-to-many relationships
  the seed tree includes;
- fixture queues are derived from flat records, following the foreign keys
  the records actually set.

Self-references are never followed. Queues are stable-deduplicated, so an
entity keeps the position where it was first reached.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional

from fixtureseed.errors import MissingDependencyError, MissingForeignKeyError
from fixtureseed.schema.base import Relationship, RelationshipKind, SchemaProvider
from fixtureseed.utils.naming import unique

if TYPE_CHECKING:
    from fixtureseed.seed.node import Seed

logger = logging.getLogger(__name__)


class DependencyQueueBuilder:
    """Computes build queues against a schema provider."""

    def __init__(self, schema: SchemaProvider):
        self.schema = schema

    # ------------------------------------------------------------------
    # Seed queues
    # ------------------------------------------------------------------

    def seed_queue(
        self,
        seed: Seed,
        entity: Optional[str] = None,
        dependencies_only: bool = False,
        context: Optional[Seed] = None,
    ) -> list[str]:
        """Build queue for ``entity`` (default: the seed's entity).

        ``seed`` is the node the queue is computed for; explicit children are
        looked up on it. ``context`` is the seed whose include policy decides
        which one-to-many relationships of ``entity`` are followed; it
        defaults to ``seed``.
        """
        queue = self._seed_queue(seed, entity or seed.entity, dependencies_only, context, frozenset())
        logger.debug(f"Build queue for seed {seed.entity}: {queue}")
        return queue

    def _seed_queue(
        self,
        seed: Seed,
        entity: str,
        dependencies_only: bool,
        context: Optional[Seed],
        path: frozenset[str],
    ) -> list[str]:
        if context is None:
            context = seed
        path = path | {entity}

        queue: list[str] = []

        # Upward: required parents, ignoring the include policy
        columns = self.schema.get_columns(entity)
        for relationship in self.schema.get_relationships(entity, RelationshipKind.MANY_TO_ONE):
            related = relationship.related_entity
            if related == entity or related in path:
                continue
            if not columns[relationship.column].nullable:
                queue.extend(self._seed_queue(seed, related, True, context, path))

        queue.append(entity)

        # Downward: included children
        if not dependencies_only:
            for relationship, child in self.included_children(seed, entity, context, path):
                queue.extend(self._seed_queue(seed, relationship.related_entity, False, child, path))

        return unique(queue)

    def included_children(
        self,
        seed: Seed,
        entity: str,
        context: Optional[Seed] = None,
        path: frozenset[str] = frozenset(),
    ) -> Iterator[tuple[Relationship, Optional[Seed]]]:
        """One-to-many relationships of ``entity`` that the seed tree builds.

        Yields each relationship with the explicit child declared on ``seed``
        (or None). A relationship is followed when such a child exists or
        when the context's policy includes it.
        """
        if context is None:
            context = seed
        for relationship in self.schema.get_relationships(entity, RelationshipKind.ONE_TO_MANY):
            related = relationship.related_entity
            if related == entity or related in path:
                continue
            child = seed.child_named(related)
            if child is None and not context.should_include(related):
                continue
            yield relationship, child

    def tree_entities(self, seed: Seed) -> list[str]:
        """Entities whose records the seed tree itself creates."""
        entities: list[str] = []

        def visit(entity: str, context: Optional[Seed], path: frozenset[str]) -> None:
            entities.append(entity)
            path = path | {entity}
            for relationship, child in self.included_children(seed, entity, context, path):
                visit(relationship.related_entity, child, path)

        visit(seed.entity, seed, frozenset())
        return unique(entities)

    # ------------------------------------------------------------------
    # Flat fixture queues
    # ------------------------------------------------------------------

    def fixture_queue(self, entity: str, sources: Mapping[str, Any]) -> list[str]:
        """Build queue for an entity whose source is a list of records.

        Nullable foreign keys are dependencies only when a record sets them;
        required ones must be set by every record. Each dependency needs a
        source of its own, flat or seed.
        """
        return self._fixture_queue(entity, sources, frozenset())

    def _fixture_queue(self, entity: str, sources: Mapping[str, Any], path: frozenset[str]) -> list[str]:
        source = sources[entity]
        if not isinstance(source, list):
            return source.compute_build_queue()

        records = source
        columns = self.schema.get_columns(entity)

        optional = []
        required = []
        for fk in self.schema.get_foreign_keys(entity):
            if fk.related_entity == entity:
                continue
            if columns[fk.column].nullable:
                optional.append(fk)
            else:
                required.append(fk)

        dependencies: list[str] = []

        for fk in optional:
            if any(fk.column in record for record in records):
                dependencies.append(fk.related_entity)

        for fk in required:
            for record in records:
                if fk.column not in record:
                    raise MissingForeignKeyError(entity, fk.column)
            dependencies.append(fk.related_entity)

        path = path | {entity}
        queue: list[str] = []
        for dependency in dependencies:
            if dependency not in sources:
                raise MissingDependencyError(entity, dependency)
            if dependency in path:
                continue
            queue.extend(self._fixture_queue(dependency, sources, path))

        queue.append(entity)
        return unique(queue)

"""Seeds: fluent, programmatic fixture specifications.

A seed describes "build N records of an entity". Seeds form a tree: a child
seed builds its records once per record of its parent and is linked to it
through the child's foreign key. Seeds are built for chaining::

    seed = Seed(schema, "products", 10)
    (seed.set_property("catalog", "movie")
         .set_property("version", "DVD", "Blu-Ray").random()
         .set_property("price").min(10).max(30).random()
         .set_property("name", lambda seed, n: f"Cool Product #{n}")
         .add_child("offerings", 2)
             .set_property("price", 49.95, 69.95)
             .add_child("price_tiers", 3)
                 .set_property("min_units", 3, 5, 10)
                 .up("products")
         .add_child("product_descriptions", 2)
             .set_property("locale", "da", "se"))

This creates 10 products, 2 offerings per product, 3 price tiers per
offering and 2 descriptions per product. Property names are columns of the
seed's entity; camelCase names are accepted and mapped to snake_case.

Addressing a property with no value leaves it open until ``min``, ``max``
or ``set_value`` completes it; structural calls made while a property is
open raise OpenAssignmentError.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from fixtureseed.errors import (
    AncestorNotFoundError,
    InvalidModifierError,
    NoParentError,
    OpenAssignmentError,
    UnknownPropertyError,
)
from fixtureseed.planner.dependency_queue import DependencyQueueBuilder
from fixtureseed.schema.base import SchemaProvider
from fixtureseed.seed.policy import ExcludeList, IncludeAll, IncludeList, IncludeNone, IncludePolicy
from fixtureseed.seed.value_spec import Candidates, Interval, ValueSpec, from_arguments, from_value
from fixtureseed.utils.naming import underscorize, unique

if TYPE_CHECKING:
    from fixtureseed.store.base import Record

logger = logging.getLogger(__name__)


class Seed:
    """A node in a seed tree describing how to build records of one entity."""

    def __init__(
        self,
        schema: SchemaProvider,
        entity: str,
        count: int = 1,
        parent: Optional[Seed] = None,
    ):
        if count < 0:
            raise ValueError("count must be >= 0")

        self.schema = schema
        self.entity = entity
        self.count = count
        self.route: Optional[str] = None
        self.policy: IncludePolicy = IncludeNone()
        # Last record persisted for this seed
        self.record: Optional[Record] = None

        # The tree is owned top-down; the parent link is navigational only
        self._parent = weakref.ref(parent) if parent is not None else None
        self._children: list[Seed] = []
        self._specifications: dict[str, Optional[ValueSpec]] = {}
        self._last_property: Optional[str] = None
        self._open_value = False

    def __repr__(self) -> str:
        return f"Seed({self.entity!r}, count={self.count})"

    # ------------------------------------------------------------------
    # Property assignment
    # ------------------------------------------------------------------

    def set_property(self, name: str, *args: Any) -> Seed:
        """Specify a property.

        No arguments opens the property for a modifier. One value is a
        constant, a callable ``(seed, number)`` is a generator, and two or
        more values are candidates.
        """
        column = self._resolve_property(name)
        spec = from_arguments(args)

        self._specifications[column] = spec
        self._last_property = column
        self._open_value = spec is None
        return self

    def random(self) -> Seed:
        """Pick candidate values, or values within the min/max interval, at random."""
        column, spec = self._addressed("random")
        if isinstance(spec, Candidates) or (isinstance(spec, Interval) and spec.bounded):
            self._specifications[column] = replace(spec, random=True)
            return self
        raise InvalidModifierError(
            f"random() can only be applied to candidate values or intervals, not to {column}"
        )

    def min(self, value: Any) -> Seed:
        return self._set_bound("min", value)

    def max(self, value: Any) -> Seed:
        return self._set_bound("max", value)

    def set_value(self, value: Any) -> Seed:
        """Replace the addressed property's specification with a constant or a generator."""
        column, _ = self._addressed("set_value")
        self._specifications[column] = from_value(value)
        self._open_value = False
        return self

    @property
    def specs(self) -> dict[str, Optional[ValueSpec]]:
        """Property specifications; an open property maps to None."""
        return dict(self._specifications)

    def has_property(self, name: str) -> bool:
        try:
            self._resolve_property(name)
        except UnknownPropertyError:
            return False
        return True

    def _set_bound(self, bound: str, value: Any) -> Seed:
        column, spec = self._addressed(bound)
        if isinstance(spec, Interval):
            interval = spec
        else:
            interval = Interval(random=getattr(spec, "random", False))
        self._specifications[column] = interval.with_bound(**{bound: value})
        self._open_value = False
        return self

    def _addressed(self, modifier: str) -> tuple[str, Optional[ValueSpec]]:
        if self._last_property is None:
            raise InvalidModifierError(f"{modifier}() needs a property to modify")
        return self._last_property, self._specifications.get(self._last_property)

    def _resolve_property(self, name: str) -> str:
        columns = self.schema.get_columns(self.entity)
        if name in columns:
            return name
        by_lower = {column.lower(): column for column in columns}
        normalized = underscorize(name)
        if normalized in by_lower:
            return by_lower[normalized]
        raise UnknownPropertyError(self.entity, name)

    def _guard(self) -> None:
        if self._open_value:
            raise OpenAssignmentError(self._last_property)

    # ------------------------------------------------------------------
    # Tree navigation
    # ------------------------------------------------------------------

    @property
    def parent(self) -> Optional[Seed]:
        return self._parent() if self._parent is not None else None

    @property
    def children(self) -> tuple[Seed, ...]:
        return tuple(self._children)

    @property
    def root(self) -> Seed:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def is_entity(self, entity: str) -> bool:
        return self.entity == entity

    def child_named(self, entity: str) -> Optional[Seed]:
        for child in self._children:
            if child.is_entity(entity):
                return child
        return None

    def walk(self) -> Iterator[Seed]:
        """This seed and all descendants, depth first."""
        yield self
        for child in self._children:
            yield from child.walk()

    def add_child(self, entity: str, count: int = 1, route: Optional[str] = None) -> Seed:
        """Return the child seed for an entity, creating it on first use.

        ``route`` names the child's foreign key column to link through when
        the child references this entity more than once.
        """
        self._guard()

        existing = self.child_named(entity)
        if existing is not None:
            return existing

        self.schema.require_entity(entity)
        if route is not None and route not in self.schema.get_columns(entity):
            raise UnknownPropertyError(entity, route)

        child = Seed(self.schema, entity, count, parent=self)
        child.route = route
        self._children.append(child)

        if not isinstance(self.policy, IncludeAll):
            included = self.policy if isinstance(self.policy, IncludeList) else IncludeList()
            self.policy = included.adding([entity])

        logger.debug(f"Added child seed {entity} x{count} under {self.entity}")
        return child

    def up(self, ancestor: Optional[str] = None) -> Seed:
        """Return the parent seed, or the nearest ancestor seed of ``ancestor``."""
        self._guard()

        pointer = self.parent
        if pointer is None and ancestor is None:
            raise NoParentError(f"The {self.entity} seed has no parent")

        if ancestor is None:
            return pointer

        while pointer is not None:
            if pointer.is_entity(ancestor):
                return pointer
            pointer = pointer.parent

        raise AncestorNotFoundError(f"No {ancestor} seed above the {self.entity} seed")

    # ------------------------------------------------------------------
    # Include policy
    # ------------------------------------------------------------------

    def include_all(self) -> Seed:
        self._guard()
        self.policy = IncludeAll()
        return self

    def include_none(self) -> Seed:
        self._guard()
        self.policy = IncludeNone()
        return self

    def include_relation(self, relation: str | Iterable[str]) -> Seed:
        """Build only the named relationships. A single name is added to the current list."""
        self._guard()
        if isinstance(relation, str):
            current = self.policy if isinstance(self.policy, IncludeList) else IncludeList()
            self.policy = current.adding([relation])
        else:
            self.policy = IncludeList(tuple(unique(relation)))
        return self

    def exclude_relation(self, relation: str | Iterable[str]) -> Seed:
        """Build every relationship except the named ones. A single name is added to the current list."""
        self._guard()
        if isinstance(relation, str):
            current = self.policy if isinstance(self.policy, ExcludeList) else ExcludeList()
            self.policy = current.adding([relation])
        else:
            self.policy = ExcludeList(tuple(unique(relation)))
        return self

    def should_include(self, entity: str) -> bool:
        return self.policy.includes(entity)

    # ------------------------------------------------------------------
    # Build queue
    # ------------------------------------------------------------------

    def build_queue(
        self,
        entity: Optional[str] = None,
        dependencies_only: bool = False,
        context: Optional[Seed] = None,
    ) -> list[str]:
        """Entity names in build order for this seed, dependencies first."""
        self._guard()
        return DependencyQueueBuilder(self.schema).seed_queue(self, entity, dependencies_only, context)

    def compute_build_queue(self) -> list[str]:
        """Build queue of the whole tree; every seed in it must be complete."""
        for seed in self.walk():
            seed._guard()
        return self.build_queue()

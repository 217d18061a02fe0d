"""Schema providers: column, key and relationship metadata per entity."""

from fixtureseed.schema.base import (
    Column,
    ForeignKey,
    Relationship,
    RelationshipKind,
    SchemaProvider,
)
from fixtureseed.schema.database import DatabaseSchemaProvider
from fixtureseed.schema.definition import DefinitionSchemaProvider

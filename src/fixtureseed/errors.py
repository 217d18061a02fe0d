"""Custom exception classes for fixture building."""

from __future__ import annotations


class FixtureError(Exception):
    """Base exception for all fixture errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(FixtureError):
    """Raised when the builder is not configured to run."""


class NoDatabaseConfiguredError(ConfigurationError):
    """Raised when a builder is created before a database is configured."""


class EmptyFixtureRootError(ConfigurationError):
    """Raised when a fixture root contains no fixture files."""

    def __init__(self, root):
        self.root = root
        super().__init__(f"The fixture root {root} does not contain any fixtures")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class FixtureValidationError(FixtureError):
    """Raised when a fixture, seed or schema lookup is invalid."""


class UnknownEntityError(FixtureValidationError):
    """Raised when an entity is not part of the schema."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"Unknown entity: {entity}")


class UnknownPropertyError(FixtureValidationError):
    """Raised when a property is not a column of its entity."""

    def __init__(self, entity: str, property_name: str):
        self.entity = entity
        self.property_name = property_name
        super().__init__(f"Unknown property name {property_name!r} on {entity}")


class InvalidFixtureError(FixtureValidationError):
    """Raised when a fixture source is empty or not a list of records."""

    def __init__(self, source, reason: str = "empty or malformed"):
        self.source = source
        super().__init__(f"Invalid fixture {source}: {reason}")


class SourceFormatError(InvalidFixtureError):
    """Raised when a fixture file cannot be decoded."""


class MissingForeignKeyError(FixtureValidationError):
    """Raised when a fixture record lacks a required foreign key."""

    def __init__(self, entity: str, column: str):
        self.entity = entity
        self.column = column
        super().__init__(f"Invalid fixture {entity}: every record requires foreign key {column}")


class MissingDependencyError(FixtureValidationError):
    """Raised when an entity depends on an entity that has no fixture source."""

    def __init__(self, entity: str, dependency: str):
        self.entity = entity
        self.dependency = dependency
        super().__init__(
            f"Unable to create fixture for {entity} due to missing data for dependency {dependency}"
        )


class OpenAssignmentError(FixtureValidationError):
    """Raised when a property assignment was begun but never finished."""

    def __init__(self, property_name: str):
        self.property_name = property_name
        super().__init__(f"Assignment to property {property_name!r} was begun but never finished")


class InvalidModifierError(FixtureValidationError):
    """Raised when random/min/max is applied where it has no meaning."""


class InvalidHookError(FixtureValidationError):
    """Raised when a hook callback is registered for an unknown hook kind."""


class SeedNavigationError(FixtureValidationError):
    """Raised when moving up a seed tree fails."""


class NoParentError(SeedNavigationError):
    """Raised when up() is called on a root seed."""


class AncestorNotFoundError(SeedNavigationError):
    """Raised when no ancestor seed matches the requested entity."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(FixtureError):
    """Raised when the record store rejects an insert or a delete."""

    def __init__(self, entity: str, message: str, operation: str = "persist"):
        self.entity = entity
        self.operation = operation
        target = "record" if operation == "persist" else "records"
        super().__init__(f"Unable to {operation} {entity} {target}: {message}")

# schemashift/schemashift/__init__.py
"""
schemashift

Versioned schema migrations for SQL databases. A schema is a set of
numbered versions, each with an up migration and a down migration that is
either written by hand or derived from the up SQL.

Example usage:
    from schemashift import Schema, MigrationWorker, AdapterRegistry

    schema = Schema()
    schema.define(1).up("create table city(id int, name text);")
    schema.define(2).up("create view city_names as select name from city;")

    async with AdapterRegistry.create_adapter_from_url("sqlite:///app.db") as db:
        await MigrationWorker(db, schema).up()
"""

from .version import __version__
from .exceptions import SchemaShiftError, ConfigurationError

# Database layer
from .database import (
    DatabaseEngine,
    DatabaseConnectionConfig,
    DatabaseError,
    AdapterRegistry,
)

# Migrations
from .database.migrations import (
    Schema,
    Definition,
    MigrationWorker,
    MigrationConfig,
    Version,
    MigrationError,
    SchemaValidationError,
    InvalidVersionError,
    PreviouslyFailedError,
    VersionLockedError,
    UnappliedVersionError,
    MissingPlanError,
    MigrationExecutionError,
)

# Package metadata
__title__ = "schemashift"
__license__ = "MIT"

__all__ = [
    "__version__",
    "SchemaShiftError",
    "ConfigurationError",
    "DatabaseEngine",
    "DatabaseConnectionConfig",
    "DatabaseError",
    "AdapterRegistry",
    "Schema",
    "Definition",
    "MigrationWorker",
    "MigrationConfig",
    "Version",
    "MigrationError",
    "SchemaValidationError",
    "InvalidVersionError",
    "PreviouslyFailedError",
    "VersionLockedError",
    "UnappliedVersionError",
    "MissingPlanError",
    "MigrationExecutionError",
]

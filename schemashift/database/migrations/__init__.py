"""
Schema Migrations for schemashift.

A :class:`Schema` holds numbered versions. Each version has an up migration
(SQL, a transaction function or a database function) and a down migration
that is either defined explicitly or derived from the up SQL. A
:class:`MigrationWorker` moves a database between versions and records the
applied versions in a migrations table.

Author: schemashift
Version: 1.0.0
"""

from .config import MigrationConfig
from .definition import Definition, Executor, ExecutorKind
from .ddl import DDLAction, DDLVerb, DBObjectType, parse_actions
from .exceptions import (
    MigrationError,
    SchemaValidationError,
    InvalidVersionError,
    PreviouslyFailedError,
    VersionLockedError,
    UnappliedVersionError,
    MissingPlanError,
    MigrationExecutionError,
)
from .history import MigrationHistory
from .models import ValidationIssue, Version, VersionSummary
from .plan import MigrationPlan
from .schema import Schema
from .tokenizer import Statement, parse_statements, split_statements
from .worker import MigrationWorker

__all__ = [
    # Schema definition
    'Schema',
    'Definition',
    'Executor',
    'ExecutorKind',
    'MigrationPlan',
    'ValidationIssue',

    # Worker
    'MigrationWorker',
    'MigrationConfig',
    'MigrationHistory',
    'Version',
    'VersionSummary',

    # SQL analysis
    'Statement',
    'parse_statements',
    'split_statements',
    'DDLAction',
    'DDLVerb',
    'DBObjectType',
    'parse_actions',

    # Exceptions
    'MigrationError',
    'SchemaValidationError',
    'InvalidVersionError',
    'PreviouslyFailedError',
    'VersionLockedError',
    'UnappliedVersionError',
    'MissingPlanError',
    'MigrationExecutionError',
]

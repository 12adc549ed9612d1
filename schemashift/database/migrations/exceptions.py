"""
Migration Exceptions for schemashift.

This module provides the exceptions raised while validating a schema and
while a worker moves a database between versions.

Author: schemashift
Version: 1.0.0
"""

from typing import Any, List, Optional, Sequence

from ..exceptions import DatabaseError, DatabaseErrorContext


class MigrationError(DatabaseError):
    """Base exception for migration-related errors."""

    def __init__(
        self,
        message: str,
        version_id: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        self.version_id = version_id
        context = kwargs.pop('context', None) or DatabaseErrorContext(
            operation=f"migration_{operation}" if operation else "migration",
            additional_info={'version_id': version_id}
        )
        super().__init__(message, context=context, **kwargs)


class SchemaValidationError(MigrationError):
    """
    Exception raised when a schema has validation errors.

    All errors found in the schema are collected and reported together in
    ``errors``; each renders as ``"<version>: <description>"``.
    """

    def __init__(self, errors: Sequence[Any], **kwargs):
        self.errors = list(errors)
        message = "; ".join(str(error) for error in self.errors)
        super().__init__(message, operation="validation", **kwargs)


class InvalidVersionError(MigrationError):
    """Exception raised for a version id that the schema does not define."""

    def __init__(self, version_id: int, **kwargs):
        super().__init__(f"invalid version id={version_id}", version_id=version_id, **kwargs)


class PreviouslyFailedError(MigrationError):
    """
    Exception raised when a version is marked as failed.

    A failed version is left behind when a migration that ran outside a
    transaction did not complete. It must be repaired by hand and cleared
    with ``force`` before any further migrations run.
    """

    def __init__(self, version_id: int, **kwargs):
        super().__init__(f"{version_id}: previously failed", version_id=version_id, **kwargs)


class VersionLockedError(MigrationError):
    """Exception raised when a down migration would pass a locked version."""

    def __init__(self, version_id: int, **kwargs):
        super().__init__(
            f"database version locked id={version_id}",
            version_id=version_id,
            operation="lock",
            **kwargs
        )


class UnappliedVersionError(MigrationError):
    """Exception raised when an operation needs an applied version."""

    def __init__(self, version_id: int, operation: str, **kwargs):
        super().__init__(
            f"cannot {operation} unapplied version id={version_id}",
            version_id=version_id,
            operation=operation,
            **kwargs
        )


class MissingPlanError(MigrationError):
    """Exception raised when the database holds a version the schema does not define."""

    def __init__(self, version_id: int, **kwargs):
        super().__init__(
            f"{version_id}: missing plan for applied version",
            version_id=version_id,
            **kwargs
        )


class MigrationExecutionError(MigrationError):
    """Exception raised when running a version's up or down migration fails."""

    def __init__(self, version_id: int, original_error: Exception, direction: str = "up", **kwargs):
        self.direction = direction
        super().__init__(
            f"{version_id}: {original_error}",
            version_id=version_id,
            operation=direction,
            original_error=original_error,
            **kwargs
        )


__all__ = [
    'MigrationError',
    'SchemaValidationError',
    'InvalidVersionError',
    'PreviouslyFailedError',
    'VersionLockedError',
    'UnappliedVersionError',
    'MissingPlanError',
    'MigrationExecutionError',
]

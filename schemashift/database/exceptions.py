"""
Database Exceptions for schemashift.

This module provides the hierarchy of database-specific exceptions raised by
the adapters, with context describing the database, operation and query that
failed.

Author: schemashift
Version: 1.0.0
"""

import re
from typing import Any, Dict, Optional, List
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..exceptions import SchemaShiftError


@dataclass
class DatabaseErrorContext:
    """Context information for database errors."""

    database_name: Optional[str] = None
    engine: Optional[str] = None
    operation: Optional[str] = None
    query: Optional[str] = None
    table_name: Optional[str] = None
    connection_id: Optional[str] = None
    transaction_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    additional_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            'database_name': self.database_name,
            'engine': self.engine,
            'operation': self.operation,
            'query': self.query,
            'table_name': self.table_name,
            'connection_id': self.connection_id,
            'transaction_id': self.transaction_id,
            'timestamp': self.timestamp.isoformat(),
            'additional_info': self.additional_info
        }


class DatabaseError(SchemaShiftError):
    """Base exception for all database-related errors."""

    def __init__(
        self,
        message: str,
        context: Optional[DatabaseErrorContext] = None,
        original_error: Optional[Exception] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.context = context or DatabaseErrorContext()
        self.original_error = original_error
        self.error_code = error_code
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        """String representation of the error."""
        base_msg = super().__str__()

        if self.context.database_name:
            base_msg += f" (Database: {self.context.database_name})"
            if self.context.operation:
                base_msg += f" (Operation: {self.context.operation})"

        if self.error_code:
            base_msg += f" (Code: {self.error_code})"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': str(self),
            'error_code': self.error_code,
            'timestamp': self.timestamp.isoformat(),
            'context': self.context.to_dict() if self.context else None,
            'original_error': str(self.original_error) if self.original_error else None
        }


class DatabaseConnectionError(DatabaseError):
    """Exception raised when database connection fails."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        context: Optional[DatabaseErrorContext] = None,
        **kwargs
    ):
        if context is None:
            context = DatabaseErrorContext(
                database_name=database,
                operation="connection",
                additional_info={
                    'host': host,
                    'port': port
                }
            )
        super().__init__(message, context=context, **kwargs)


class QueryError(DatabaseError):
    """Exception raised when query execution fails."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        parameters: Optional[List[Any]] = None,
        context: Optional[DatabaseErrorContext] = None,
        **kwargs
    ):
        if context is None:
            context = DatabaseErrorContext(operation="query_execution")
        context.query = self._sanitize_query(query) if query else context.query
        context.additional_info.setdefault(
            'parameter_count', len(parameters) if parameters else 0
        )
        super().__init__(message, context=context, **kwargs)

    @staticmethod
    def _sanitize_query(query: str) -> str:
        """Sanitize query for safe logging."""
        query = re.sub(r"password\s*=\s*['\"][^'\"]*['\"]", "password='***'", query, flags=re.IGNORECASE)

        # Truncate very long queries
        if len(query) > 1000:
            query = query[:1000] + "... [truncated]"

        return query


class TransactionError(DatabaseError):
    """Exception raised when beginning, committing or rolling back a transaction fails."""

    def __init__(
        self,
        message: str,
        transaction_id: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        context = DatabaseErrorContext(
            operation=f"transaction_{operation}" if operation else "transaction",
            transaction_id=transaction_id
        )
        super().__init__(message, context=context, **kwargs)


class DatabaseConfigurationError(DatabaseError):
    """Exception raised when database configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = DatabaseErrorContext(
            operation="configuration",
            additional_info={
                'config_key': config_key,
                'config_value': str(config_value) if config_value is not None else None
            }
        )
        super().__init__(message, context=context, **kwargs)


class AdapterNotAvailableError(DatabaseConfigurationError):
    """Exception raised when the driver library for an engine is not installed."""

    def __init__(self, engine: str, package: str, **kwargs):
        super().__init__(
            f"{engine} adapter requires the '{package}' package",
            config_key="engine",
            config_value=engine,
            **kwargs
        )


def wrap_database_error(
    original_error: Exception,
    operation: str,
    database_name: Optional[str] = None,
    query: Optional[str] = None,
    engine: Optional[str] = None
) -> DatabaseError:
    """
    Wrap a driver exception in the appropriate DatabaseError subclass.

    Args:
        original_error: The exception raised by the driver
        operation: Operation being performed (e.g. "execute_query")
        database_name: Name of the database
        query: Query being executed, if any
        engine: Database engine name

    Returns:
        DatabaseError carrying the original error and its context
    """
    if isinstance(original_error, DatabaseError):
        return original_error

    context = DatabaseErrorContext(
        database_name=database_name,
        engine=engine,
        operation=operation
    )
    message = f"{operation} failed: {original_error}"
    error_name = type(original_error).__name__.lower()

    if 'connection' in error_name or isinstance(original_error, (ConnectionRefusedError, OSError)):
        return DatabaseConnectionError(
            message,
            database=database_name,
            context=context,
            original_error=original_error
        )

    if query is not None:
        return QueryError(
            message,
            query=query,
            context=context,
            original_error=original_error
        )

    return DatabaseError(message, context=context, original_error=original_error)

"""
Database Integration Module for schemashift.

This module provides the connection configuration, adapters and error types
that the migration worker runs on.

Supported Databases:
- PostgreSQL (via asyncpg)
- MySQL (via aiomysql)
- SQLite (via aiosqlite)

Author: schemashift
Version: 1.0.0
"""

from .config import (
    DatabaseEngine,
    DatabaseCredentials,
    DatabaseConnectionConfig,
    create_postgresql_config,
    create_mysql_config,
    create_sqlite_config,
)

from .exceptions import (
    DatabaseErrorContext,
    DatabaseError,
    DatabaseConnectionError,
    QueryError,
    TransactionError,
    DatabaseConfigurationError,
    AdapterNotAvailableError,
)

from .adapters import (
    DatabaseAdapter,
    DatabaseConnection,
    QueryResult,
    TransactionContext,
    AdapterRegistry,
    PostgreSQLAdapter,
    MySQLAdapter,
    SQLiteAdapter,
)

__all__ = [
    # Configuration
    'DatabaseEngine',
    'DatabaseCredentials',
    'DatabaseConnectionConfig',
    'create_postgresql_config',
    'create_mysql_config',
    'create_sqlite_config',

    # Exceptions
    'DatabaseErrorContext',
    'DatabaseError',
    'DatabaseConnectionError',
    'QueryError',
    'TransactionError',
    'DatabaseConfigurationError',
    'AdapterNotAvailableError',

    # Adapters
    'DatabaseAdapter',
    'DatabaseConnection',
    'QueryResult',
    'TransactionContext',
    'AdapterRegistry',
    'PostgreSQLAdapter',
    'MySQLAdapter',
    'SQLiteAdapter',
]

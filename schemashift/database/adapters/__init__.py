"""
Database Adapters for schemashift.

Each adapter wraps one async driver behind the :class:`DatabaseAdapter`
interface. Drivers are optional dependencies; an adapter whose driver is
not installed raises :class:`AdapterNotAvailableError` when created.

Author: schemashift
Version: 1.0.0
"""

from .base import DatabaseAdapter, DatabaseConnection, QueryResult, TransactionContext
from .postgresql import PostgreSQLAdapter, ASYNCPG_AVAILABLE
from .mysql import MySQLAdapter, AIOMYSQL_AVAILABLE
from .sqlite import SQLiteAdapter, AIOSQLITE_AVAILABLE
from .registry import AdapterRegistry

__all__ = [
    # Base classes
    'DatabaseAdapter',
    'DatabaseConnection',
    'QueryResult',
    'TransactionContext',

    # Adapters
    'PostgreSQLAdapter',
    'MySQLAdapter',
    'SQLiteAdapter',

    # Registry
    'AdapterRegistry',

    # Driver availability
    'ASYNCPG_AVAILABLE',
    'AIOMYSQL_AVAILABLE',
    'AIOSQLITE_AVAILABLE',
]

"""
SQLite Database Adapter for schemashift.

This module provides the SQLite adapter, built on aiosqlite. The connection
runs in autocommit mode and transactions are opened explicitly with
``BEGIN IMMEDIATE``, so DDL statements take part in transactions.

Author: schemashift
Version: 1.0.0
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import DatabaseConnectionConfig, DatabaseEngine
from ..exceptions import AdapterNotAvailableError
from ..migrations.tokenizer import split_statements
from .base import DatabaseAdapter, DatabaseConnection, QueryResult

# Optional dependency
try:
    import aiosqlite
    AIOSQLITE_AVAILABLE = True
except ImportError:
    AIOSQLITE_AVAILABLE = False
    aiosqlite = None


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter using aiosqlite."""

    supports_transactional_ddl = True

    def __init__(self, config: DatabaseConnectionConfig):
        if not AIOSQLITE_AVAILABLE:
            raise AdapterNotAvailableError(DatabaseEngine.SQLITE.value, "aiosqlite")
        super().__init__(config)
        self._database_path = self._get_database_path()
        self._connection_options = self._build_connection_options()

    def _get_database_path(self) -> str:
        """Get the SQLite database file path."""
        if self.config.database == ":memory:":
            return ":memory:"

        db_path = Path(self.config.database)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)
        return str(db_path)

    def _build_connection_options(self) -> Dict[str, Any]:
        """Build SQLite connection options."""
        options = {
            'timeout': self.config.connection_timeout,
            'isolation_level': None,  # autocommit; transactions are explicit
        }
        options.update(self.config.connection_options)
        return options

    async def create_connection(self) -> DatabaseConnection:
        """Create a new SQLite connection."""
        try:
            native_conn = await aiosqlite.connect(self._database_path, **self._connection_options)
            native_conn.row_factory = aiosqlite.Row
            await native_conn.execute("PRAGMA foreign_keys = ON")

            connection = DatabaseConnection(
                connection_id=self._create_connection_id(),
                config=self.config,
                native_connection=native_conn,
                adapter=self
            )

            self.logger.debug(f"Created SQLite connection: {connection.connection_id}")
            return connection

        except Exception as e:
            raise self._wrap_error(e, "create_connection")

    async def execute_query(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> QueryResult:
        """Execute a statement on SQLite."""
        self._log_query(query, parameters)
        connection.mark_used()
        processed_query, param_values = self._process_parameters(query, parameters, "?")

        try:
            cursor = await connection.native_connection.execute(processed_query, param_values)
            if cursor.description is not None:
                data = [dict(row) for row in await cursor.fetchall()]
                result = QueryResult(data=data, rows_returned=len(data))
            else:
                result = QueryResult(rows_affected=max(cursor.rowcount, 0))
            await cursor.close()
        except Exception as e:
            raise self._wrap_error(e, "execute_query", query)

        connection.query_count += 1
        return result

    async def fetch_all(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch all rows from SQLite."""
        result = await self.execute_query(connection, query, parameters)
        return result.data or []

    async def execute_script_on(self, connection: DatabaseConnection, sql: str) -> None:
        """
        Execute a script one statement at a time.

        Pieces split at semicolons are joined until SQLite reports a complete
        statement, so ``begin ... end`` trigger bodies are executed whole.
        """
        buffer = ""
        for piece in split_statements(sql):
            buffer = f"{buffer} {piece};" if buffer else f"{piece};"
            if sqlite3.complete_statement(buffer):
                await self.execute_query(connection, buffer)
                buffer = ""
        if buffer:
            await self.execute_query(connection, buffer)

    # Transaction management

    async def _begin_transaction(self, connection: DatabaseConnection) -> None:
        """Begin a SQLite transaction."""
        await connection.native_connection.execute("BEGIN IMMEDIATE")
        self.logger.debug(f"Transaction started on connection {connection.connection_id}")

    async def _commit_transaction(self, connection: DatabaseConnection) -> None:
        """Commit a SQLite transaction."""
        await connection.native_connection.execute("COMMIT")
        self.logger.debug(f"Transaction committed on connection {connection.connection_id}")

    async def _rollback_transaction(self, connection: DatabaseConnection) -> None:
        """Rollback a SQLite transaction."""
        await connection.native_connection.execute("ROLLBACK")
        self.logger.debug(f"Transaction rolled back on connection {connection.connection_id}")

    async def _close_connection(self, native_connection: Any) -> None:
        """Close a SQLite connection."""
        try:
            if native_connection:
                await native_connection.close()
        except Exception as e:
            self.logger.error(f"Error closing SQLite connection: {e}")

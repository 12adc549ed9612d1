"""
PostgreSQL Database Adapter for schemashift.

This module provides the PostgreSQL adapter, built on asyncpg. PostgreSQL
supports transactional DDL, and migration scripts are sent to the server
in a single round trip so that function bodies and other dollar-quoted
text are passed through untouched.

Author: schemashift
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional

from ..config import DatabaseConnectionConfig, DatabaseEngine
from ..exceptions import AdapterNotAvailableError
from .base import DatabaseAdapter, DatabaseConnection, QueryResult

# Optional dependency
try:
    import asyncpg
    ASYNCPG_AVAILABLE = True
except ImportError:
    ASYNCPG_AVAILABLE = False
    asyncpg = None


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter using asyncpg."""

    supports_transactional_ddl = True

    def __init__(self, config: DatabaseConnectionConfig):
        if not ASYNCPG_AVAILABLE:
            raise AdapterNotAvailableError(DatabaseEngine.POSTGRESQL.value, "asyncpg")
        super().__init__(config)
        self._connection_options = self._build_connection_options()

    def _build_connection_options(self) -> Dict[str, Any]:
        """Build asyncpg connection options."""
        options = {
            'host': self.config.host,
            'port': self.config.port,
            'database': self.config.database,
            'user': self.config.username,
            'password': self.config.password,
            'timeout': self.config.connection_timeout,
            'command_timeout': self.config.command_timeout,
            'server_settings': {
                'application_name': 'schemashift',
            }
        }
        options.update(self.config.connection_options)
        return options

    async def create_connection(self) -> DatabaseConnection:
        """Create a new PostgreSQL connection."""
        try:
            native_conn = await asyncpg.connect(**self._connection_options)
            connection = DatabaseConnection(
                connection_id=self._create_connection_id(),
                config=self.config,
                native_connection=native_conn,
                adapter=self
            )

            self.logger.debug(f"Created PostgreSQL connection: {connection.connection_id}")
            return connection

        except Exception as e:
            raise self._wrap_error(e, "create_connection")

    async def execute_query(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> QueryResult:
        """Execute a statement on PostgreSQL."""
        self._log_query(query, parameters)
        connection.mark_used()
        processed_query, param_values = self._process_parameters(query, parameters, "${}")

        try:
            if self._is_select_query(processed_query):
                rows = await connection.native_connection.fetch(processed_query, *param_values)
                data = [dict(row) for row in rows]
                result = QueryResult(data=data, rows_returned=len(data))
            else:
                status = await connection.native_connection.execute(processed_query, *param_values)
                result = QueryResult(rows_affected=self._parse_execute_result(status))
        except Exception as e:
            raise self._wrap_error(e, "execute_query", query)

        connection.query_count += 1
        return result

    async def execute_script_on(self, connection: DatabaseConnection, sql: str) -> None:
        """Execute a multi-statement script in one round trip."""
        self._log_query(sql)
        connection.mark_used()
        try:
            await connection.native_connection.execute(sql)
        except Exception as e:
            raise self._wrap_error(e, "execute_script", sql)
        connection.query_count += 1

    def _is_select_query(self, query: str) -> bool:
        """Check if query returns rows."""
        return query.lstrip().upper().startswith(('SELECT', 'WITH', 'SHOW', 'VALUES'))

    def _parse_execute_result(self, result: str) -> int:
        """Parse asyncpg execute result to get affected rows."""
        try:
            # asyncpg returns strings like "INSERT 0 1", "UPDATE 3", "DELETE 2"
            parts = result.split()
            if len(parts) >= 2:
                return int(parts[-1])
            return 0
        except (ValueError, IndexError, AttributeError):
            return 0

    async def fetch_all(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch all rows from PostgreSQL."""
        self._log_query(query, parameters)
        processed_query, param_values = self._process_parameters(query, parameters, "${}")
        try:
            rows = await connection.native_connection.fetch(processed_query, *param_values)
        except Exception as e:
            raise self._wrap_error(e, "fetch_all", query)
        return [dict(row) for row in rows]

    # Transaction management

    async def _begin_transaction(self, connection: DatabaseConnection) -> None:
        """Begin a PostgreSQL transaction."""
        await connection.native_connection.execute("BEGIN")
        self.logger.debug(f"Transaction started on connection {connection.connection_id}")

    async def _commit_transaction(self, connection: DatabaseConnection) -> None:
        """Commit a PostgreSQL transaction."""
        await connection.native_connection.execute("COMMIT")
        self.logger.debug(f"Transaction committed on connection {connection.connection_id}")

    async def _rollback_transaction(self, connection: DatabaseConnection) -> None:
        """Rollback a PostgreSQL transaction."""
        await connection.native_connection.execute("ROLLBACK")
        self.logger.debug(f"Transaction rolled back on connection {connection.connection_id}")

    async def _close_connection(self, native_connection: Any) -> None:
        """Close a PostgreSQL connection."""
        try:
            if native_connection and not native_connection.is_closed():
                await native_connection.close()
        except Exception as e:
            self.logger.error(f"Error closing PostgreSQL connection: {e}")

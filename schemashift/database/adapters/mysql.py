"""
MySQL Database Adapter for schemashift.

This module provides the MySQL adapter, built on aiomysql. MySQL commits
implicitly around DDL statements, so SQL migrations against MySQL are run
outside a transaction and guarded by the failed flag in the migrations
table.

Author: schemashift
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional

from ..config import DatabaseConnectionConfig, DatabaseEngine
from ..exceptions import AdapterNotAvailableError
from .base import DatabaseAdapter, DatabaseConnection, QueryResult

# Optional dependency
try:
    import aiomysql
    AIOMYSQL_AVAILABLE = True
except ImportError:
    AIOMYSQL_AVAILABLE = False
    aiomysql = None


class MySQLAdapter(DatabaseAdapter):
    """MySQL database adapter using aiomysql."""

    supports_transactional_ddl = False

    def __init__(self, config: DatabaseConnectionConfig):
        if not AIOMYSQL_AVAILABLE:
            raise AdapterNotAvailableError(DatabaseEngine.MYSQL.value, "aiomysql")
        super().__init__(config)
        self._connection_options = self._build_connection_options()

    def _build_connection_options(self) -> Dict[str, Any]:
        """Build aiomysql connection options."""
        options = {
            'host': self.config.host,
            'port': self.config.port,
            'db': self.config.database,
            'user': self.config.username,
            'password': self.config.password or "",
            'connect_timeout': self.config.connection_timeout,
            'autocommit': True,
            'charset': 'utf8mb4',
        }
        options.update(self.config.connection_options)
        return options

    async def create_connection(self) -> DatabaseConnection:
        """Create a new MySQL connection."""
        try:
            native_conn = await aiomysql.connect(**self._connection_options)
            connection = DatabaseConnection(
                connection_id=self._create_connection_id(),
                config=self.config,
                native_connection=native_conn,
                adapter=self
            )

            self.logger.debug(f"Created MySQL connection: {connection.connection_id}")
            return connection

        except Exception as e:
            raise self._wrap_error(e, "create_connection")

    async def execute_query(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> QueryResult:
        """Execute a statement on MySQL."""
        self._log_query(query, parameters)
        connection.mark_used()
        processed_query, param_values = self._process_parameters(query, parameters, "%s")

        try:
            async with connection.native_connection.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(processed_query, param_values or None)
                if cursor.description is not None:
                    data = list(await cursor.fetchall())
                    result = QueryResult(data=data, rows_returned=len(data))
                else:
                    result = QueryResult(rows_affected=max(cursor.rowcount, 0))
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
        """Fetch all rows from MySQL."""
        result = await self.execute_query(connection, query, parameters)
        return result.data or []

    # Transaction management

    async def _begin_transaction(self, connection: DatabaseConnection) -> None:
        """Begin a MySQL transaction."""
        await connection.native_connection.begin()
        self.logger.debug(f"Transaction started on connection {connection.connection_id}")

    async def _commit_transaction(self, connection: DatabaseConnection) -> None:
        """Commit a MySQL transaction."""
        await connection.native_connection.commit()
        self.logger.debug(f"Transaction committed on connection {connection.connection_id}")

    async def _rollback_transaction(self, connection: DatabaseConnection) -> None:
        """Rollback a MySQL transaction."""
        await connection.native_connection.rollback()
        self.logger.debug(f"Transaction rolled back on connection {connection.connection_id}")

    async def _close_connection(self, native_connection: Any) -> None:
        """Close a MySQL connection."""
        try:
            if native_connection:
                native_connection.close()
        except Exception as e:
            self.logger.error(f"Error closing MySQL connection: {e}")

"""
Base Database Adapter Interface for schemashift.

This module defines the abstract base class that all database adapters
implement. An adapter owns a single connection to its database: migrations
are applied sequentially, and statements run outside a transaction must see
the same session state as those run inside one.

Author: schemashift
Version: 1.0.0
"""

import asyncio
import logging
import re
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

from ..config import DatabaseConnectionConfig
from ..exceptions import DatabaseError, TransactionError, wrap_database_error
from ..migrations.tokenizer import split_statements

# Matches :name placeholders, but not :: casts
_PARAMETER_RE = re.compile(r"(?<!:):(\w+)")


@dataclass
class QueryResult:
    """Result of a database query execution."""
    data: Any = None
    rows_affected: int = 0
    rows_returned: int = 0
    execution_time: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DatabaseConnection:
    """An open database connection and its lifecycle."""

    def __init__(
        self,
        connection_id: str,
        config: DatabaseConnectionConfig,
        native_connection: Any,
        adapter: 'DatabaseAdapter',
        created_at: Optional[datetime] = None
    ):
        self.connection_id = connection_id
        self.config = config
        self.native_connection = native_connection
        self.adapter = adapter
        self.created_at = created_at or datetime.now(timezone.utc)
        self.last_used = self.created_at
        self.is_active = True
        self.transaction_count = 0
        self.query_count = 0

    def mark_used(self):
        """Mark connection as recently used."""
        self.last_used = datetime.now(timezone.utc)

    async def close(self):
        """Close the database connection."""
        if self.is_active:
            await self.adapter._close_connection(self.native_connection)
            self.is_active = False


class TransactionContext:
    """
    Context manager for database transactions.

    The transaction commits when the block exits normally and rolls back
    when it raises. A failed rollback is logged and never replaces the
    exception raised by the block.
    """

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection
        self.adapter = connection.adapter
        self.transaction_id = str(uuid.uuid4())
        self.started_at: Optional[datetime] = None
        self.committed = False
        self.rolled_back = False
        self.logger = connection.adapter.logger

    async def __aenter__(self) -> 'TransactionContext':
        """Start the transaction."""
        self.started_at = datetime.now(timezone.utc)
        try:
            await self.adapter._begin_transaction(self.connection)
        except Exception as e:
            raise TransactionError(
                f"cannot begin transaction: {e}",
                transaction_id=self.transaction_id,
                operation="begin",
                original_error=e
            ) from e
        self.connection.transaction_count += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """End the transaction."""
        try:
            if exc_type is None and not self.rolled_back:
                await self.commit()
            else:
                await self._safe_rollback()
        finally:
            self.connection.transaction_count -= 1
        return False

    async def commit(self):
        """Commit the transaction."""
        if self.committed or self.rolled_back:
            return
        try:
            await self.adapter._commit_transaction(self.connection)
        except Exception as e:
            await self._safe_rollback()
            raise TransactionError(
                f"cannot commit transaction: {e}",
                transaction_id=self.transaction_id,
                operation="commit",
                original_error=e
            ) from e
        self.committed = True

    async def rollback(self):
        """Rollback the transaction."""
        if not self.committed and not self.rolled_back:
            await self.adapter._rollback_transaction(self.connection)
            self.rolled_back = True

    async def _safe_rollback(self):
        try:
            await self.rollback()
        except Exception as e:
            self.rolled_back = True
            self.logger.error(f"Rollback of transaction {self.transaction_id} failed: {e}")

    async def execute(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> QueryResult:
        """Execute a statement inside the transaction."""
        return await self.adapter.execute_query(self.connection, query, parameters)

    async def fetch_all(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch all rows inside the transaction."""
        return await self.adapter.fetch_all(self.connection, query, parameters)

    async def execute_script(self, sql: str) -> None:
        """Execute one or more semicolon separated statements inside the transaction."""
        await self.adapter.execute_script_on(self.connection, sql)


class DatabaseAdapter(ABC):
    """Abstract base class for database adapters."""

    # Whether DDL statements take part in transactions. When they do not,
    # SQL migrations are run outside a transaction guarded by the failed flag.
    supports_transactional_ddl: bool = True

    def __init__(self, config: DatabaseConnectionConfig):
        self.config = config
        self.engine = config.engine
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._connection: Optional[DatabaseConnection] = None
        self._connection_lock = asyncio.Lock()
        self._is_initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if adapter is initialized."""
        return self._is_initialized

    @property
    def database_name(self) -> str:
        return self.config.database

    async def __aenter__(self) -> 'DatabaseAdapter':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
        return False

    # Abstract methods that must be implemented by concrete adapters

    @abstractmethod
    async def create_connection(self) -> DatabaseConnection:
        """Create a new database connection."""
        pass

    @abstractmethod
    async def execute_query(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> QueryResult:
        """Execute a single statement on the database."""
        pass

    @abstractmethod
    async def fetch_all(
        self,
        connection: DatabaseConnection,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch all rows from the database."""
        pass

    # Transaction management (abstract methods)

    @abstractmethod
    async def _begin_transaction(self, connection: DatabaseConnection) -> None:
        """Begin a transaction."""
        pass

    @abstractmethod
    async def _commit_transaction(self, connection: DatabaseConnection) -> None:
        """Commit a transaction."""
        pass

    @abstractmethod
    async def _rollback_transaction(self, connection: DatabaseConnection) -> None:
        """Rollback a transaction."""
        pass

    @abstractmethod
    async def _close_connection(self, native_connection: Any) -> None:
        """Close a native database connection."""
        pass

    # Concrete methods with default implementations

    async def initialize(self) -> None:
        """Open the connection to the database."""
        if self._is_initialized:
            return
        await self.get_connection()
        self._is_initialized = True
        self.logger.info(f"{self.engine.value} adapter initialized: {self.database_name}")

    async def shutdown(self) -> None:
        """Close the connection to the database."""
        async with self._connection_lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
        self._is_initialized = False
        self.logger.info(f"{self.engine.value} adapter shutdown completed")

    async def get_connection(self) -> DatabaseConnection:
        """Get the adapter's connection, opening it if needed."""
        async with self._connection_lock:
            if self._connection is None or not self._connection.is_active:
                self._connection = await self.create_connection()
            self._connection.mark_used()
            return self._connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[TransactionContext, None]:
        """
        Context manager for database transactions.

        Raises:
            TransactionError: If the transaction cannot be started or committed
        """
        conn = await self.get_connection()
        if conn.transaction_count:
            raise TransactionError("transaction already in progress", operation="begin")
        async with TransactionContext(conn) as tx:
            yield tx

    async def execute(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> QueryResult:
        """Execute a statement outside of any transaction."""
        return await self.execute_query(await self.get_connection(), query, parameters)

    async def fetch(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch all rows outside of any transaction."""
        return await self.fetch_all(await self.get_connection(), query, parameters)

    async def execute_script(self, sql: str) -> None:
        """Execute one or more semicolon separated statements outside of any transaction."""
        await self.execute_script_on(await self.get_connection(), sql)

    async def execute_script_on(self, connection: DatabaseConnection, sql: str) -> None:
        """Execute a multi-statement script one statement at a time."""
        for statement in split_statements(sql):
            await self.execute_query(connection, statement)

    async def health_check(self) -> Dict[str, Any]:
        """Perform a health check on the database."""
        start_time = datetime.now(timezone.utc)
        try:
            await self.execute("SELECT 1")
        except DatabaseError as e:
            return {
                'healthy': False,
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        return {
            'healthy': True,
            'engine': self.engine.value,
            'database': self.database_name,
            'response_time': (datetime.now(timezone.utc) - start_time).total_seconds(),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

    def _create_connection_id(self) -> str:
        """Create a unique connection ID."""
        return f"{self.engine.value}_{uuid.uuid4().hex[:8]}"

    def _process_parameters(
        self,
        query: str,
        parameters: Optional[Dict[str, Any]],
        placeholder: str
    ) -> Tuple[str, List[Any]]:
        """
        Convert ``:name`` placeholders to the driver's positional style.

        ``placeholder`` is a format string receiving the 1-based position,
        e.g. ``"?"``, ``"%s"`` or ``"${}"``.
        """
        if not parameters:
            return query, []

        param_values: List[Any] = []

        def substitute(match: 're.Match[str]') -> str:
            name = match.group(1)
            if name not in parameters:
                return match.group(0)
            param_values.append(parameters[name])
            return placeholder.format(len(param_values))

        return _PARAMETER_RE.sub(substitute, query), param_values

    def _wrap_error(self, error: Exception, operation: str, query: Optional[str] = None) -> DatabaseError:
        if query is not None and len(query) > 100:
            query = query[:100] + "..."
        return wrap_database_error(
            error,
            operation=operation,
            database_name=self.database_name,
            query=query,
            engine=self.engine.value
        )

    def _log_query(self, query: str, parameters: Optional[Dict[str, Any]] = None):
        """Log query execution."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Executing query: {query[:100]}")
            if parameters:
                self.logger.debug(f"Parameters: {parameters}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(database={self.database_name!r})"

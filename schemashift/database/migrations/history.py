"""
Migrations table access for schemashift.

This module reads and writes the table that records which schema versions
have been applied to a database. Each applied version has one row::

    id          integer primary key
    applied_at  timestamp, null while a migration is being applied
    failed      boolean, set while a migration runs outside a transaction
    locked      boolean, prevents down migrations past this version

Author: schemashift
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, List, Optional

from ..config import DatabaseEngine
from .exceptions import MigrationError
from .models import Version

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter, TransactionContext


class MigrationHistory:
    """
    Manages the migrations table for one database.

    Row operations take the transaction they are part of; creating the
    table runs directly on the adapter.
    """

    def __init__(self, adapter: "DatabaseAdapter", table_name: str = "schema_migrations"):
        self.adapter = adapter
        self.table_name = table_name
        self.engine = adapter.config.engine
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _create_table_sql(self) -> str:
        table_name = self.table_name
        if self.engine == DatabaseEngine.POSTGRESQL:
            return f"""
            CREATE TABLE IF NOT EXISTS {table_name} (
                id BIGINT PRIMARY KEY,
                applied_at TIMESTAMP WITH TIME ZONE NULL,
                failed BOOLEAN NOT NULL DEFAULT FALSE,
                locked BOOLEAN NOT NULL DEFAULT FALSE
            )
            """
        elif self.engine == DatabaseEngine.MYSQL:
            return f"""
            CREATE TABLE IF NOT EXISTS {table_name} (
                id BIGINT PRIMARY KEY,
                applied_at DATETIME(6) NULL,
                failed TINYINT(1) NOT NULL DEFAULT 0,
                locked TINYINT(1) NOT NULL DEFAULT 0
            )
            """
        elif self.engine == DatabaseEngine.SQLITE:
            return f"""
            CREATE TABLE IF NOT EXISTS {table_name} (
                id INTEGER PRIMARY KEY,
                applied_at TEXT NULL,
                failed INTEGER NOT NULL DEFAULT 0,
                locked INTEGER NOT NULL DEFAULT 0
            )
            """
        raise MigrationError(f"Unsupported database engine: {self.engine}")

    async def create_table(self) -> None:
        """Create the migrations table if it does not already exist."""
        try:
            await self.adapter.execute(self._create_table_sql())
        except MigrationError:
            raise
        except Exception as e:
            raise MigrationError(
                f"cannot create migrations table {self.table_name}: {e}",
                operation="initialize",
                original_error=e
            ) from e
        self.logger.debug(f"Migrations table ready: {self.table_name}")

    def _encode_timestamp(self, value: Optional[datetime]) -> Any:
        if value is None:
            return None
        if self.engine == DatabaseEngine.SQLITE:
            return value.isoformat()
        if self.engine == DatabaseEngine.MYSQL:
            # DATETIME has no time zone; values are stored as UTC
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def _decode_timestamp(self, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    async def list_versions(self, tx: "TransactionContext") -> List[Version]:
        """Return the rows of the migrations table in ascending order of id."""
        rows = await tx.fetch_all(
            f"SELECT id, applied_at, failed, locked FROM {self.table_name} ORDER BY id"
        )
        return [
            Version(
                id=int(row['id']),
                applied_at=self._decode_timestamp(row['applied_at']),
                failed=bool(row['failed']),
                locked=bool(row['locked'])
            )
            for row in rows
        ]

    async def insert_version(self, tx: "TransactionContext", version: Version) -> None:
        await tx.execute(
            f"INSERT INTO {self.table_name} (id, applied_at, failed, locked) "
            f"VALUES (:id, :applied_at, :failed, :locked)",
            {
                'id': version.id,
                'applied_at': self._encode_timestamp(version.applied_at),
                'failed': version.failed,
                'locked': version.locked
            }
        )

    async def delete_version(self, tx: "TransactionContext", version_id: int) -> None:
        await tx.execute(
            f"DELETE FROM {self.table_name} WHERE id = :id",
            {'id': version_id}
        )

    async def set_version_failed(self, tx: "TransactionContext", version_id: int, failed: bool) -> None:
        await tx.execute(
            f"UPDATE {self.table_name} SET failed = :failed WHERE id = :id",
            {'failed': failed, 'id': version_id}
        )

    async def set_version_locked(self, tx: "TransactionContext", version_id: int, locked: bool) -> None:
        await tx.execute(
            f"UPDATE {self.table_name} SET locked = :locked WHERE id = :id",
            {'locked': locked, 'id': version_id}
        )

"""
Migration definitions.

A :class:`Definition` describes one schema version. Exactly one up method
must be called on it and at most one down method. When no down method is
called the down migration is derived from the up SQL where possible.

Example::

    schema.define(1).up("create table city(id int primary key, name text);")

    async def backfill(tx):
        await tx.execute("update city set name = upper(name)")

    schema.define(2).up_tx(backfill).down("select 1;")

Author: schemashift
Version: 1.0.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter, TransactionContext
    from .schema import Schema


TxFunc = Callable[["TransactionContext"], Awaitable[None]]
DBFunc = Callable[["DatabaseAdapter"], Awaitable[None]]


class ExecutorKind(str, Enum):
    """How a migration is executed."""
    SQL = "sql"
    TX_FUNC = "tx_func"
    DB_FUNC = "db_func"


@dataclass(frozen=True)
class Executor:
    """
    One way of running a migration.

    ``sql`` is populated for ``ExecutorKind.SQL``, ``func`` for the two
    function kinds. Transaction functions receive the open transaction;
    database functions receive the adapter and run outside any transaction.
    """

    kind: ExecutorKind
    sql: str = ""
    func: Optional[Callable[..., Awaitable[None]]] = None

    @classmethod
    def from_sql(cls, sql: str) -> "Executor":
        return cls(kind=ExecutorKind.SQL, sql=sql)

    @classmethod
    def from_tx_func(cls, func: TxFunc) -> "Executor":
        return cls(kind=ExecutorKind.TX_FUNC, func=func)

    @classmethod
    def from_db_func(cls, func: DBFunc) -> "Executor":
        return cls(kind=ExecutorKind.DB_FUNC, func=func)

    @property
    def description(self) -> str:
        """Human readable form shown in version listings."""
        if self.kind is ExecutorKind.SQL:
            return self.sql
        if self.kind is ExecutorKind.TX_FUNC:
            return "(tx-func)"
        return "(db-func)"


_UP_METHODS = {
    ExecutorKind.SQL: "up",
    ExecutorKind.TX_FUNC: "up_tx",
    ExecutorKind.DB_FUNC: "up_db",
}

_DOWN_METHODS = {
    ExecutorKind.SQL: "down",
    ExecutorKind.TX_FUNC: "down_tx",
    ExecutorKind.DB_FUNC: "down_db",
}


class Definition:
    """The definition of a single schema version."""

    def __init__(self, version_id: int, schema: Optional["Schema"] = None):
        self.id = version_id
        self.description = ""
        self._schema = schema
        self._up: Dict[ExecutorKind, Executor] = {}
        self._down: Dict[ExecutorKind, Executor] = {}

    def __repr__(self) -> str:
        return f"Definition(id={self.id})"

    def _set(self, executors: Dict[ExecutorKind, Executor], executor: Executor) -> "Definition":
        executors[executor.kind] = executor
        if self._schema is not None:
            self._schema._invalidate()
        return self

    def up(self, sql: str) -> "Definition":
        """Run ``sql`` to migrate up to this version."""
        if not sql:
            return self
        return self._set(self._up, Executor.from_sql(sql))

    def up_tx(self, func: TxFunc) -> "Definition":
        """Run ``func`` inside a transaction to migrate up to this version."""
        return self._set(self._up, Executor.from_tx_func(func))

    def up_db(self, func: DBFunc) -> "Definition":
        """
        Run ``func`` outside of a transaction to migrate up to this version.

        If ``func`` fails the version is left marked as failed and must be
        repaired manually before calling ``MigrationWorker.force``.
        """
        return self._set(self._up, Executor.from_db_func(func))

    def down(self, sql: str) -> "Definition":
        """Run ``sql`` to migrate down from this version."""
        if not sql:
            return self
        return self._set(self._down, Executor.from_sql(sql))

    def down_tx(self, func: TxFunc) -> "Definition":
        """Run ``func`` inside a transaction to migrate down from this version."""
        return self._set(self._down, Executor.from_tx_func(func))

    def down_db(self, func: DBFunc) -> "Definition":
        """Run ``func`` outside of a transaction to migrate down from this version."""
        return self._set(self._down, Executor.from_db_func(func))

    def describe(self, description: str) -> "Definition":
        """Set the description shown in version listings."""
        self.description = description
        if self._schema is not None:
            self._schema._invalidate()
        return self

    @property
    def up_executor(self) -> Optional[Executor]:
        return next(iter(self._up.values()), None)

    @property
    def down_executor(self) -> Optional[Executor]:
        return next(iter(self._down.values()), None)

    @property
    def up_sql(self) -> str:
        executor = self._up.get(ExecutorKind.SQL)
        return executor.sql if executor else ""

    def up_methods(self) -> List[str]:
        return [name for kind, name in _UP_METHODS.items() if kind in self._up]

    def down_methods(self) -> List[str]:
        return [name for kind, name in _DOWN_METHODS.items() if kind in self._down]

    def errors(self) -> List[str]:
        """Problems with how the up and down methods were called."""
        errors = []
        up_methods = self.up_methods()
        if not up_methods:
            errors.append(
                f"must call one of the up-definition methods [{', '.join(_UP_METHODS.values())}]"
            )
        elif len(up_methods) > 1:
            errors.append(f"call only one of [{', '.join(up_methods)}]")

        down_methods = self.down_methods()
        if len(down_methods) > 1:
            errors.append(f"call only one of [{', '.join(down_methods)}]")
        return errors


DOWN_METHOD_NAMES = list(_DOWN_METHODS.values())

"""
Migration worker for schemashift.

The :class:`MigrationWorker` moves a database between the versions of a
:class:`Schema`. Every command reads the migrations table inside a
transaction, decides on a single step, and performs it; commands that move
several versions repeat this one step at a time.

Migrations that cannot run inside a transaction (database functions, and SQL
on databases without transactional DDL) are guarded by the ``failed`` flag:

1. the version is marked failed in its own transaction;
2. the migration runs with no surrounding transaction;
3. the failed flag is cleared (up) or the row is deleted (down).

If the process stops between steps 1 and 3, including when the task running
the worker is cancelled, the version stays marked failed. Every later up,
down, goto or versions command refuses to run until the database has been
checked by hand and :meth:`MigrationWorker.force` has been called.

A worker must not be driven by more than one task at a time.

Author: schemashift
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional

from .config import MigrationConfig
from .definition import Executor, ExecutorKind
from .exceptions import (
    InvalidVersionError,
    MigrationError,
    MigrationExecutionError,
    UnappliedVersionError,
    VersionLockedError,
)
from .history import MigrationHistory
from .models import Version, VersionSummary
from .plan import MigrationPlan
from .schema import Schema

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter, TransactionContext


LogFunc = Callable[[str], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MigrationWorker:
    """
    Performs migrations on a database.

    Example::

        async with SQLiteAdapter(create_sqlite_config("app.db")) as db:
            worker = MigrationWorker(db, schema)
            await worker.up()
    """

    def __init__(
        self,
        adapter: "DatabaseAdapter",
        schema: Schema,
        config: Optional[MigrationConfig] = None,
        log_func: Optional[LogFunc] = None
    ):
        """
        Args:
            adapter: Database adapter the migrations are applied to
            schema: The versions to migrate between
            config: Migration settings
            log_func: Optional callback receiving each progress message

        Raises:
            SchemaValidationError: If the schema has validation errors
        """
        schema.check()
        self.adapter = adapter
        self.schema = schema
        self.config = config or MigrationConfig()
        self.history = MigrationHistory(adapter, self.config.migrations_table)
        self.log_func = log_func
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._plans: List[MigrationPlan] = list(schema.plans)
        self._ids = frozenset(plan.id for plan in self._plans)
        self._initialized = False

    @property
    def transactional_ddl(self) -> bool:
        """Whether SQL migrations run inside a transaction."""
        if self.config.transactional_ddl is not None:
            return self.config.transactional_ddl
        return self.adapter.supports_transactional_ddl

    # Public commands

    async def up(self) -> None:
        """Migrate up to the latest version."""
        await self._init()
        while await self._up_one():
            pass
        await self._finished("migrate up")

    async def down(self) -> None:
        """
        Migrate down to the first locked version, or all the way down
        when no version is locked.
        """
        await self._init()
        while await self._down_one():
            pass
        await self._finished("migrate down")

    async def goto(self, version_id: int) -> None:
        """
        Migrate up or down to ``version_id``; zero migrates all the way down.

        Raises:
            InvalidVersionError: If the schema does not define ``version_id``
            VersionLockedError: If a locked version lies above ``version_id``
        """
        self._check_version(version_id, allow_zero=True)
        await self._init()
        while await self._goto_one(version_id):
            pass
        await self._finished("migrate goto")

    async def version(self, version_id: int) -> Version:
        """
        Get details about a version. Failed versions are reported
        rather than raising an error.
        """
        self._check_version(version_id)
        await self._init()
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx, allow_failed=True)
        return summary.vmap[version_id]

    async def versions(self) -> List[Version]:
        """
        List all versions in ascending order.

        Raises:
            PreviouslyFailedError: If any version is marked failed
        """
        await self._init()
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx)
        return summary.versions

    async def force(self, version_id: int) -> None:
        """
        Force the database to ``version_id`` without running any migrations.

        This is used after a migration run outside a transaction has failed
        and the database has been repaired by hand. Rows for every version
        above ``version_id`` are deleted and the failed flag of
        ``version_id`` is cleared.

        Raises:
            UnappliedVersionError: If ``version_id`` has not been applied
            VersionLockedError: If a locked version lies above ``version_id``
        """
        self._check_version(version_id)
        await self._init()
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx, allow_failed=True)
            applied = {plan.id for plan in summary.applied}
            if version_id not in applied:
                raise UnappliedVersionError(version_id, "force")
            summary.check_locked(version_id)

            # rows without a plan above the target go as well
            for row_id in sorted(applied.union(summary.orphaned)):
                if row_id > version_id:
                    await self.history.delete_version(tx, row_id)
            if summary.vmap[version_id].failed:
                await self.history.set_version_failed(tx, version_id, False)
        self._log(f"forced version={version_id}")
        await self._finished("migrate force")

    async def lock(self, version_id: int) -> None:
        """
        Lock an applied version. Down migrations cannot pass a locked version.

        Raises:
            UnappliedVersionError: If ``version_id`` has not been applied
        """
        await self._set_locked(version_id, True)

    async def unlock(self, version_id: int) -> None:
        """Unlock a version previously locked with :meth:`lock`."""
        await self._set_locked(version_id, False)

    # Internals

    async def _init(self) -> None:
        if self._initialized:
            return
        await self.history.create_table()
        self._initialized = True

    def _log(self, message: str) -> None:
        if not self.config.log_steps:
            return
        self.logger.info(message)
        if self.log_func is not None:
            self.log_func(message)

    def _check_version(self, version_id: int, allow_zero: bool = False) -> None:
        if allow_zero and version_id == 0:
            return
        if version_id not in self._ids:
            raise InvalidVersionError(version_id)

    async def _summary(self, tx: "TransactionContext", allow_failed: bool = False) -> VersionSummary:
        rows = await self.history.list_versions(tx)
        return VersionSummary.build(self._plans, rows, allow_failed=allow_failed)

    def _in_transaction(self, executor: Executor) -> bool:
        if executor.kind is ExecutorKind.TX_FUNC:
            return True
        if executor.kind is ExecutorKind.DB_FUNC:
            return False
        return self.transactional_ddl

    async def _run(
        self,
        version_id: int,
        executor: Executor,
        direction: str,
        tx: Optional["TransactionContext"] = None
    ) -> None:
        """Run a migration, inside ``tx`` when one is given."""
        try:
            if executor.kind is ExecutorKind.SQL:
                if tx is not None:
                    await tx.execute_script(executor.sql)
                else:
                    await self.adapter.execute_script(executor.sql)
            elif executor.kind is ExecutorKind.TX_FUNC:
                await executor.func(tx)
            else:
                await executor.func(self.adapter)
        except Exception as e:
            raise MigrationExecutionError(version_id, e, direction=direction) from e

    async def _up_one(self) -> bool:
        """Apply the lowest unapplied version. Reports whether more remain."""
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx)
            if not summary.unapplied:
                return False
            plan = summary.unapplied[0]
            more = len(summary.unapplied) > 1

            if self._in_transaction(plan.up):
                await self._run(plan.id, plan.up, "up", tx)
                await self.history.insert_version(tx, Version(id=plan.id, applied_at=_utcnow()))
                self._log(f"migrated up version={plan.id}")
                return more

        await self._up_one_no_tx(plan)
        return more

    async def _up_one_no_tx(self, plan: MigrationPlan) -> None:
        async with self.adapter.transaction() as tx:
            await self.history.insert_version(
                tx, Version(id=plan.id, applied_at=_utcnow(), failed=True)
            )

        await self._run(plan.id, plan.up, "up")

        async with self.adapter.transaction() as tx:
            await self.history.set_version_failed(tx, plan.id, False)
        self._log(f"migrated up version={plan.id}")

    async def _down_one(self, target: int = 0, stop_at_lock: bool = True) -> bool:
        """
        Reverse the highest applied version. Reports whether more remain.

        A locked version ends a plain down migration quietly; with
        ``stop_at_lock`` unset it raises instead.
        """
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx)
            if not summary.applied:
                summary.check_orphans(target)
                return False
            plan = summary.applied[0]
            summary.check_orphans(plan.id)

            if summary.vmap[plan.id].locked:
                if stop_at_lock:
                    self._log(f"locked version={plan.id}")
                    return False
                raise VersionLockedError(plan.id)

            more = len(summary.applied) > 1
            down = plan.down
            if down is None:
                raise MigrationError(f"{plan.id}: no down migration", version_id=plan.id)

            if self._in_transaction(down):
                await self._run(plan.id, down, "down", tx)
                await self.history.delete_version(tx, plan.id)
                self._log(f"migrated down version={plan.id}")
                return more

        await self._down_one_no_tx(plan, down)
        return more

    async def _down_one_no_tx(self, plan: MigrationPlan, down: Executor) -> None:
        async with self.adapter.transaction() as tx:
            await self.history.set_version_failed(tx, plan.id, True)

        await self._run(plan.id, down, "down")

        async with self.adapter.transaction() as tx:
            await self.history.delete_version(tx, plan.id)
        self._log(f"migrated down version={plan.id}")

    async def _goto_one(self, target: int) -> bool:
        """Take one step towards ``target``. Reports whether more steps remain."""
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx)
            summary.check_locked(target)
            summary.check_orphans(target)
            down_count = sum(1 for plan in summary.applied if plan.id > target)
            up_count = sum(1 for plan in summary.unapplied if plan.id <= target)

        if down_count > 0:
            await self._down_one(target, stop_at_lock=False)
            down_count -= 1
        elif up_count > 0:
            await self._up_one()
            up_count -= 1

        return down_count + up_count > 0

    async def _set_locked(self, version_id: int, locked: bool) -> None:
        self._check_version(version_id)
        await self._init()
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx)
            if version_id not in {plan.id for plan in summary.applied}:
                raise UnappliedVersionError(version_id, "lock" if locked else "unlock")
            await self.history.set_version_locked(tx, version_id, locked)
        self._log(f"{'locked' if locked else 'unlocked'} version={version_id}")

    async def _finished(self, command: str) -> None:
        async with self.adapter.transaction() as tx:
            summary = await self._summary(tx, allow_failed=True)

        version_id = 0
        status = ""
        if summary.applied:
            version = summary.vmap[summary.applied[0].id]
            version_id = version.id
            if version.failed:
                status = " status=failed"
            elif version.locked:
                status = " status=locked"
        self._log(f"{command} finished version={version_id}{status}")

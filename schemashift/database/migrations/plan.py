"""
Migration plans.

A :class:`MigrationPlan` is the finalized form of a :class:`Definition`: the
actions parsed from its up SQL, its resolved down migration and any
validation errors. When the definition has no down method the down SQL is
derived from the actions:

* objects that are only ever dropped (tables, domains, sequences, types,
  indexes) are dropped in reverse order of creation;
* views, triggers, procedures and functions are restored to the definition
  they had in the most recent earlier version that created them.

Author: schemashift
Version: 1.0.0
"""

from typing import Iterator, List, Optional, Sequence, Tuple

from .ddl import DBObjectType, DDLAction, DDLVerb, parse_actions
from .definition import DOWN_METHOD_NAMES, Definition, Executor, ExecutorKind
from .models import ValidationIssue


class MigrationPlan:
    """The information required to migrate to a version from the previous one."""

    def __init__(self, definition: Definition, plans: Sequence["MigrationPlan"], index: int):
        """
        Args:
            definition: The version being planned
            plans: Plans of the schema in ascending order; the entries before
                ``index`` must already be built
            index: Position of this plan in ``plans``
        """
        self.id = definition.id
        self.definition = definition
        self._plans = plans
        self._index = index
        self._errors: List[ValidationIssue] = [
            ValidationIssue(self.id, error) for error in definition.errors()
        ]

        up = definition.up_executor
        if up is not None and up.kind is ExecutorKind.SQL:
            self.actions: Tuple[DDLAction, ...] = tuple(parse_actions(up.sql))
        else:
            self.actions = ()

        self.down_sql = ""
        self._derive_down_sql()
        self._check_down()

        self.description = definition.description or "; ".join(str(a) for a in self.actions)

    def __repr__(self) -> str:
        return f"MigrationPlan(id={self.id})"

    @property
    def errors(self) -> Tuple[ValidationIssue, ...]:
        return tuple(self._errors)

    @property
    def up(self) -> Executor:
        return self.definition.up_executor

    @property
    def down(self) -> Optional[Executor]:
        """The explicit down executor, or the derived down SQL."""
        executor = self.definition.down_executor
        if executor is not None:
            return executor
        if self.down_sql:
            return Executor.from_sql(self.down_sql)
        return None

    @property
    def previous(self) -> Optional["MigrationPlan"]:
        if self._index > 0:
            return self._plans[self._index - 1]
        return None

    def previous_plans(self) -> Iterator["MigrationPlan"]:
        """Yield the earlier plans, most recent first."""
        for index in range(self._index - 1, -1, -1):
            yield self._plans[index]

    def _add_error(self, description: str) -> None:
        self._errors.append(ValidationIssue(self.id, description))

    def _find_previous_create(self, action: DDLAction) -> Optional[Tuple["MigrationPlan", DDLAction]]:
        for plan in self.previous_plans():
            for candidate in plan.actions:
                if candidate.verb is DDLVerb.CREATE and candidate.same_object(action):
                    return plan, candidate
        return None

    def _derive_down_sql(self) -> None:
        actions = self.actions
        restorable = [
            a for a in actions
            if a.object_type.should_restore and a.verb in (DDLVerb.CREATE, DDLVerb.DROP)
        ]
        droppable = [a for a in actions if not a.object_type.should_restore]

        # a restorable object needs a version of its own so that its previous
        # definition can be replayed on the way down
        if len(restorable) > 1 or (restorable and droppable):
            for action in restorable:
                self._add_error(f"{action} must be in its own migration")
            return

        if self.definition.down_executor is not None or not actions:
            return

        manual = [
            a for a in actions
            if not (
                a.verb is DDLVerb.CREATE
                or (a.verb is DDLVerb.DROP and a.object_type.should_restore)
            )
        ]
        if manual:
            for action in manual:
                self._add_error(f"{action} needs a manual down migration")
            return

        if restorable:
            action = restorable[0]
            found = self._find_previous_create(action)
            if found is not None:
                plan, previous = found
                drop = ""
                if action.verb is DDLVerb.CREATE and not previous.preceded_by_drop:
                    drop = action.drop_sql()
                self.down_sql = drop + plan.definition.up_sql
                return
            if action.verb is DDLVerb.DROP:
                self._add_error(f"{action} needs a manual down migration")
                return

        self.down_sql = "".join(action.drop_sql() for action in reversed(actions))
        for action in actions:
            if action.object_type in (DBObjectType.INDEX, DBObjectType.TRIGGER):
                self._add_error(f"{action} needs a manual down migration")

    def _check_down(self) -> None:
        if self.definition.down_executor is None and not self.down_sql:
            self._add_error(
                f"must call one of the down-definition methods [{', '.join(DOWN_METHOD_NAMES)}]"
            )

"""
DDL action model and extractor.

Each statement of a migration's up SQL is matched against a small positional
grammar::

    <verb> [unique] <type> [concurrently] [if [not] exists] [<sub-name>] [on] [only] [<schema> .] <name>

and turned into a :class:`DDLAction`. The action list is what the planner
uses to work out a down migration automatically. Anything outside the
grammar makes the whole migration opaque.

Author: schemashift
Version: 1.0.0
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .tokenizer import Statement, parse_statements


class DDLVerb(str, Enum):
    """DDL verbs recognized by the extractor."""
    CREATE = "create"
    ALTER = "alter"
    DROP = "drop"


class DBObjectType(str, Enum):
    """Database object types recognized by the extractor."""
    TABLE = "table"
    VIEW = "view"
    INDEX = "index"
    TRIGGER = "trigger"
    PROCEDURE = "procedure"
    FUNCTION = "function"
    SEQUENCE = "sequence"
    DOMAIN = "domain"
    TYPE = "type"

    @property
    def should_restore(self) -> bool:
        """
        Whether a down migration should recreate the previous definition
        of the object rather than just drop it.
        """
        return self in _RESTORABLE_TYPES

    @property
    def has_sub_name(self) -> bool:
        """Whether the object is declared ``<sub-name> on <table>``."""
        return self in (DBObjectType.INDEX, DBObjectType.TRIGGER)


_RESTORABLE_TYPES = frozenset([
    DBObjectType.VIEW,
    DBObjectType.TRIGGER,
    DBObjectType.PROCEDURE,
    DBObjectType.FUNCTION,
])


@dataclass(frozen=True)
class DDLAction:
    """A single recognized DDL statement."""

    verb: DDLVerb
    object_type: DBObjectType
    name: str
    schema: str = ""
    # index or trigger name when the statement has an ``on <table>`` clause
    sub_name: str = ""
    on_table: bool = False
    preceded_by_drop: bool = False
    check_exists: bool = False
    check_not_exists: bool = False

    @property
    def qualified_name(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name

    @property
    def object_key(self) -> Tuple[str, ...]:
        """
        Identity of the object the action refers to.

        A trigger is known by its own name, whether the statement is
        ``drop trigger tr1`` or ``create trigger tr1 ... on t1``.
        """
        if self.object_type is DBObjectType.TRIGGER:
            trigger_name = self.sub_name if self.on_table else self.qualified_name
            return (self.object_type.value, trigger_name)
        return (self.object_type.value, self.schema, self.name, self.sub_name, str(self.on_table))

    def same_object(self, other: "DDLAction") -> bool:
        """Report whether both actions refer to the same database object."""
        return self.object_key == other.object_key

    def drop_sql(self) -> str:
        """SQL that drops the object this action refers to."""
        if self.on_table and self.object_type is DBObjectType.INDEX:
            if not self.sub_name:
                return f"drop index on {self.qualified_name};\n"
            if self.schema and "." not in self.sub_name:
                return f"drop index {self.schema}.{self.sub_name};\n"
            return f"drop index {self.sub_name};\n"
        if self.on_table and self.object_type is DBObjectType.TRIGGER:
            return f"drop trigger {self._sub_name_prefix()}on {self.qualified_name};\n"
        return f"drop {self.object_type.value} {self.qualified_name};\n"

    def _sub_name_prefix(self) -> str:
        return f"{self.sub_name} " if self.sub_name else ""

    def __str__(self) -> str:
        if self.on_table:
            return (
                f"{self.verb.value} {self.object_type.value} "
                f"{self._sub_name_prefix()}on {self.qualified_name}"
            )
        return f"{self.verb.value} {self.object_type.value} {self.qualified_name}"


def _take_name(stmt: Statement) -> Tuple[str, str]:
    """Consume ``[<schema> .] <name>`` and return ``(schema, name)``."""
    if stmt.get(1) == ".":
        schema, name = stmt.get(0), stmt.get(2)
        del stmt.lexemes[:3]
        return schema, name
    name = stmt.get(0)
    del stmt.lexemes[:1]
    return "", name


def new_ddl_action(statement: Statement) -> Optional[DDLAction]:
    """
    Match a single statement against the DDL grammar.

    Returns:
        The action, or ``None`` when the statement is not recognized
    """
    stmt = statement.copy()

    try:
        verb = DDLVerb(stmt.get(0))
    except ValueError:
        return None
    stmt.remove(verb.value)

    if stmt.match("unique", "index"):
        stmt.remove("unique")

    try:
        object_type = DBObjectType(stmt.get(0))
    except ValueError:
        return None
    stmt.remove(object_type.value)

    stmt.remove("concurrently")
    check_exists = stmt.remove("if", "exists")
    check_not_exists = stmt.remove("if", "not", "exists")

    sub_name = ""
    if object_type.has_sub_name and not stmt.match("on"):
        sub_schema, sub_name = _take_name(stmt)
        if object_type is DBObjectType.TRIGGER:
            # create trigger tr1 before insert on t1 ...
            while stmt.lexemes and not stmt.match("on"):
                del stmt.lexemes[0]
        if not stmt.match("on"):
            # drop index i1, drop trigger tr1: the sub-name is the object
            if not sub_name:
                return None
            return DDLAction(
                verb=verb,
                object_type=object_type,
                name=sub_name,
                schema=sub_schema,
                check_exists=check_exists,
                check_not_exists=check_not_exists,
            )
        if sub_schema:
            sub_name = f"{sub_schema}.{sub_name}"

    on_table = object_type.has_sub_name and stmt.remove("on")
    stmt.remove("only")

    schema, name = _take_name(stmt)
    if not name:
        return None

    return DDLAction(
        verb=verb,
        object_type=object_type,
        name=name,
        schema=schema,
        sub_name=sub_name,
        on_table=on_table,
        check_exists=check_exists,
        check_not_exists=check_not_exists,
    )


def extract_actions(statements: Iterable[Statement]) -> List[DDLAction]:
    """
    Convert every statement into an action.

    If any statement is not recognized the result is an empty list: the SQL
    is treated as opaque and no down migration can be derived from it.
    """
    actions = []
    for statement in statements:
        action = new_ddl_action(statement)
        if action is None:
            return []
        actions.append(action)
    return actions


def merge_drop_create(actions: List[DDLAction]) -> List[DDLAction]:
    """Collapse ``drop X; create X`` pairs into a single create action."""
    merged = []
    i = 0
    while i < len(actions):
        action = actions[i]
        following = actions[i + 1] if i + 1 < len(actions) else None
        if (
            following is not None
            and action.verb is DDLVerb.DROP
            and following.verb is DDLVerb.CREATE
            and action.same_object(following)
        ):
            merged.append(replace(
                following,
                preceded_by_drop=True,
                check_exists=action.check_exists,
            ))
            i += 2
            continue
        merged.append(action)
        i += 1
    return merged


def _absorbed_by(action: DDLAction, table: DDLAction) -> bool:
    if table.verb is not DDLVerb.CREATE or table.object_type is not DBObjectType.TABLE:
        return False
    alters_table = action.verb is DDLVerb.ALTER and action.object_type is DBObjectType.TABLE
    indexes_table = (
        action.verb is DDLVerb.CREATE
        and action.object_type is DBObjectType.INDEX
        and action.on_table
    )
    if not (alters_table or indexes_table):
        return False
    return action.schema == table.schema and action.name == table.name


def merge_create_table(actions: List[DDLAction]) -> List[DDLAction]:
    """
    Remove alter-table and create-index actions on a table created earlier
    in the same list. Dropping the table reverses all of them.
    """
    merged: List[DDLAction] = []
    for action in actions:
        if any(_absorbed_by(action, previous) for previous in merged):
            continue
        merged.append(action)
    return merged


def parse_actions(sql: str) -> List[DDLAction]:
    """Tokenize ``sql``, extract its actions and apply both merge passes."""
    actions = extract_actions(parse_statements(sql))
    return merge_create_table(merge_drop_create(actions))

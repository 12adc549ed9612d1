"""
Unit tests for DDL action extraction.
"""

import pytest

from schemashift.database.migrations.ddl import (
    DBObjectType,
    DDLAction,
    DDLVerb,
    new_ddl_action,
    parse_actions,
)
from schemashift.database.migrations.tokenizer import parse_statements


def action_for(sql: str):
    statements = parse_statements(sql)
    assert len(statements) == 1
    return new_ddl_action(statements[0])


class TestNewDDLAction:
    """Test cases for matching single statements."""

    def test_create_table(self):
        """Test a plain create table statement."""
        action = action_for("create table t1(id int primary key)")
        assert action == DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1")

    def test_schema_qualified_name(self):
        """Test a schema-qualified object name."""
        action = action_for("DROP VIEW IF EXISTS reporting.v1")
        assert action == DDLAction(
            DDLVerb.DROP, DBObjectType.VIEW, "v1", schema="reporting", check_exists=True
        )
        assert action.qualified_name == "reporting.v1"

    def test_full_index_grammar(self):
        """Test every optional part of the index grammar."""
        action = action_for("create unique index concurrently if not exists i1 on only public.t1 (name)")
        assert action == DDLAction(
            DDLVerb.CREATE,
            DBObjectType.INDEX,
            "t1",
            schema="public",
            sub_name="i1",
            on_table=True,
            check_not_exists=True,
        )

    def test_anonymous_index(self):
        """Test an index without a name."""
        action = action_for("create index on t2(id)")
        assert action == DDLAction(DDLVerb.CREATE, DBObjectType.INDEX, "t2", on_table=True)

    def test_drop_index_by_name(self):
        """Test dropping an index by its own name."""
        action = action_for("drop index i1")
        assert action == DDLAction(DDLVerb.DROP, DBObjectType.INDEX, "i1")

    def test_trigger_with_timing_clause(self):
        """Test that a trigger records the table it is defined on."""
        action = action_for(
            "create trigger tr1 before insert on t1 for each row execute procedure p1()"
        )
        assert action == DDLAction(
            DDLVerb.CREATE, DBObjectType.TRIGGER, "t1", sub_name="tr1", on_table=True
        )

    def test_alter_table(self):
        """Test an alter table statement."""
        action = action_for("alter table only t1 add column c int")
        assert action == DDLAction(DDLVerb.ALTER, DBObjectType.TABLE, "t1")

    @pytest.mark.parametrize("sql", [
        "insert into t1 values (1)",
        "create materialized view v1 as select 1",
        "grant select on t1 to someone",
        "create index",
    ])
    def test_unrecognized_statements(self, sql):
        """Test statements outside the grammar."""
        assert action_for(sql) is None


class TestDDLAction:
    """Test cases for DDLAction rendering."""

    def test_str(self):
        """Test the human readable form of actions."""
        assert str(DDLAction(DDLVerb.CREATE, DBObjectType.VIEW, "v1")) == "create view v1"
        assert str(DDLAction(
            DDLVerb.CREATE, DBObjectType.INDEX, "t1", sub_name="i1", on_table=True
        )) == "create index i1 on t1"
        assert str(DDLAction(
            DDLVerb.CREATE, DBObjectType.INDEX, "t2", on_table=True
        )) == "create index on t2"

    def test_drop_sql(self):
        """Test the statements used to drop objects."""
        assert DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1", schema="s").drop_sql() == "drop table s.t1;\n"
        assert DDLAction(
            DDLVerb.CREATE, DBObjectType.INDEX, "t1", schema="s", sub_name="i1", on_table=True
        ).drop_sql() == "drop index s.i1;\n"
        assert DDLAction(
            DDLVerb.CREATE, DBObjectType.TRIGGER, "t1", sub_name="tr1", on_table=True
        ).drop_sql() == "drop trigger tr1 on t1;\n"

    def test_object_type_properties(self):
        """Test which object types are restored rather than dropped."""
        assert DBObjectType.VIEW.should_restore
        assert DBObjectType.FUNCTION.should_restore
        assert not DBObjectType.TABLE.should_restore
        assert not DBObjectType.INDEX.should_restore
        assert DBObjectType.TRIGGER.has_sub_name
        assert not DBObjectType.VIEW.has_sub_name

    def test_same_object(self):
        """Test object identity ignores the verb and the existence checks."""
        create = DDLAction(DDLVerb.CREATE, DBObjectType.VIEW, "v1")
        drop = DDLAction(DDLVerb.DROP, DBObjectType.VIEW, "v1", check_exists=True)
        assert create.same_object(drop)
        assert not create.same_object(DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "v1"))
        assert not create.same_object(DDLAction(DDLVerb.CREATE, DBObjectType.VIEW, "v1", schema="s"))

    def test_trigger_identity_is_its_name(self):
        """Test that a trigger matches with or without its table."""
        create = DDLAction(DDLVerb.CREATE, DBObjectType.TRIGGER, "t1", sub_name="tr1", on_table=True)
        assert create.same_object(DDLAction(DDLVerb.DROP, DBObjectType.TRIGGER, "tr1"))
        assert create.same_object(DDLAction(DDLVerb.DROP, DBObjectType.TRIGGER, "t2", sub_name="tr1", on_table=True))
        assert not create.same_object(DDLAction(DDLVerb.DROP, DBObjectType.TRIGGER, "t1"))


class TestParseActions:
    """Test cases for parsing and merging a migration's actions."""

    def test_single_create(self):
        """Test a single create statement."""
        assert parse_actions("create table t1") == [
            DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1"),
        ]

    def test_drop_then_create_is_merged(self):
        """Test that drop followed by create of the same object is merged."""
        assert parse_actions("drop table if exists t1;create table t1") == [
            DDLAction(
                DDLVerb.CREATE, DBObjectType.TABLE, "t1", preceded_by_drop=True, check_exists=True
            ),
        ]

    def test_drop_then_create_trigger_is_merged(self):
        """Test merging a trigger dropped by name and created on its table."""
        actions = parse_actions(
            "drop trigger if exists tr1;"
            "create trigger tr1 before insert on t1 for each row set new.x = 1;"
        )
        assert actions == [
            DDLAction(
                DDLVerb.CREATE, DBObjectType.TRIGGER, "t1", sub_name="tr1", on_table=True,
                preceded_by_drop=True, check_exists=True
            ),
        ]

    def test_drop_then_create_of_other_object_is_kept(self):
        """Test that unrelated drop and create actions are not merged."""
        assert parse_actions("drop view v1; create view v2 as select 1") == [
            DDLAction(DDLVerb.DROP, DBObjectType.VIEW, "v1"),
            DDLAction(DDLVerb.CREATE, DBObjectType.VIEW, "v2"),
        ]

    def test_unsupported_sql_gives_no_actions(self):
        """Test that one unrecognized statement makes the whole SQL opaque."""
        assert parse_actions("something not supported") == []
        assert parse_actions("create table t1; update t1 set id = 1") == []

    def test_index_on_created_table_is_absorbed(self):
        """Test that indexes on a table created earlier are absorbed."""
        assert parse_actions("create table s.t1; create index on s.t1;") == [
            DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1", schema="s"),
        ]

    def test_alter_on_created_table_is_absorbed(self):
        """Test that alter table on a table created earlier is absorbed."""
        assert parse_actions("create table t1; alter table t1 set whatever;") == [
            DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1"),
        ]

    def test_absorption_across_several_tables(self):
        """Test absorption with several tables in one migration."""
        sql = (
            "create table t1; create table t2; create index on t1; "
            "alter table t1; alter table t2; create index on t2"
        )
        assert parse_actions(sql) == [
            DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t1"),
            DDLAction(DDLVerb.CREATE, DBObjectType.TABLE, "t2"),
        ]

    def test_index_on_other_table_is_kept(self):
        """Test that an index on a table not created in the migration is kept."""
        actions = parse_actions("create table t1(id int); create index i9 on t9(id)")
        assert len(actions) == 2
        assert actions[1].sub_name == "i9"

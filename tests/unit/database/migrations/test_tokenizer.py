"""
Unit tests for the SQL statement tokenizer.
"""

import pytest

from schemashift.database.migrations.tokenizer import (
    Statement,
    parse_statements,
    split_statements,
    tokenize,
)


class TestTokenize:
    """Test cases for tokenize."""

    def test_keywords_are_lower_cased(self):
        """Test that keywords are lower-cased and identifiers kept as written."""
        values = [token.value for token in tokenize("CREATE Table MyTable")]
        assert values == ["create", "table", "MyTable"]

    def test_comments_and_whitespace_are_skipped(self):
        """Test that comments never produce tokens."""
        sql = "create -- line comment\n /* block\n comment */ view v1"
        values = [token.value for token in tokenize(sql)]
        assert values == ["create", "view", "v1"]

    def test_token_positions(self):
        """Test that tokens report their position in the source."""
        tokens = list(tokenize("drop  table t1"))
        assert tokens[2].start == 12
        assert tokens[2].end == 14
        assert tokens[2].kind == "word"

    def test_unterminated_string_does_not_raise(self):
        """Test that unterminated input is scanned to the end."""
        tokens = list(tokenize("select 'abc"))
        assert tokens[-1].kind == "string"
        assert tokens[-1].value == "'abc"


class TestParseStatements:
    """Test cases for parse_statements."""

    def test_splits_on_semicolons(self):
        """Test splitting a script into statements."""
        statements = parse_statements("create table t1(id int); create view v1 as select 1;")
        assert len(statements) == 2
        assert statements[0].lexemes == ["create", "table", "t1", "(", "id", "int", ")"]
        assert statements[1].lexemes[:3] == ["create", "view", "v1"]

    def test_final_statement_without_semicolon(self):
        """Test that a trailing statement without a semicolon is kept."""
        statements = parse_statements("create table t1; create table t2")
        assert [s.lexemes for s in statements] == [
            ["create", "table", "t1"],
            ["create", "table", "t2"],
        ]

    def test_empty_statements_are_dropped(self):
        """Test that empty statements are dropped."""
        assert parse_statements(";; -- nothing here\n ;") == []
        assert parse_statements("") == []

    def test_semicolon_inside_string(self):
        """Test that semicolons inside string literals do not split."""
        statements = parse_statements("insert into t1 values ('a;b', 'it''s'); select 1")
        assert len(statements) == 2
        assert statements[0].text == "insert into t1 values ('a;b', 'it''s')"

    def test_semicolon_inside_quoted_identifier(self):
        """Test that semicolons inside quoted identifiers do not split."""
        statements = parse_statements('create table "odd;name"(id int); create table `b;c`')
        assert statements[0].lexemes[2] == '"odd;name"'
        assert statements[1].lexemes[2] == "`b;c`"

    def test_semicolon_inside_dollar_quote(self):
        """Test that dollar-quoted bodies are kept in one statement."""
        sql = (
            "create function f() returns int as $body$ select 1; $body$ language sql;"
            "create function g() returns int as $$ select 2; $$ language sql"
        )
        statements = parse_statements(sql)
        assert len(statements) == 2
        assert statements[0].lexemes[:3] == ["create", "function", "f"]
        assert statements[1].text.endswith("language sql")

    def test_text_excludes_comments_around_statement(self):
        """Test that statement text runs from its first to its last token."""
        statements = parse_statements("-- leading\ncreate table t1 ; -- trailing")
        assert statements[0].text == "create table t1"

    def test_split_statements(self):
        """Test that split_statements returns statement texts."""
        assert split_statements("create table t1(id int);\n\ninsert into t1 values (1);") == [
            "create table t1(id int)",
            "insert into t1 values (1)",
        ]


class TestStatement:
    """Test cases for Statement."""

    @pytest.fixture
    def statement(self):
        return Statement(["create", "unique", "index", "i1"])

    def test_get(self, statement):
        """Test get with in-range and out-of-range indexes."""
        assert statement.get(0) == "create"
        assert statement.get(3) == "i1"
        assert statement.get(4) == ""
        assert statement.get(-1) == ""

    def test_match(self, statement):
        """Test matching a statement prefix."""
        assert statement.match("create")
        assert statement.match("create", "unique")
        assert not statement.match("unique")
        assert not statement.match("create", "unique", "index", "i1", "on")
        assert statement.match()

    def test_remove(self, statement):
        """Test removing a matching prefix."""
        assert not statement.remove("index")
        assert len(statement) == 4

        assert statement.remove("create", "unique")
        assert statement.lexemes == ["index", "i1"]

    def test_copy_is_independent(self, statement):
        """Test that a copy can be consumed without changing the original."""
        copy = statement.copy()
        copy.remove("create")
        assert statement.get(0) == "create"
        assert copy != statement

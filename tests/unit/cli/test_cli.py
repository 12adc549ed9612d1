"""
Unit tests for the schemashift command line interface.
"""

import pytest
from typer.testing import CliRunner

from schemashift.cli.main import app, load_schema
from schemashift.exceptions import ConfigurationError

SCHEMA_MODULE = '''
from schemashift import Schema

schema = Schema()
schema.define(10).up("create table city(id int primary key, name text);")
schema.define(20).up("create view city_names as select name from city;")


def build_schema():
    return schema
'''

runner = CliRunner()


@pytest.fixture
def schema_module(tmp_path, monkeypatch):
    (tmp_path / "cli_test_schema.py").write_text(SCHEMA_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    for name in ("SCHEMASHIFT_DATABASE_URL", "SCHEMASHIFT_SCHEMA", "SCHEMASHIFT_TABLE"):
        monkeypatch.delenv(name, raising=False)
    return "cli_test_schema:schema"


@pytest.fixture
def base_args(tmp_path, schema_module):
    return ["--database-url", f"sqlite:///{tmp_path / 'app.db'}", "--schema", schema_module]


class TestMigrationCommands:
    """Test cases for the migration commands."""

    def test_up_and_versions(self, base_args):
        """Test migrating up and listing versions."""
        result = runner.invoke(app, base_args + ["up"])
        assert result.exit_code == 0, result.output
        assert "migrated up version=10" in result.output
        assert "migrate up finished version=20" in result.output

        result = runner.invoke(app, base_args + ["versions"])
        assert result.exit_code == 0, result.output
        assert "Schema Versions" in result.output

    def test_goto_and_down(self, base_args):
        """Test goto followed by down."""
        result = runner.invoke(app, base_args + ["goto", "10"])
        assert result.exit_code == 0, result.output
        assert "migrate goto finished version=10" in result.output

        result = runner.invoke(app, base_args + ["down"])
        assert result.exit_code == 0, result.output
        assert "migrated down version=10" in result.output

    def test_lock_blocks_down(self, base_args):
        """Test lock and unlock from the command line."""
        assert runner.invoke(app, base_args + ["up"]).exit_code == 0
        assert runner.invoke(app, base_args + ["lock", "20"]).exit_code == 0

        result = runner.invoke(app, base_args + ["goto", "0"])
        assert result.exit_code == 1
        assert "database version locked id=20" in result.output

        assert runner.invoke(app, base_args + ["unlock", "20"]).exit_code == 0
        assert runner.invoke(app, base_args + ["goto", "0"]).exit_code == 0

    def test_invalid_version(self, base_args):
        """Test that errors exit with status 1."""
        result = runner.invoke(app, base_args + ["goto", "3"])
        assert result.exit_code == 1
        assert "invalid version id=3" in result.output

    def test_environment_variables(self, tmp_path, schema_module, monkeypatch):
        """Test options given through the environment."""
        monkeypatch.setenv("SCHEMASHIFT_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        monkeypatch.setenv("SCHEMASHIFT_SCHEMA", "cli_test_schema:build_schema")
        monkeypatch.setenv("SCHEMASHIFT_TABLE", "app_versions")

        result = runner.invoke(app, ["up"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "env.db").exists()

    def test_missing_database_url(self, schema_module):
        """Test running without a database URL."""
        result = runner.invoke(app, ["--schema", schema_module, "up"])
        assert result.exit_code == 1
        assert "no database URL given" in result.output

    def test_info(self):
        """Test the info command."""
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "schemashift" in result.output


class TestLoadSchema:
    """Test cases for load_schema."""

    def test_attribute_and_callable(self, schema_module):
        """Test loading a schema object and a schema factory."""
        assert len(load_schema(schema_module)) == 2
        assert len(load_schema("cli_test_schema:build_schema")) == 2

    @pytest.mark.parametrize("reference, message", [
        ("cli_test_schema", "must look like module:attribute"),
        ("no_such_module_xyz:schema", "cannot import schema module"),
        ("cli_test_schema:missing", "has no attribute 'missing'"),
    ])
    def test_bad_references(self, schema_module, reference, message):
        """Test references that do not name a schema."""
        with pytest.raises(ConfigurationError, match=message):
            load_schema(reference)

    def test_not_a_schema(self, schema_module):
        """Test a reference to something other than a schema."""
        with pytest.raises(ConfigurationError, match="is not a Schema"):
            load_schema("string:ascii_letters")

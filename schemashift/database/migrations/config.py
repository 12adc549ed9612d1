"""
Migration configuration for schemashift.

Author: schemashift
Version: 1.0.0
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# table or schema.table
_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class MigrationConfig(BaseModel):
    """Configuration for a migration worker."""

    migrations_table: str = Field(
        default="schema_migrations",
        description="Name of the table that records applied versions"
    )

    transactional_ddl: Optional[bool] = Field(
        default=None,
        description=(
            "Whether SQL migrations run inside a transaction. "
            "None uses what the database adapter reports."
        )
    )

    log_steps: bool = Field(
        default=True,
        description="Log each version migrated and the result of each command"
    )

    @field_validator('migrations_table')
    @classmethod
    def validate_migrations_table(cls, v: str) -> str:
        """Validate the migrations table name."""
        if not _TABLE_NAME_RE.match(v):
            raise ValueError(f"invalid migrations table name: {v!r}")
        return v

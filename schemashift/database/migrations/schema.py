"""
Schema: the ordered set of versions a database can be migrated through.

Author: schemashift
Version: 1.0.0
"""

from typing import Dict, List, Optional

from .definition import Definition
from .exceptions import SchemaValidationError
from .models import ValidationIssue
from .plan import MigrationPlan


class Schema:
    """
    A collection of migration definitions keyed by version id.

    Example::

        schema = Schema()
        schema.define(1).up("create table t1(id int);")
        schema.define(2).up("create view v1 as select * from t1;")
        schema.check()
    """

    def __init__(self):
        self._definitions: Dict[int, Definition] = {}
        self._duplicates: List[int] = []
        self._invalid: List[int] = []
        self._plans: Optional[List[MigrationPlan]] = None

    def define(self, version_id: int) -> Definition:
        """
        Define a new version.

        Versions are applied in ascending order of ``version_id``, whatever
        order they are defined in.
        """
        if not isinstance(version_id, int) or isinstance(version_id, bool):
            raise TypeError(f"version id must be an int, got {type(version_id).__name__}")

        definition = Definition(version_id, schema=self)
        if version_id <= 0:
            self._invalid.append(version_id)
        elif version_id in self._definitions:
            self._duplicates.append(version_id)
        else:
            self._definitions[version_id] = definition
        self._invalidate()
        return definition

    def _invalidate(self) -> None:
        self._plans = None

    def __contains__(self, version_id: object) -> bool:
        return version_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def ids(self) -> List[int]:
        return sorted(self._definitions)

    @property
    def plans(self) -> List[MigrationPlan]:
        """Plans for every defined version in ascending order of id."""
        if self._plans is None:
            plans: List[MigrationPlan] = []
            for index, version_id in enumerate(self.ids):
                plans.append(MigrationPlan(self._definitions[version_id], plans, index))
            self._plans = plans
        return self._plans

    def plan(self, version_id: int) -> Optional[MigrationPlan]:
        for plan in self.plans:
            if plan.id == version_id:
                return plan
        return None

    def errors(self) -> List[ValidationIssue]:
        """Every validation error in the schema, ordered by version."""
        issues = [ValidationIssue(vid, "version id must be positive") for vid in self._invalid]
        issues.extend(ValidationIssue(vid, "defined more than once") for vid in self._duplicates)
        for plan in self.plans:
            issues.extend(plan.errors)
        return sorted(issues, key=lambda issue: issue.version)

    def check(self) -> None:
        """
        Raises:
            SchemaValidationError: If the schema has any validation errors
        """
        issues = self.errors()
        if issues:
            raise SchemaValidationError(issues)

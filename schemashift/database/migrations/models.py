"""
Migration data models.

Author: schemashift
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .exceptions import MissingPlanError, PreviouslyFailedError, VersionLockedError

if TYPE_CHECKING:
    from .plan import MigrationPlan


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found while validating a schema."""
    version: int
    description: str

    def __str__(self) -> str:
        return f"{self.version}: {self.description}"


@dataclass
class Version:
    """
    The state of one schema version.

    Rows in the migrations table exist only for applied versions, so an
    unapplied version has ``applied_at`` set to ``None``.
    """
    id: int
    applied_at: Optional[datetime] = None
    failed: bool = False
    locked: bool = False
    up: str = ""
    down: str = ""

    @property
    def applied(self) -> bool:
        return self.applied_at is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert version to dictionary."""
        return {
            'id': self.id,
            'applied_at': self.applied_at.isoformat() if self.applied_at else None,
            'failed': self.failed,
            'locked': self.locked,
            'up': self.up,
            'down': self.down
        }


@dataclass
class VersionSummary:
    """
    Versions in the database combined with the plans of the schema.

    A summary is only valid inside the transaction it was read in.
    """
    versions: List[Version] = field(default_factory=list)
    applied: List["MigrationPlan"] = field(default_factory=list)
    unapplied: List["MigrationPlan"] = field(default_factory=list)
    vmap: Dict[int, Version] = field(default_factory=dict)
    orphaned: List[int] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        plans: Sequence["MigrationPlan"],
        rows: Sequence[Version],
        allow_failed: bool = False
    ) -> "VersionSummary":
        """
        Combine ``plans`` (ascending by id) with the persisted ``rows``.

        Raises:
            PreviouslyFailedError: If a row is marked failed and ``allow_failed``
                is not set
        """
        vmap = {row.id: row for row in rows}
        if not allow_failed:
            for row in rows:
                if row.failed:
                    raise PreviouslyFailedError(row.id)

        summary = cls(vmap=vmap)
        plan_ids = set()
        for plan in plans:
            plan_ids.add(plan.id)
            version = vmap.get(plan.id)
            if version is None:
                version = Version(id=plan.id)
                vmap[plan.id] = version
                summary.unapplied.append(plan)
            else:
                summary.applied.append(plan)
            version.up = plan.up.description
            version.down = plan.down.description if plan.down else ""

        summary.applied.reverse()
        summary.versions = sorted(vmap.values(), key=lambda v: v.id)
        summary.orphaned = sorted(vid for vid in vmap if vid not in plan_ids)
        return summary

    def check_locked(self, target: int) -> None:
        """
        Check that migrating down to ``target`` does not pass a locked version.

        Raises:
            VersionLockedError: Identifying the first locked version found
        """
        for plan in self.applied:
            if plan.id <= target:
                break
            if self.vmap[plan.id].locked:
                raise VersionLockedError(plan.id)

    def check_orphans(self, target: int) -> None:
        """
        Check that no applied version above ``target`` is missing from the schema.

        Raises:
            MissingPlanError: For the highest such version
        """
        for version_id in reversed(self.orphaned):
            if version_id > target:
                raise MissingPlanError(version_id)

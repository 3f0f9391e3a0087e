from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..manifest.models import DmlOperation, OrgConfig


class ConfidenceTier(str, Enum):
    """
    How a rollback query locates its rows.

    The Delete ladder tiers carry a rank, 1 being the most trustworthy.
    Update/Insert queries are either driven by the backup header or degraded.
    """
    BACKUP_COLUMNS = "backup_columns"
    POST_MIGRATION_IDS = "post_migration_ids"
    PRE_RUN_IDS = "pre_run_ids"
    ORIGINAL_FILTER = "original_filter"
    ROW_CAP = "row_cap"
    EXTERNAL_ID = "external_id"
    UNFILTERED = "unfiltered"
    DEGRADED = "degraded"

    @property
    def rank(self) -> Optional[int]:
        return _LADDER_RANK.get(self)

    @property
    def is_risky(self) -> bool:
        """Pre-run Ids, row order or an unbounded match may hit rows the run never touched."""
        return self in (ConfidenceTier.PRE_RUN_IDS, ConfidenceTier.ROW_CAP, ConfidenceTier.UNFILTERED)


_LADDER_RANK = {
    ConfidenceTier.POST_MIGRATION_IDS: 1,
    ConfidenceTier.PRE_RUN_IDS: 1,
    ConfidenceTier.ORIGINAL_FILTER: 2,
    ConfidenceTier.ROW_CAP: 3,
    ConfidenceTier.EXTERNAL_ID: 4,
    ConfidenceTier.UNFILTERED: 5,
}


@dataclass(frozen=True)
class RollbackQuery:
    soql: str
    tier: ConfidenceTier


@dataclass
class RollbackObject:
    """
    One object of a rollback plan.

    ``backup_file`` is the snapshot (pre- or post-run) the engine loads
    rows from; None means rows are located through ``query`` alone.
    """
    object_name: str
    original_operation: str
    rollback_operation: DmlOperation
    external_id: str
    query: str
    tier: ConfidenceTier
    backup_file: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "objectName": self.object_name,
            "originalOperation": self.original_operation,
            "rollbackOperation": self.rollback_operation.value,
            "externalId": self.external_id,
            "query": self.query,
            "confidenceTier": self.tier.value,
        }
        if self.backup_file is not None:
            out["backupFile"] = self.backup_file
        return out


@dataclass
class RollbackConfig:
    backup_dir: str
    mode: str
    phase_number: Optional[int]
    source_org: OrgConfig
    target_org: OrgConfig
    objects: list[RollbackObject] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "backupDir": self.backup_dir,
            "mode": self.mode,
            "phaseNumber": self.phase_number,
            "objects": [obj.to_dict() for obj in self.objects],
            "sourceOrg": self.source_org.to_dict(),
            "targetOrg": self.target_org.to_dict(),
        }

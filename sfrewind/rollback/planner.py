from __future__ import annotations

import logging
import os
import time
from typing import Optional

from ..config import PlannerConfig
from ..manifest.models import BackupObjectRecord, DmlOperation, OrgConfig
from ..manifest.reader import load_backup_metadata
from .inversion import describe_skip_reason, invert_operation
from .metrics import SkipReason, observe_object_planned, observe_object_skipped, observe_plan
from .models import ConfidenceTier, RollbackConfig, RollbackObject
from .query import build_rollback_query

logger = logging.getLogger(__name__)


class RollbackPlanner:
    """
    Builds a rollback plan from the backup directory of a completed run.

    The planner only reads: it loads the manifest, checks that snapshot
    files exist and reads their header rows. Nothing under the backup
    directory is written.

    Each object is judged on its own. An object that cannot be undone
    safely is left out of the plan with a warning; only a missing or
    malformed manifest fails the whole call.

    Usage:
        planner = RollbackPlanner(PlannerConfig(allow_unfiltered_delete=False))
        plan = planner.plan("/exports/backups/2024-12-01T14-30-22", source, target)
        for obj in plan.objects:
            print(obj.object_name, obj.rollback_operation, obj.tier)
    """

    def __init__(self, config: Optional[PlannerConfig] = None) -> None:
        self.config = config or PlannerConfig()

    def plan(self, backup_dir: str, source_org: OrgConfig, target_org: OrgConfig) -> RollbackConfig:
        """
        Compute the rollback plan.

        Args:
            backup_dir: Directory holding the manifest and CSV snapshots
            source_org: Source org of the original run
            target_org: Target org of the original run

        Returns:
            RollbackConfig with the org roles of the original run exchanged

        Raises:
            ManifestError: If the manifest is missing or malformed
        """
        start_time = time.monotonic()
        status = "success"
        try:
            metadata = load_backup_metadata(backup_dir, self.config.manifest_name)

            objects: list[RollbackObject] = []
            for record in metadata.objects:
                rollback_obj = self._plan_object(backup_dir, record)
                if rollback_obj is not None:
                    objects.append(rollback_obj)

            logger.info(
                "Rollback plan for %s: %d of %d objects planned",
                backup_dir,
                len(objects),
                len(metadata.objects),
            )

            # The original run's target becomes the rollback source and vice versa.
            return RollbackConfig(
                backup_dir=backup_dir,
                mode=metadata.mode,
                phase_number=metadata.phase_number,
                objects=objects,
                source_org=target_org,
                target_org=source_org,
            )
        except Exception:
            status = "error"
            raise
        finally:
            observe_plan(status, time.monotonic() - start_time)

    def _plan_object(self, backup_dir: str, record: BackupObjectRecord) -> Optional[RollbackObject]:
        has_usable_backup = bool(record.backup_file) and record.record_count > 0

        rollback_op = invert_operation(
            record.operation,
            has_usable_backup,
            record.was_inserted,
            self.config.upsert_policy,
        )
        if rollback_op is None:
            self._skip(
                record,
                SkipReason.NO_INVERSE,
                describe_skip_reason(record.operation, has_usable_backup),
            )
            return None

        requires_backup = rollback_op in (DmlOperation.INSERT, DmlOperation.UPDATE)
        backup_file, post_migration_snapshot = self._choose_backup_file(backup_dir, record, rollback_op)

        if backup_file is not None and not os.path.isfile(backup_file):
            if requires_backup:
                self._skip(
                    record,
                    SkipReason.BACKUP_MISSING,
                    f"{rollback_op.value} rollback requires backup file, but file not found: {backup_file}",
                )
                return None
            logger.warning(
                "Backup file not found for %s: %s. Will use query for Delete rollback.",
                record.object_name,
                backup_file,
            )
            backup_file = None

        if requires_backup and backup_file is None:
            self._skip(
                record,
                SkipReason.BACKUP_MISSING,
                f"{rollback_op.value} rollback requires backup file, but none was found",
            )
            return None

        query = build_rollback_query(
            record.object_name,
            record.external_id,
            rollback_op,
            backup_file,
            record.original_query,
            post_migration_snapshot=post_migration_snapshot,
        )

        if requires_backup and query.tier == ConfidenceTier.DEGRADED:
            self._skip(
                record,
                SkipReason.BACKUP_MISSING,
                f"{rollback_op.value} rollback requires backup columns, but backup file has no header: {backup_file}",
            )
            return None

        if query.tier == ConfidenceTier.UNFILTERED and not self.config.allow_unfiltered_delete:
            self._skip(
                record,
                SkipReason.UNFILTERED_DELETE,
                "Delete rollback would match every record; confirm with allow_unfiltered_delete",
            )
            return None

        if query.tier.is_risky:
            logger.warning(
                "Rollback of %s uses low-confidence tier %s (rank %s): %s",
                record.object_name,
                query.tier.value,
                query.tier.rank,
                query.soql,
            )

        observe_object_planned(record.object_name, rollback_op.value, query.tier.value)
        return RollbackObject(
            object_name=record.object_name,
            original_operation=record.operation,
            rollback_operation=rollback_op,
            external_id=record.external_id,
            query=query.soql,
            tier=query.tier,
            backup_file=backup_file,
        )

    @staticmethod
    def _choose_backup_file(
        backup_dir: str, record: BackupObjectRecord, rollback_op: DmlOperation
    ) -> tuple[Optional[str], bool]:
        """Return the snapshot path and whether it was taken after the run."""
        # Undoing an insert prefers the post-run snapshot, which carries the assigned Ids.
        if rollback_op == DmlOperation.DELETE and record.post_migration_backup_file:
            return os.path.join(backup_dir, record.post_migration_backup_file), True
        if record.backup_file:
            return os.path.join(backup_dir, record.backup_file), False
        return None, False

    @staticmethod
    def _skip(record: BackupObjectRecord, reason: str, detail: str) -> None:
        logger.warning("Skipping %s rollback: %s", record.object_name, detail)
        observe_object_skipped(record.object_name, reason)


def generate_rollback_config(
    backup_dir: str,
    source_org: OrgConfig,
    target_org: OrgConfig,
    config: Optional[PlannerConfig] = None,
) -> RollbackConfig:
    """Build a rollback plan for backup_dir; see RollbackPlanner.plan."""
    return RollbackPlanner(config).plan(backup_dir, source_org, target_org)

from __future__ import annotations

import logging
import re
from typing import Optional

from ..manifest.models import DmlOperation
from ..manifest.reader import read_csv_header
from .models import ConfidenceTier, RollbackQuery

logger = logging.getLogger(__name__)

_WHERE_RE = re.compile(
    r"\bWHERE\s+(.+?)(?:\s+ORDER\s+BY\b|\s+LIMIT\b|\s+OFFSET\b|$)",
    re.IGNORECASE | re.DOTALL,
)
_LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)


def _split_external_id(external_id: str) -> list[str]:
    return [f.strip() for f in (external_id or "").split(";") if f.strip()]


def _select_from_backup(object_name: str, backup_file: Optional[str]) -> Optional[RollbackQuery]:
    if not backup_file:
        return None
    fields = read_csv_header(backup_file)
    if not fields:
        return None
    return RollbackQuery(
        f"SELECT {', '.join(fields)} FROM {object_name}",
        ConfidenceTier.BACKUP_COLUMNS,
    )


def _delete_query(
    object_name: str,
    external_id: str,
    backup_file: Optional[str],
    original_query: Optional[str],
    post_migration_snapshot: bool,
) -> RollbackQuery:
    base = f"SELECT Id FROM {object_name}"

    # Rows are matched against the snapshot's Id column by the engine.
    if backup_file and "Id" in read_csv_header(backup_file):
        if post_migration_snapshot:
            return RollbackQuery(base, ConfidenceTier.POST_MIGRATION_IDS)
        # A pre-run snapshot also lists rows that existed before the run.
        return RollbackQuery(base, ConfidenceTier.PRE_RUN_IDS)

    if original_query:
        where = _WHERE_RE.search(original_query)
        if where:
            return RollbackQuery(
                f"{base} WHERE {where.group(1).strip()}",
                ConfidenceTier.ORIGINAL_FILTER,
            )
        limit = _LIMIT_RE.search(original_query)
        if limit:
            return RollbackQuery(
                f"{base} ORDER BY CreatedDate DESC LIMIT {limit.group(1)}",
                ConfidenceTier.ROW_CAP,
            )

    fields = _split_external_id(external_id)
    if fields and fields != ["Id"]:
        conditions = " AND ".join(f"{name} != null" for name in fields)
        return RollbackQuery(f"{base} WHERE {conditions}", ConfidenceTier.EXTERNAL_ID)

    logger.warning(
        "Cannot safely identify inserted records for %s rollback: no post-migration "
        "backup, WHERE clause or external id available. The query selects ALL %s records.",
        object_name,
        object_name,
    )
    return RollbackQuery(base, ConfidenceTier.UNFILTERED)


def build_rollback_query(
    object_name: str,
    external_id: str,
    rollback_operation: DmlOperation,
    backup_file: Optional[str] = None,
    original_query: Optional[str] = None,
    post_migration_snapshot: bool = True,
) -> RollbackQuery:
    """
    Build the SOQL query that locates the rows a rollback operation acts on.

    Never raises: a missing or unreadable backup file is treated as absent,
    and some query is always returned together with its confidence tier.

    Update and Insert rollbacks select exactly the columns of the backup
    header, so the undo restores the field set that was backed up. Without
    a usable header the query is degraded and cannot restore values.

    Delete rollbacks walk a ladder, stopping at the first usable tier:
    1. backup snapshot carrying Ids (post-run snapshot of the inserted rows;
       a pre-run snapshot gets the risky pre_run_ids tier instead)
    2. the WHERE clause of the original query, reused verbatim
    3. only a LIMIT in the original query: newest rows, same cap
    4. external id field(s) not null, composite ids conjoined with AND
    5. every row of the object, logged as a warning

    Args:
        object_name: API name of the object
        external_id: External id field, or several joined by ';'
        rollback_operation: Operation the rollback run performs
        backup_file: Absolute path of the snapshot chosen for this object
        original_query: Query the original run selected source rows with
        post_migration_snapshot: Whether backup_file was taken after the run

    Returns:
        RollbackQuery with the SOQL text and its ConfidenceTier
    """
    if rollback_operation == DmlOperation.DELETE:
        return _delete_query(
            object_name, external_id, backup_file, original_query, post_migration_snapshot
        )

    if rollback_operation == DmlOperation.UPDATE:
        from_backup = _select_from_backup(object_name, backup_file)
        if from_backup is not None:
            return from_backup
        fields = ["Id"] + [f for f in _split_external_id(external_id) if f != "Id"]
        return RollbackQuery(
            f"SELECT {', '.join(fields)} FROM {object_name}",
            ConfidenceTier.DEGRADED,
        )

    if rollback_operation == DmlOperation.INSERT:
        from_backup = _select_from_backup(object_name, backup_file)
        if from_backup is not None:
            return from_backup

    return RollbackQuery(f"SELECT Id FROM {object_name}", ConfidenceTier.DEGRADED)


def generate_rollback_query(
    object_name: str,
    external_id: str,
    rollback_operation: DmlOperation,
    backup_file: Optional[str] = None,
    original_query: Optional[str] = None,
    post_migration_snapshot: bool = True,
) -> str:
    """Same as build_rollback_query, returning only the SOQL text."""
    return build_rollback_query(
        object_name,
        external_id,
        rollback_operation,
        backup_file,
        original_query,
        post_migration_snapshot,
    ).soql

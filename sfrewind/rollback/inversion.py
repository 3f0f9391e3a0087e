from __future__ import annotations

from typing import Optional

from ..config import UpsertPolicy
from ..manifest.models import DmlOperation

# Operations whose undo needs the pre-run values of the rows.
_BACKUP_REQUIRED = frozenset(
    {DmlOperation.UPDATE, DmlOperation.DELETE, DmlOperation.DELETE_HIERARCHY}
)


def invert_operation(
    original: DmlOperation | str,
    has_usable_backup: bool,
    was_inserted: Optional[bool] = None,
    upsert_policy: UpsertPolicy = UpsertPolicy.DELETE,
) -> Optional[DmlOperation]:
    """
    Return the DML operation that undoes ``original``, or None if it cannot
    be undone safely.

    Rules:
    - Insert is undone by Delete, backup or not
    - Update is undone by Update, only with a backup of the old values
    - Delete and DeleteHierarchy are undone by Insert, only with a backup
    - Upsert with an explicit hint follows the hint (True -> Delete,
      False -> Update, the latter only with a backup)
    - Upsert without a backup, or with a backup but no hint, cannot tell
      new rows from modified ones; upsert_policy decides (Delete by default)
    - DeleteSource and anything else have no inverse

    Pure function; a None result means "skip this object", not an error.
    """
    op = DmlOperation.coerce(original)

    if op == DmlOperation.INSERT:
        return DmlOperation.DELETE

    if op == DmlOperation.UPDATE:
        return DmlOperation.UPDATE if has_usable_backup else None

    if op == DmlOperation.UPSERT:
        if has_usable_backup and was_inserted is True:
            return DmlOperation.DELETE
        if has_usable_backup and was_inserted is False:
            return DmlOperation.UPDATE
        if upsert_policy == UpsertPolicy.SKIP:
            return None
        return DmlOperation.DELETE

    if op in (DmlOperation.DELETE, DmlOperation.DELETE_HIERARCHY):
        return DmlOperation.INSERT if has_usable_backup else None

    return None


def describe_skip_reason(original: DmlOperation | str, has_usable_backup: bool) -> str:
    """Operator-facing reason for an object that has no inverse operation."""
    op = DmlOperation.coerce(original)
    if op == DmlOperation.DELETE_SOURCE:
        return "DeleteSource removes source records and cannot be rolled back"
    if op in _BACKUP_REQUIRED and not has_usable_backup:
        return f"{op.value} rollback requires a backup with records, none available"
    if op == DmlOperation.UPSERT:
        return "Upsert rollback is ambiguous and the upsert policy is 'skip'"
    return f"operation {original!r} has no rollback"

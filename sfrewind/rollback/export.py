from __future__ import annotations

import csv
import json
import logging
import os
from typing import Any

from ..errors import ExportError
from ..manifest.models import DmlOperation, OrgConfig
from .models import RollbackConfig, RollbackObject

logger = logging.getLogger(__name__)

CSV_SOURCE_USERNAME = "csvfile"


def _copy_clean_csv(src: str, dest: str) -> list[str]:
    """
    Copy a snapshot, dropping blank rows and fitting every row to the header width.

    Returns the header of the copy.
    """
    with open(src, "r", encoding="utf-8-sig", newline="") as fin:
        reader = csv.reader(fin)
        header = [name.strip() for name in next(reader, [])]
        width = len(header)
        with open(dest, "w", encoding="utf-8", newline="") as fout:
            writer = csv.writer(fout, lineterminator="\n")
            writer.writerow(header)
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                row = [cell.strip() for cell in row[:width]]
                row.extend([""] * (width - len(row)))
                writer.writerow(row)
    return header


def _org_entry(org: OrgConfig) -> dict[str, Any] | None:
    if not org.username or not org.instance_url:
        return None
    entry = {"username": org.username, "instanceUrl": org.instance_url}
    if org.access_token:
        entry["accessToken"] = org.access_token
    return entry


def write_rollback_export(config: RollbackConfig, output_dir: str) -> str:
    """
    Write the migration engine's ``export.json`` for a rollback plan.

    Objects are written in reverse plan order so children are undone before
    their parents. Every object that carries a backup file gets a cleaned
    copy named ``<ObjectName>.csv`` next to export.json; the snapshot itself
    is left untouched.

    When any CSV is copied the engine reads rows from CSV files
    (source username ``csvfile``), and objects without a CSV are left out
    since the engine would expect one for them as well. Otherwise the
    rollback source org is queried directly.

    Args:
        config: Rollback plan to export
        output_dir: Directory to write into; created if needed

    Returns:
        output_dir

    Raises:
        ExportError: If a file cannot be written or a snapshot cannot be read
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Cannot create rollback export directory {output_dir}: {exc}") from exc

    ordered = list(reversed(config.objects))
    with_csv: set[str] = set()
    has_csv_without_id = False

    for obj in ordered:
        if obj.backup_file is None:
            continue
        dest = os.path.join(output_dir, f"{obj.object_name}.csv")
        try:
            header = _copy_clean_csv(obj.backup_file, dest)
        except FileNotFoundError:
            logger.warning("Backup file disappeared for %s: %s", obj.object_name, obj.backup_file)
            continue
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise ExportError(f"Cannot copy backup file {obj.backup_file}: {exc}") from exc
        with_csv.add(obj.object_name)
        if "Id" not in header:
            has_csv_without_id = True

    using_csv = bool(with_csv)
    script_objects: list[dict[str, Any]] = []
    for obj in ordered:
        if not _exportable(obj, with_csv, using_csv):
            continue
        script_objects.append(
            {
                "query": obj.query,
                "operation": obj.rollback_operation.value,
                "externalId": obj.external_id,
            }
        )

    export: dict[str, Any] = {"objects": script_objects}
    if using_csv:
        export["sourceOrg"] = {"username": CSV_SOURCE_USERNAME}
    else:
        source = _org_entry(config.source_org)
        if source is not None:
            export["sourceOrg"] = source
    target = _org_entry(config.target_org)
    if target is not None:
        export["targetOrg"] = target
    if has_csv_without_id:
        export["excludeIdsFromCSVFiles"] = True

    export_path = os.path.join(output_dir, "export.json")
    try:
        with open(export_path, "w", encoding="utf-8") as fh:
            json.dump(export, fh, indent=2)
    except OSError as exc:
        raise ExportError(f"Cannot write {export_path}: {exc}") from exc

    logger.info("Wrote rollback export with %d objects to %s", len(script_objects), export_path)
    return output_dir


def _exportable(obj: RollbackObject, with_csv: set[str], using_csv: bool) -> bool:
    has_csv = obj.object_name in with_csv
    if obj.rollback_operation in (DmlOperation.INSERT, DmlOperation.UPDATE) and not has_csv:
        logger.warning(
            "Skipping %s in export: %s rollback requires a backup CSV file",
            obj.object_name,
            obj.rollback_operation.value,
        )
        return False
    if using_csv and not has_csv:
        logger.warning(
            "Skipping %s in export: engine reads CSV files and %s has none",
            obj.object_name,
            obj.object_name,
        )
        return False
    return True

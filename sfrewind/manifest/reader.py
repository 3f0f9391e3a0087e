from __future__ import annotations

import csv
import json
import logging
import os
from typing import Optional

from ..errors import ManifestError, ManifestNotFoundError
from .models import BackupInfo, BackupMetadata

logger = logging.getLogger(__name__)

MANIFEST_NAME = "metadata.json"


def load_backup_metadata(backup_dir: str, manifest_name: str = MANIFEST_NAME) -> BackupMetadata:
    """
    Load the manifest of a completed migration run.

    Args:
        backup_dir: Directory holding the manifest and its CSV snapshots
        manifest_name: File name of the manifest inside backup_dir

    Returns:
        Parsed BackupMetadata

    Raises:
        ManifestNotFoundError: If the manifest file does not exist
        ManifestError: If the manifest cannot be read or is malformed
    """
    path = os.path.join(backup_dir, manifest_name)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise ManifestNotFoundError(f"Backup manifest not found: {path}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Backup manifest is not valid JSON: {path}: {exc}") from exc
    except OSError as exc:
        raise ManifestError(f"Cannot read backup manifest {path}: {exc}") from exc

    try:
        return BackupMetadata.from_dict(data)
    except ManifestError as exc:
        raise ManifestError(f"{path}: {exc}") from exc


def read_csv_header(csv_path: str) -> list[str]:
    """
    Return the field names in the header row of a CSV snapshot.

    Only the first record is read. An unreadable or empty file yields [].
    """
    try:
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as fh:
            header = next(csv.reader(fh), [])
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.debug("Cannot read CSV header from %s: %s", csv_path, exc)
        return []
    fields = [name.strip().strip('"').strip() for name in header]
    return [name for name in fields if name]


def resolve_backups_dir(output_dir: str, phase_number: Optional[int] = None) -> str:
    """
    Backups live in a ``backups`` folder next to the engine's export.json;
    phase-based runs keep one per ``Phase N`` folder.
    """
    base = os.path.join(output_dir, f"Phase {phase_number}") if phase_number else output_dir
    return os.path.join(base, "backups")


def list_available_backups(backups_dir: str, manifest_name: str = MANIFEST_NAME) -> list[BackupInfo]:
    """
    List every backup under backups_dir, newest first.

    Each sub-directory is one backup, named by its creation timestamp.
    Directories whose manifest cannot be loaded are skipped with a warning.
    """
    if not os.path.isdir(backups_dir):
        return []

    backups: list[BackupInfo] = []
    for entry in sorted(os.scandir(backups_dir), key=lambda e: e.name):
        if not entry.is_dir():
            continue
        try:
            metadata = load_backup_metadata(entry.path, manifest_name)
        except ManifestError as exc:
            logger.warning("Skipping invalid backup %s: %s", entry.path, exc)
            continue
        backups.append(BackupInfo(timestamp=entry.name, path=entry.path, metadata=metadata))

    backups.sort(key=lambda b: b.timestamp, reverse=True)
    return backups

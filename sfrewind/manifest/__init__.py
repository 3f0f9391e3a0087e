from .models import BackupInfo, BackupMetadata, BackupObjectRecord, DmlOperation, OrgConfig
from .reader import list_available_backups, load_backup_metadata, read_csv_header, resolve_backups_dir

__all__ = [
    "BackupInfo",
    "BackupMetadata",
    "BackupObjectRecord",
    "DmlOperation",
    "OrgConfig",
    "list_available_backups",
    "load_backup_metadata",
    "read_csv_header",
    "resolve_backups_dir",
]

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import ManifestError


class DmlOperation(str, Enum):
    INSERT = "Insert"
    UPDATE = "Update"
    UPSERT = "Upsert"
    DELETE = "Delete"
    DELETE_HIERARCHY = "DeleteHierarchy"
    DELETE_SOURCE = "DeleteSource"
    READONLY = "Readonly"

    @classmethod
    def coerce(cls, value: DmlOperation | str | None) -> Optional[DmlOperation]:
        """
        Map a manifest value onto a known operation.

        Returns None for values outside the closed set; the caller treats
        those as "no-op" rather than as an error.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class OrgConfig:
    """
    Connection identity of one org, copied verbatim between plans.
    """
    username: str
    instance_url: str = ""
    alias: Optional[str] = None
    access_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrgConfig:
        if not isinstance(data, Mapping) or not data.get("username"):
            raise ManifestError(f"Invalid org descriptor: {data!r}")
        return cls(
            username=data["username"],
            instance_url=data.get("instanceUrl", ""),
            alias=data.get("alias"),
            access_token=data.get("accessToken"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"username": self.username, "instanceUrl": self.instance_url}
        if self.alias is not None:
            out["alias"] = self.alias
        if self.access_token is not None:
            out["accessToken"] = self.access_token
        return out


_STRING_KEYS = ("operation", "externalId", "backupFile", "postMigrationBackupFile", "originalQuery")


@dataclass
class BackupObjectRecord:
    """
    What the original run did to one object, as recorded by the backup writer.

    ``operation`` keeps the raw manifest string so unknown operations survive
    into skip logs unchanged. ``backup_file`` and ``post_migration_backup_file``
    are relative to the backup directory.
    """
    object_name: str
    operation: str
    external_id: str = ""
    backup_file: Optional[str] = None
    post_migration_backup_file: Optional[str] = None
    record_count: int = 0
    post_migration_record_count: Optional[int] = None
    original_query: Optional[str] = None
    fields: list[str] = field(default_factory=list)
    # only meaningful for Upsert; None when the writer could not tell
    was_inserted: Optional[bool] = None

    @property
    def external_id_fields(self) -> list[str]:
        return [f.strip() for f in self.external_id.split(";") if f.strip()]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BackupObjectRecord:
        if not isinstance(data, Mapping):
            raise ManifestError(f"Manifest object entry must be a mapping, got {type(data).__name__}")

        object_name = data.get("objectName")
        if not isinstance(object_name, str) or not object_name:
            raise ManifestError(f"Manifest object entry without objectName: {dict(data)!r}")

        record_count = data.get("recordCount", 0)
        if isinstance(record_count, bool) or not isinstance(record_count, int):
            raise ManifestError(
                f"recordCount for {object_name} must be an integer, got {record_count!r}"
            )

        was_inserted = data.get("wasInserted")
        if was_inserted is not None and not isinstance(was_inserted, bool):
            raise ManifestError(f"wasInserted for {object_name} must be a boolean")

        for key in _STRING_KEYS:
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ManifestError(f"{key} for {object_name} must be a string, got {value!r}")

        fields = data.get("fields") or []
        if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
            raise ManifestError(f"fields for {object_name} must be a list of strings")

        return cls(
            object_name=object_name,
            operation=data.get("operation") or "",
            external_id=data.get("externalId") or "",
            backup_file=data.get("backupFile") or None,
            post_migration_backup_file=data.get("postMigrationBackupFile") or None,
            record_count=record_count,
            post_migration_record_count=data.get("postMigrationRecordCount"),
            original_query=data.get("originalQuery") or None,
            fields=list(fields),
            was_inserted=was_inserted,
        )


@dataclass
class BackupMetadata:
    """
    Manifest written once at the end of a migration run (``metadata.json``).
    """
    mode: str
    objects: list[BackupObjectRecord]
    phase_number: Optional[int] = None
    timestamp: Optional[str] = None
    config_name: Optional[str] = None
    description: Optional[str] = None
    source_org: Optional[OrgConfig] = None
    target_org: Optional[OrgConfig] = None

    @property
    def total_records(self) -> int:
        return sum(obj.record_count for obj in self.objects)

    @classmethod
    def from_dict(cls, data: Any) -> BackupMetadata:
        if not isinstance(data, Mapping):
            raise ManifestError("Manifest root must be a JSON object")

        raw_objects = data.get("objects")
        if not isinstance(raw_objects, list):
            raise ManifestError("Manifest has no 'objects' list")

        phase_number = data.get("phaseNumber")
        if phase_number is not None and (
            isinstance(phase_number, bool) or not isinstance(phase_number, int)
        ):
            raise ManifestError(f"phaseNumber must be an integer, got {phase_number!r}")

        return cls(
            mode=data.get("mode") or "standard",
            objects=[BackupObjectRecord.from_dict(o) for o in raw_objects],
            phase_number=phase_number,
            timestamp=data.get("timestamp"),
            config_name=data.get("configName"),
            description=data.get("description"),
            source_org=OrgConfig.from_dict(data["sourceOrg"]) if data.get("sourceOrg") else None,
            target_org=OrgConfig.from_dict(data["targetOrg"]) if data.get("targetOrg") else None,
        )


@dataclass
class BackupInfo:
    """One entry of a backup listing."""
    timestamp: str
    path: str
    metadata: BackupMetadata

    @property
    def object_count(self) -> int:
        return len(self.metadata.objects)

    @property
    def total_records(self) -> int:
        return self.metadata.total_records

from dataclasses import dataclass
from enum import Enum


class UpsertPolicy(str, Enum):
    """What to do with an Upsert whose insert/update split is unknown."""
    DELETE = "delete"
    SKIP = "skip"


@dataclass
class PlannerConfig:
    upsert_policy: UpsertPolicy = UpsertPolicy.DELETE
    allow_unfiltered_delete: bool = False
    manifest_name: str = "metadata.json"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not isinstance(self.upsert_policy, UpsertPolicy):
            self.upsert_policy = UpsertPolicy(self.upsert_policy)
        if not self.manifest_name:
            raise ValueError("manifest_name cannot be empty")
        if "/" in self.manifest_name or "\\" in self.manifest_name:
            raise ValueError(
                f"manifest_name must be a plain file name, got {self.manifest_name!r}"
            )

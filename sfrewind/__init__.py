from .config import PlannerConfig, UpsertPolicy
from .manifest.models import DmlOperation, OrgConfig
from .rollback.planner import RollbackPlanner, generate_rollback_config

__all__ = [
    "DmlOperation",
    "OrgConfig",
    "PlannerConfig",
    "RollbackPlanner",
    "UpsertPolicy",
    "generate_rollback_config",
]

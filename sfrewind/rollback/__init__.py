from .export import write_rollback_export
from .inversion import describe_skip_reason, invert_operation
from .models import ConfidenceTier, RollbackConfig, RollbackObject, RollbackQuery
from .planner import RollbackPlanner, generate_rollback_config
from .query import build_rollback_query, generate_rollback_query

__all__ = [
    "ConfidenceTier",
    "RollbackConfig",
    "RollbackObject",
    "RollbackPlanner",
    "RollbackQuery",
    "build_rollback_query",
    "describe_skip_reason",
    "generate_rollback_config",
    "generate_rollback_query",
    "invert_operation",
    "write_rollback_export",
]

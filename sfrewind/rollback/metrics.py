from ..metrics.registry import (
    ROLLBACK_OBJECTS_PLANNED_TOTAL,
    ROLLBACK_OBJECTS_SKIPPED_TOTAL,
    ROLLBACK_PLAN_LATENCY_SECONDS,
)


class SkipReason:
    NO_INVERSE = "no_inverse"
    BACKUP_MISSING = "backup_missing"
    UNFILTERED_DELETE = "unfiltered_delete"


def observe_object_planned(object_name: str, operation: str, tier: str) -> None:
    ROLLBACK_OBJECTS_PLANNED_TOTAL.labels(object=object_name, operation=operation, tier=tier).inc()


def observe_object_skipped(object_name: str, reason: str) -> None:
    ROLLBACK_OBJECTS_SKIPPED_TOTAL.labels(object=object_name, reason=reason).inc()


def observe_plan(status: str, latency_s: float) -> None:
    ROLLBACK_PLAN_LATENCY_SECONDS.labels(status=status).observe(latency_s)

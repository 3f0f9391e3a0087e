from prometheus_client import Counter, Histogram

ROLLBACK_OBJECTS_PLANNED_TOTAL = Counter(
    "sfrewind_rollback_objects_planned_total",
    "Objects included in a rollback plan",
    ["object", "operation", "tier"],
)

ROLLBACK_OBJECTS_SKIPPED_TOTAL = Counter(
    "sfrewind_rollback_objects_skipped_total",
    "Objects left out of a rollback plan",
    ["object", "reason"],
)

ROLLBACK_PLAN_LATENCY_SECONDS = Histogram(
    "sfrewind_rollback_plan_latency_seconds",
    "Time spent building a rollback plan",
    ["status"],
)

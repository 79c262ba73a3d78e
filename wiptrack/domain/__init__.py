"""Domain objects for the wiptrack engine."""

from .entry import OTHER_STAGE, MalformedEntryError, TaskEntry, parse_site_datetime, to_site_date
from .stages import (
    CONDENSED_ORDER,
    CONDENSED_STAGES,
    DEFAULT_TAXONOMY,
    EXIT_STEPS,
    PROSES,
    STAGE_PRIORITY,
    ClockPolicy,
    Department,
    QueueThresholds,
    Stage,
    StageKey,
    StageRule,
    StageTaxonomy,
    queue_level,
)
from .state import BatchState, BatchStatus, ScopeOverview, StageSnapshot, StepState, StepView

__all__ = [
    "OTHER_STAGE",
    "MalformedEntryError",
    "TaskEntry",
    "parse_site_datetime",
    "to_site_date",
    "CONDENSED_ORDER",
    "CONDENSED_STAGES",
    "DEFAULT_TAXONOMY",
    "EXIT_STEPS",
    "PROSES",
    "STAGE_PRIORITY",
    "ClockPolicy",
    "Department",
    "QueueThresholds",
    "Stage",
    "StageKey",
    "StageRule",
    "StageTaxonomy",
    "queue_level",
    "BatchState",
    "BatchStatus",
    "ScopeOverview",
    "StageSnapshot",
    "StepState",
    "StepView",
]

"""wiptrack engine package exposing primary components."""

from .domain.entry import TaskEntry
from .domain.state import BatchState, BatchStatus, StageSnapshot
from .infrastructure.working_calendar import WorkingDayCalendar
from .services.aggregator import Scope, aggregate
from .services.classifier import classify

__all__ = [
    "TaskEntry",
    "BatchState",
    "BatchStatus",
    "StageSnapshot",
    "WorkingDayCalendar",
    "Scope",
    "aggregate",
    "classify",
]

"""Batch states and aggregation output records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

__all__ = [
    "BatchState",
    "StepState",
    "BatchStatus",
    "StageSnapshot",
    "ScopeOverview",
    "StepView",
]


class BatchState(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    WAITING = "Waiting"
    COMPLETED = "Completed"

    @property
    def is_active(self) -> bool:
        """Active batches are the ones listed in a stage snapshot."""
        return self in {BatchState.IN_PROGRESS, BatchState.WAITING}


class StepState(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    WAITING = "Waiting"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class BatchStatus:
    """Classification of one batch within one stage."""

    batch_no: str
    stage: str
    state: BatchState
    duration: int = 0
    clock_start: Optional[date] = None
    department: str = ""
    product_id: str = ""
    product_name: str = ""
    product_type: str = ""
    total_steps: int = 0
    completed_steps: int = 0
    batch_date: Optional[date] = None

    @property
    def is_started(self) -> bool:
        """False when no step has been queued, i.e. the duration carries no meaning."""
        return self.clock_start is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "batch_no": self.batch_no,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_type": self.product_type,
            "department": self.department,
            "stage": self.stage,
            "state": self.state.value,
            "duration": self.duration if self.is_started else None,
            "stage_start": self.clock_start.isoformat() if self.clock_start else None,
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "batch_date": self.batch_date.isoformat() if self.batch_date else None,
        }


@dataclass
class StageSnapshot:
    stage: str
    department: str
    scope: str
    batches: List[BatchStatus] = field(default_factory=list)
    in_progress_count: int = 0
    waiting_count: int = 0
    completed_count: int = 0
    average_duration: int = 0
    queue_level: str = "clear"

    @property
    def total_count(self) -> int:
        return self.in_progress_count + self.waiting_count

    @property
    def in_progress(self) -> List[BatchStatus]:
        return [b for b in self.batches if b.state is BatchState.IN_PROGRESS]

    @property
    def waiting(self) -> List[BatchStatus]:
        return [b for b in self.batches if b.state is BatchState.WAITING]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "department": self.department,
            "scope": self.scope,
            "in_progress_count": self.in_progress_count,
            "waiting_count": self.waiting_count,
            "completed_count": self.completed_count,
            "total_count": self.total_count,
            "average_duration": self.average_duration,
            "queue_level": self.queue_level,
            "batches": [batch.as_dict() for batch in self.batches],
        }


@dataclass
class ScopeOverview:
    """Stage row for one (department, scope) pair."""

    department: str
    scope: str
    stages: List[StageSnapshot]
    total_batches: int

    @property
    def key(self) -> Tuple[str, str]:
        return self.department, self.scope

    def as_dict(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "scope": self.scope,
            "stages": [snapshot.stage for snapshot in self.stages],
            "stage_counts": [snapshot.in_progress_count for snapshot in self.stages],
            "stage_average_days": [snapshot.average_duration for snapshot in self.stages],
            "total_batches": self.total_batches,
            "snapshots": [snapshot.as_dict() for snapshot in self.stages],
        }


@dataclass(frozen=True)
class StepView:
    step_name: str
    step_order: int
    state: StepState
    start_date: Optional[str]
    end_date: Optional[str]
    idle_start_date: Optional[str]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "step_name": self.step_name,
            "step_order": self.step_order,
            "state": self.state.value,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "idle_start_date": self.idle_start_date,
        }

"""Batch state classification for one stage."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from wiptrack.domain.entry import TaskEntry
from wiptrack.domain.stages import ClockPolicy, StageRule
from wiptrack.domain.state import BatchState, BatchStatus, StepState, StepView
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar


def classify_state(entries: Sequence[TaskEntry]) -> BatchState:
    """Classify a batch from its entries within one stage.

    Completed dominates every other signal. Waiting means every queued step is
    done while at least one step has not been queued yet, i.e. the batch is
    idle between steps. The display flag forces In Progress only after the
    date-derived checks.
    """

    if not entries:
        return BatchState.NOT_STARTED
    if all(entry.is_finished for entry in entries):
        return BatchState.COMPLETED

    has_start = any(entry.is_started for entry in entries)
    has_open_end = any(not entry.is_finished for entry in entries)
    queued = [entry for entry in entries if entry.is_queued]
    unqueued = [entry for entry in entries if not entry.is_queued]

    if not queued:
        return BatchState.NOT_STARTED
    if unqueued and all(entry.is_finished for entry in queued):
        return BatchState.WAITING
    if has_start and has_open_end:
        return BatchState.IN_PROGRESS
    if any(entry.display_flag for entry in entries):
        return BatchState.IN_PROGRESS
    return BatchState.NOT_STARTED


def passes_gate(entries: Sequence[TaskEntry], rule: Optional[StageRule]) -> bool:
    """True when every step the stage rule requires has been queued."""

    if rule is None or not rule.required_steps:
        return True
    queued_steps = {entry.step_name for entry in entries if entry.is_queued}
    return all(step in queued_steps for step in rule.required_steps)


def clock_start(entries: Sequence[TaskEntry], rule: Optional[StageRule] = None) -> Optional[datetime]:
    """Reference point for duration-in-stage: the earliest queue time by default."""

    candidates = entries
    if rule is not None and rule.required_steps:
        candidates = [entry for entry in entries if entry.step_name in rule.required_steps]
    stamps = [entry.idle_start_date for entry in candidates if entry.idle_start_date is not None]
    if not stamps:
        return None
    if rule is not None and rule.clock is ClockPolicy.LATEST:
        return max(stamps)
    return min(stamps)


def classify(
    entries: Sequence[TaskEntry],
    *,
    calendar: WorkingDayCalendar,
    stage: str = "",
    rule: Optional[StageRule] = None,
    mode: str = "working",
) -> BatchStatus:
    """Classify one batch and measure how long it has been in *stage*."""

    if not entries:
        return BatchStatus(batch_no="", stage=stage, state=BatchState.NOT_STARTED)
    head = entries[0]
    state = classify_state(entries)
    if state.is_active and not passes_gate(entries, rule):
        state = BatchState.NOT_STARTED
    clock = clock_start(entries, rule)
    duration = calendar.days_to_today(clock, mode=mode) if clock else 0
    product_name = next((e.product_name for e in entries if e.product_name), "")
    batch_date = next((e.batch_date for e in entries if e.batch_date), None)
    return BatchStatus(
        batch_no=head.batch_no,
        stage=stage or head.stage_group,
        state=state,
        duration=duration,
        clock_start=clock.date() if clock else None,
        department=head.department,
        product_id=next((e.product_id for e in entries if e.product_id), ""),
        product_name=product_name,
        product_type=head.product_type,
        total_steps=len(entries),
        completed_steps=sum(1 for e in entries if e.is_finished),
        batch_date=batch_date.date() if batch_date else None,
    )


def step_state(entry: TaskEntry, batch_started: bool) -> StepState:
    """State of a single step; *batch_started* is True once any step is queued."""

    if entry.is_started and entry.is_finished:
        return StepState.COMPLETED
    if entry.is_active:
        return StepState.IN_PROGRESS
    if batch_started and not entry.is_queued:
        return StepState.WAITING
    return StepState.NOT_STARTED


def _step_rank(entry: TaskEntry) -> int:
    if entry.is_active:
        return 0
    if not entry.is_started:
        return 1
    return 2


def describe_steps(entries: Sequence[TaskEntry]) -> List[StepView]:
    """Steps ordered in progress first, then unstarted, then completed."""

    batch_started = any(entry.is_queued for entry in entries)
    ordered = sorted(entries, key=lambda e: (_step_rank(e), e.step_order))
    return [
        StepView(
            step_name=entry.step_name,
            step_order=entry.step_order,
            state=step_state(entry, batch_started),
            start_date=entry.start_date.isoformat() if entry.start_date else None,
            end_date=entry.end_date.isoformat() if entry.end_date else None,
            idle_start_date=entry.idle_start_date.isoformat() if entry.idle_start_date else None,
        )
        for entry in ordered
    ]

"""Stage aggregation: per-stage WIP snapshots for a department scope."""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from wiptrack.domain.entry import TaskEntry
from wiptrack.domain.stages import DEFAULT_TAXONOMY, StageKey, StageTaxonomy, queue_level
from wiptrack.domain.state import BatchState, ScopeOverview, StageSnapshot, StepView
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar

from . import classifier
from .validation import tracked_entries

logger = logging.getLogger(__name__)

ALL_PRODUCTS = "All Products"


@dataclass(frozen=True)
class Scope:
    """What to aggregate: one department, optionally one product type, raw or condensed stages."""

    department: str
    product_type: Optional[str] = None
    condensed: bool = False

    @property
    def label(self) -> str:
        return self.product_type or ALL_PRODUCTS

    def matches(self, entry: TaskEntry) -> bool:
        if entry.department != self.department:
            return False
        return self.product_type is None or entry.product_type == self.product_type


@dataclass
class BatchDetail:
    batch_no: str
    product_id: str
    product_name: str
    stage: Optional[str]
    steps: List[StepView]

    def as_dict(self) -> dict:
        return {
            "batch_no": self.batch_no,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "stage": self.stage,
            "steps": [step.as_dict() for step in self.steps],
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _stage_of(entry: TaskEntry, scope: Scope, taxonomy: StageTaxonomy) -> Optional[str]:
    if scope.condensed:
        return taxonomy.category_of(entry.stage_group)
    return entry.stage_group


def _stage_list(present: Iterable[str], scope: Scope, taxonomy: StageTaxonomy) -> List[str]:
    if scope.condensed:
        order = list(taxonomy.condensed_order)
        extra = sorted(set(present) - set(order))
        return order + extra
    return taxonomy.order_stages(list(taxonomy.priority) + list(present))


def group_batches(
    entries: Iterable[TaskEntry],
    scope: Scope,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
) -> Dict[StageKey, Dict[str, List[TaskEntry]]]:
    """Group scope entries by stage key, then by batch number, keeping feed order."""

    groups: Dict[StageKey, Dict[str, List[TaskEntry]]] = defaultdict(lambda: defaultdict(list))
    for entry in entries:
        if not scope.matches(entry):
            continue
        stage = _stage_of(entry, scope, taxonomy)
        if stage is None:
            continue
        groups[StageKey(scope.department, scope.label, stage)][entry.batch_no].append(entry)
    return groups


def build_snapshot(
    key: StageKey,
    batches: Dict[str, List[TaskEntry]],
    *,
    calendar: WorkingDayCalendar,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
    mode: str = "working",
) -> StageSnapshot:
    rule = taxonomy.rule_for(key.stage)
    statuses = [
        classifier.classify(batch_entries, calendar=calendar, stage=key.stage, rule=rule, mode=mode)
        for batch_entries in batches.values()
    ]
    in_progress = [s for s in statuses if s.state is BatchState.IN_PROGRESS]
    waiting = [s for s in statuses if s.state is BatchState.WAITING]
    completed = sum(1 for s in statuses if s.state is BatchState.COMPLETED)
    in_progress.sort(key=lambda s: s.duration, reverse=True)

    average = 0
    if in_progress:
        average = round_half_up(sum(s.duration for s in in_progress) / len(in_progress))

    return StageSnapshot(
        stage=key.stage,
        department=key.department,
        scope=key.scope,
        batches=in_progress + waiting,
        in_progress_count=len(in_progress),
        waiting_count=len(waiting),
        completed_count=completed,
        average_duration=average,
        queue_level=queue_level(len(in_progress), taxonomy.thresholds_for(key.stage)),
    )


def aggregate(
    entries: Iterable[TaskEntry],
    scope: Scope,
    *,
    calendar: WorkingDayCalendar,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
    mode: str = "working",
) -> List[StageSnapshot]:
    """Return one snapshot per stage for *scope*, in process order.

    *entries* should be the full feed: exited batches are detected across all
    departments before the scope filter applies. Stages without batches are
    still emitted with zero counts.
    """

    calendar = calendar.pinned(calendar.today())
    groups = group_batches(tracked_entries(entries, taxonomy), scope, taxonomy)
    present = [key.stage for key in groups]
    snapshots: List[StageSnapshot] = []
    for stage in _stage_list(present, scope, taxonomy):
        key = StageKey(scope.department, scope.label, stage)
        snapshots.append(
            build_snapshot(key, groups.get(key, {}), calendar=calendar, taxonomy=taxonomy, mode=mode)
        )
    logger.debug(
        "Aggregated %s/%s: %d stages, %d in progress",
        scope.department,
        scope.label,
        len(snapshots),
        sum(s.in_progress_count for s in snapshots),
    )
    return snapshots


def scopes(entries: Iterable[TaskEntry], taxonomy: StageTaxonomy = DEFAULT_TAXONOMY) -> List[Tuple[str, str]]:
    """Distinct (department, product type) pairs present among tracked entries."""

    return sorted({(e.department, e.product_type) for e in tracked_entries(entries, taxonomy)})


def departments(entries: Iterable[TaskEntry], taxonomy: StageTaxonomy = DEFAULT_TAXONOMY) -> List[str]:
    return sorted({e.department for e in tracked_entries(entries, taxonomy)})


def overview(
    entries: Iterable[TaskEntry],
    *,
    calendar: WorkingDayCalendar,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
    mode: str = "working",
) -> List[ScopeOverview]:
    """Raw-stage rows per department and product type, sorted by department then type."""

    entries = list(entries)
    calendar = calendar.pinned(calendar.today())
    tracked = tracked_entries(entries, taxonomy)
    rows: List[ScopeOverview] = []
    for department, product_type in scopes(entries, taxonomy):
        scope = Scope(department, product_type)
        batches = {e.batch_no for e in tracked if scope.matches(e)}
        rows.append(
            ScopeOverview(
                department=department,
                scope=product_type,
                stages=aggregate(entries, scope, calendar=calendar, taxonomy=taxonomy, mode=mode),
                total_batches=len(batches),
            )
        )
    return rows


def department_overview(
    entries: Iterable[TaskEntry],
    *,
    calendar: WorkingDayCalendar,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
    mode: str = "working",
) -> List[ScopeOverview]:
    """Condensed-stage row per department."""

    entries = list(entries)
    calendar = calendar.pinned(calendar.today())
    tracked = tracked_entries(entries, taxonomy)
    rows: List[ScopeOverview] = []
    for department in departments(entries, taxonomy):
        scope = Scope(department, condensed=True)
        batches = {
            e.batch_no for e in tracked if scope.matches(e) and taxonomy.category_of(e.stage_group)
        }
        rows.append(
            ScopeOverview(
                department=department,
                scope=scope.label,
                stages=aggregate(entries, scope, calendar=calendar, taxonomy=taxonomy, mode=mode),
                total_batches=len(batches),
            )
        )
    return rows


def batch_detail(
    entries: Sequence[TaskEntry],
    batch_no: str,
    stage: Optional[str] = None,
    taxonomy: StageTaxonomy = DEFAULT_TAXONOMY,
) -> Optional[BatchDetail]:
    """Steps of one batch, optionally restricted to a raw stage or condensed category."""

    rows = [e for e in entries if e.batch_no == batch_no]
    if stage:
        members = set(taxonomy.members_of(stage)) | {stage}
        rows = [e for e in rows if e.stage_group in members]
    if not rows:
        return None
    return BatchDetail(
        batch_no=batch_no,
        product_id=next((e.product_id for e in rows if e.product_id), ""),
        product_name=next((e.product_name for e in rows if e.product_name), ""),
        stage=stage,
        steps=classifier.describe_steps(rows),
    )

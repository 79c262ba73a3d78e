"""Request-level helpers around the aggregation engine."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from wiptrack.domain.entry import to_site_date
from wiptrack.domain.state import ScopeOverview
from wiptrack.services import aggregator

from ..store import WipStore


class InvalidDateError(ValueError):
    """Raised when a date query parameter is malformed."""


def parse_date(value: Optional[str], *, name: str) -> Optional[date]:
    if value is None or not value.strip():
        return None
    parsed = to_site_date(value)
    if parsed is None:
        raise InvalidDateError(f"{name} must be a date in YYYY-MM-DD format")
    return parsed


def parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def stage_snapshots(store: WipStore, department: str, product_type: Optional[str], condensed: bool) -> Dict[str, Any]:
    scope = aggregator.Scope(department, product_type=product_type, condensed=condensed)
    snapshots = aggregator.aggregate(
        store.entries,
        scope,
        calendar=store.calendar(),
        taxonomy=store.taxonomy,
        mode=store.mode,
    )
    return {
        "department": department,
        "scope": scope.label,
        "condensed": condensed,
        "stages": [snapshot.as_dict() for snapshot in snapshots],
    }


def overview_rows(store: WipStore, *, condensed: bool = False) -> List[ScopeOverview]:
    if condensed:
        return aggregator.department_overview(
            store.entries, calendar=store.calendar(), taxonomy=store.taxonomy, mode=store.mode
        )
    return aggregator.overview(store.entries, calendar=store.calendar(), taxonomy=store.taxonomy, mode=store.mode)


def batch_detail(store: WipStore, batch_no: str, stage: Optional[str]) -> Optional[Dict[str, Any]]:
    detail = aggregator.batch_detail(store.entries, batch_no, stage, store.taxonomy)
    return detail.as_dict() if detail else None

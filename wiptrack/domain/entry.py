"""Task entry records and site wall-clock date parsing."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

__all__ = [
    "OTHER_STAGE",
    "MalformedEntryError",
    "TaskEntry",
    "parse_site_datetime",
    "to_site_date",
]

OTHER_STAGE = "Other"

# Feed key aliases, first match wins. The production tracking feed uses the
# legacy column names; snake_case keys are accepted for hand-written fixtures.
_FIELDS: Mapping[str, tuple[str, ...]] = {
    "batch_no": ("batch_no", "Batch_No", "batchNo"),
    "department": ("department", "Group_Dept", "dept"),
    "stage_group": ("stage_group", "tahapan_group", "stageGroup"),
    "step_name": ("step_name", "nama_tahapan", "stepName"),
    "step_order": ("step_order", "Urutan", "stepOrder"),
    "start_date": ("start_date", "StartDate", "startDate"),
    "end_date": ("end_date", "EndDate", "endDate"),
    "idle_start_date": ("idle_start_date", "IdleStartDate", "idleStartDate"),
    "display_flag": ("display_flag", "Display", "displayFlag"),
    "product_id": ("product_id", "Product_ID", "productId"),
    "product_name": ("product_name", "Product_Name", "Produk_Nama", "productName"),
    "product_type": ("product_type", "Jenis_Sediaan", "productType"),
    "batch_date": ("batch_date", "Batch_Date", "batchDate"),
}

_OFFSET_SUFFIX = re.compile(r"(Z|[+-]\d{2}:?\d{2})$")
_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y%m%d",
)


class MalformedEntryError(ValueError):
    """Raised when a feed record cannot be turned into a :class:`TaskEntry`."""


def parse_site_datetime(value: Any) -> Optional[datetime]:
    """Return *value* as a naive production-site wall-clock ``datetime``.

    The tracking database stores local plant time but the feed serialises it
    with a trailing ``Z``. The suffix (or any UTC offset) is dropped and the
    clock reading is kept as-is; nothing is ever converted to UTC.
    Returns ``None`` for empty or unparseable values.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    text = _OFFSET_SUFFIX.sub("", text)
    for fmt in _FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_site_date(value: Any) -> Optional[date]:
    parsed = parse_site_datetime(value)
    return parsed.date() if parsed else None


def _pick(record: Mapping[str, Any], field: str) -> Any:
    for key in _FIELDS[field]:
        if key in record:
            return record[key]
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return _text(value).lower() in {"1", "true", "yes", "y"}


def _order(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _date_field(record: Mapping[str, Any], field: str) -> Optional[datetime]:
    raw = _pick(record, field)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    parsed = parse_site_datetime(raw)
    if parsed is None:
        raise MalformedEntryError(f"{field}: unparseable date {raw!r}")
    return parsed


@dataclass(frozen=True)
class TaskEntry:
    """One manufacturing step of one batch, as read from the tracking feed."""

    batch_no: str
    department: str
    stage_group: str
    step_name: str = ""
    step_order: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    idle_start_date: Optional[datetime] = None
    display_flag: bool = False
    product_id: str = ""
    product_name: str = ""
    product_type: str = ""
    batch_date: Optional[datetime] = None

    @property
    def is_started(self) -> bool:
        return self.start_date is not None

    @property
    def is_finished(self) -> bool:
        return self.end_date is not None

    @property
    def is_queued(self) -> bool:
        return self.idle_start_date is not None

    @property
    def is_active(self) -> bool:
        return self.start_date is not None and self.end_date is None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "TaskEntry":
        """Build an entry from a feed record.

        Missing department/product fields fall back to ``"Unknown"`` and a
        missing stage group to the ``"Other"`` sentinel, matching the feed's
        own defaults. Dates that are present but unparseable raise
        :class:`MalformedEntryError`.
        """

        batch_no = _text(_pick(record, "batch_no"))
        if not batch_no:
            raise MalformedEntryError("batch number is missing")
        return cls(
            batch_no=batch_no,
            department=_text(_pick(record, "department")) or "Unknown",
            stage_group=_text(_pick(record, "stage_group")) or OTHER_STAGE,
            step_name=_text(_pick(record, "step_name")),
            step_order=_order(_pick(record, "step_order")),
            start_date=_date_field(record, "start_date"),
            end_date=_date_field(record, "end_date"),
            idle_start_date=_date_field(record, "idle_start_date"),
            display_flag=_flag(_pick(record, "display_flag")),
            product_id=_text(_pick(record, "product_id")),
            product_name=_text(_pick(record, "product_name")) or "Unknown Product",
            product_type=_text(_pick(record, "product_type")) or "Unknown",
            batch_date=parse_site_datetime(_pick(record, "batch_date")),
        )

    def as_dict(self) -> dict[str, Any]:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "batch_no": self.batch_no,
            "department": self.department,
            "stage_group": self.stage_group,
            "step_name": self.step_name,
            "step_order": self.step_order,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "idle_start_date": _iso(self.idle_start_date),
            "display_flag": self.display_flag,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_type": self.product_type,
            "batch_date": _iso(self.batch_date),
        }

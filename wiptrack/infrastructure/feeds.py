"""File adapters for the task-entry and holiday feeds."""
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, List

from wiptrack.services.validation import ParseResult, parse_entries

logger = logging.getLogger(__name__)

HOLIDAY_KEYS = ("date", "holiday_date", "HolidayDate", "Tanggal", "tanggal", "Tgl_Libur")


class FeedError(RuntimeError):
    """Raised when a feed file cannot be read."""


def _unwrap(payload: Any) -> List[Any]:
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise FeedError("feed must be a list of records or an object with a 'data' list")
    return payload


def load_records(path: str | Path) -> List[Any]:
    path = Path(path)
    try:
        if path.suffix.lower() == ".csv":
            with path.open("r", newline="", encoding="utf-8-sig") as fh:
                return [dict(row) for row in csv.DictReader(fh)]
        with path.open("r", encoding="utf-8") as fh:
            return _unwrap(json.load(fh))
    except (OSError, ValueError) as exc:
        raise FeedError(f"cannot read feed {path}: {exc}") from exc


def load_entries(path: str | Path) -> ParseResult:
    result = parse_entries(load_records(path))
    logger.info("Loaded %d entries from %s (%d dropped)", len(result.entries), path, result.dropped)
    return result


def holiday_values(records: List[Any]) -> List[Any]:
    values: List[Any] = []
    for record in records:
        if isinstance(record, dict):
            for key in HOLIDAY_KEYS:
                if record.get(key):
                    values.append(record[key])
                    break
        else:
            values.append(record)
    return values


def load_holidays(path: str | Path) -> List[Any]:
    path = Path(path)
    if path.suffix.lower() != ".csv":
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload: Any = json.load(fh)
        except (OSError, ValueError) as exc:
            raise FeedError(f"cannot read holidays {path}: {exc}") from exc
        if isinstance(payload, dict) and "holidays" in payload:
            payload = payload["holidays"]
        return holiday_values(_unwrap(payload))
    return holiday_values(load_records(path))

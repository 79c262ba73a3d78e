"""In-memory snapshot of task entries and holidays for the web application."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from flask import Flask, current_app

from wiptrack.domain.entry import TaskEntry, to_site_date
from wiptrack.domain.stages import StageTaxonomy
from wiptrack.infrastructure import feeds
from wiptrack.infrastructure.config_loader import duration_mode, load_config, taxonomy_from_config
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar, holiday_key
from wiptrack.services.validation import ParseResult, parse_entries

EXTENSION_KEY = "wiptrack.store"

logger = logging.getLogger(__name__)


@dataclass
class WipStore:
    config: Dict[str, Any]
    taxonomy: StageTaxonomy
    mode: str
    entries: List[TaskEntry] = field(default_factory=list)
    holidays: List[date] = field(default_factory=list)
    today: Optional[date] = None
    refreshed_at: Optional[datetime] = None

    def replace_entries(self, records: Iterable[Any]) -> ParseResult:
        result = parse_entries(records)
        self.entries = result.entries
        self.refreshed_at = datetime.now()
        logger.info("Entry snapshot replaced: %d kept, %d dropped", len(result.entries), result.dropped)
        return result

    def replace_holidays(self, values: Iterable[Any]) -> int:
        self.holidays = WorkingDayCalendar(values).holidays()
        return len(self.holidays)

    def add_holiday(self, value: Any) -> bool:
        if holiday_key(value) is None:
            return False
        calendar = self.calendar()
        calendar.add_holiday(value)
        self.holidays = calendar.holidays()
        return True

    def clear_holidays(self) -> None:
        self.holidays = []

    def calendar(self) -> WorkingDayCalendar:
        """A fresh calendar for one refresh cycle."""
        return WorkingDayCalendar(self.holidays, today=self.today)


def init_app(app: Flask) -> WipStore:
    """Build the store from the app config and attach it to the app."""
    config = load_config(app.config.get("CONFIG_PATH"))
    store = WipStore(
        config=config,
        taxonomy=taxonomy_from_config(config),
        mode=duration_mode(config),
        today=to_site_date(app.config.get("TODAY")),
    )
    store.replace_holidays(config.get("holidays") or [])

    holidays_path = app.config.get("HOLIDAYS_PATH")
    if holidays_path:
        store.replace_holidays(feeds.load_holidays(holidays_path))
    entries_path = app.config.get("ENTRIES_PATH")
    if entries_path:
        store.replace_entries(feeds.load_records(entries_path))

    app.extensions[EXTENSION_KEY] = store
    return store


def get_store() -> WipStore:
    return current_app.extensions[EXTENSION_KEY]

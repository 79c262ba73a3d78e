from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Set

from wiptrack.domain.entry import to_site_date

logger = logging.getLogger(__name__)


def holiday_key(value: Any) -> Optional[str]:
    """Normalise a date-like value to its ``YYYYMMDD`` key, ignoring time of day."""

    day = to_site_date(value)
    return day.strftime("%Y%m%d") if day else None


class WorkingDayCalendar:
    """Working-day calendar: weekends and configured holidays are days off.

    One instance is built per data-refresh cycle and passed explicitly into the
    classifier and aggregator. ``today`` may be pinned for reproducible runs;
    otherwise the local date is read on demand.
    """

    def __init__(self, holidays: Iterable[Any] = (), *, today: Optional[date] = None) -> None:
        self._holidays: Set[str] = set()
        self._today = today
        self.set_holidays(holidays)

    # -- holiday set ---------------------------------------------------------
    def set_holidays(self, dates: Iterable[Any]) -> None:
        keys: Set[str] = set()
        for value in dates:
            key = holiday_key(value)
            if key is None:
                logger.debug("Skipping unparseable holiday %r", value)
                continue
            keys.add(key)
        self._holidays = keys

    def add_holiday(self, value: Any) -> bool:
        key = holiday_key(value)
        if key is None:
            return False
        self._holidays.add(key)
        return True

    def clear_holidays(self) -> None:
        self._holidays = set()

    def holidays(self) -> List[date]:
        return sorted(date(int(k[:4]), int(k[4:6]), int(k[6:])) for k in self._holidays)

    def pinned(self, today: date) -> "WorkingDayCalendar":
        """Return a copy with the same holidays and a fixed ``today``."""

        clone = WorkingDayCalendar(today=today)
        clone._holidays = set(self._holidays)
        return clone

    # -- classification ------------------------------------------------------
    def today(self) -> date:
        return self._today or date.today()

    def is_holiday(self, value: Any) -> bool:
        return holiday_key(value) in self._holidays

    def is_working_day(self, value: Any) -> bool:
        day = to_site_date(value)
        if day is None:
            return False
        if day.weekday() >= 5:
            return False
        return day.strftime("%Y%m%d") not in self._holidays

    # -- durations -----------------------------------------------------------
    def working_days_between(self, start: Any, end: Any) -> int:
        """Elapsed working days between two dates.

        Counts working days in the inclusive range and subtracts one: the start
        day itself is not an elapsed day. Same-day ranges are 0 even on a
        weekend or holiday. Unparseable input yields 0.
        """

        first = to_site_date(start)
        last = to_site_date(end)
        if first is None or last is None or first == last:
            return 0
        if first > last:
            first, last = last, first
        count = 0
        day = first
        while day <= last:
            if self.is_working_day(day):
                count += 1
            day += timedelta(days=1)
        return max(0, count - 1)

    def working_days_to_today(self, start: Any) -> int:
        return self.working_days_between(start, self.today())

    def calendar_days_between(self, start: Any, end: Any) -> int:
        first = to_site_date(start)
        last = to_site_date(end)
        if first is None or last is None:
            return 0
        return max(0, (last - first).days)

    def calendar_days_to_today(self, start: Any) -> int:
        return self.calendar_days_between(start, self.today())

    def days_to_today(self, start: Any, *, mode: str = "working") -> int:
        if mode == "calendar":
            return self.calendar_days_to_today(start)
        return self.working_days_to_today(start)

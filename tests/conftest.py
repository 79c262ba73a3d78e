from __future__ import annotations

from datetime import date, datetime

import pytest

from wiptrack.domain.entry import TaskEntry
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar

# Friday
TODAY = date(2024, 1, 12)


def _dt(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day, 8, 0)


@pytest.fixture()
def make_entry():
    def factory(
        batch_no="B1",
        stage="Mixing",
        *,
        department="PN1",
        step="Step",
        order=1,
        queued=None,
        start=None,
        end=None,
        display=False,
        product_type="Tablet",
        product_id="P-01",
        product_name="Paracetamol 500",
        batch_date=None,
    ) -> TaskEntry:
        return TaskEntry(
            batch_no=batch_no,
            department=department,
            stage_group=stage,
            step_name=step,
            step_order=order,
            start_date=_dt(start),
            end_date=_dt(end),
            idle_start_date=_dt(queued),
            display_flag=display,
            product_id=product_id,
            product_name=product_name,
            product_type=product_type,
            batch_date=_dt(batch_date),
        )

    return factory


@pytest.fixture()
def calendar() -> WorkingDayCalendar:
    return WorkingDayCalendar(today=TODAY)

from datetime import date

import pytest

from wiptrack.infrastructure import feeds
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar


def test_csv_export_with_byte_order_mark(tmp_path):
    path = tmp_path / "entries.csv"
    path.write_text(
        "Batch_No,Group_Dept,tahapan_group,IdleStartDate,StartDate,EndDate\n"
        "B1,PN1,Mixing,2024-01-08T07:00:00Z,2024-01-08T08:00:00Z,\n"
        "B2,PN1,QC,,,\n",
        encoding="utf-8-sig",
    )
    result = feeds.load_entries(path)
    assert result.dropped == 0
    assert [e.batch_no for e in result.entries] == ["B1", "B2"]
    assert result.entries[0].is_active
    assert result.entries[1].end_date is None


def test_holidays_json_wrapped_or_plain(tmp_path):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text('{"holidays": ["2024-01-01", "2024-02-10"]}', encoding="utf-8")
    plain = tmp_path / "plain.json"
    plain.write_text('{"data": [{"Tanggal": "2024-02-10T00:00:00Z"}]}', encoding="utf-8")

    cal = WorkingDayCalendar(feeds.load_holidays(wrapped))
    assert cal.holidays() == [date(2024, 1, 1), date(2024, 2, 10)]
    assert WorkingDayCalendar(feeds.load_holidays(plain)).holidays() == [date(2024, 2, 10)]


def test_holidays_csv(tmp_path):
    path = tmp_path / "holidays.csv"
    path.write_text("date,name\n2024-03-11,Nyepi\n", encoding="utf-8-sig")
    assert feeds.load_holidays(path) == ["2024-03-11"]


def test_unreadable_feed_raises(tmp_path):
    broken = tmp_path / "entries.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(feeds.FeedError):
        feeds.load_records(broken)
    with pytest.raises(feeds.FeedError):
        feeds.load_records(tmp_path / "missing.json")

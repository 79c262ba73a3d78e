import csv
from datetime import date
from io import StringIO

from openpyxl import load_workbook

from wiptrack.presentation import report
from wiptrack.services import aggregator

MON = date(2024, 1, 8)


def _rows(make_entry, calendar):
    entries = [
        make_entry("B1", "Mixing", queued=MON, start=MON),
        make_entry("B2", "Mixing", queued=MON, start=MON, end=date(2024, 1, 9)),
        make_entry("B2", "Mixing", order=2),
    ]
    return aggregator.overview(entries, calendar=calendar)


def test_workbook_has_summary_and_batch_sheets(tmp_path, make_entry, calendar):
    path = report.write_workbook(tmp_path / "wip.xlsx", _rows(make_entry, calendar))
    wb = load_workbook(path)
    assert wb.sheetnames == ["Stages", "Batches"]

    stages = wb["Stages"]
    assert [c.value for c in stages[1]] == report.SUMMARY_HEADER
    mixing = next(row for row in stages.iter_rows(min_row=2, values_only=True) if row[2] == "Mixing")
    assert mixing[:8] == ("PN1", "Tablet", "Mixing", 1, 1, 0, 2, 4)
    assert mixing[8] == "low"

    batches = list(wb["Batches"].iter_rows(min_row=2, values_only=True))
    assert [(b[3], b[6]) for b in batches] == [("B1", "In Progress"), ("B2", "Waiting")]
    assert batches[0][7] == "2024-01-08"
    assert batches[1][9] == "1/2"


def test_workbook_bytes_is_loadable(make_entry, calendar):
    wb = load_workbook(report.workbook_bytes(_rows(make_entry, calendar)))
    assert wb["Stages"].max_row == 1 + len(report.summary_rows(_rows(make_entry, calendar)))


def test_csv_summary(make_entry, calendar):
    rows = list(csv.reader(StringIO(report.csv_summary(_rows(make_entry, calendar)))))
    assert rows[0] == report.SUMMARY_HEADER
    mixing = next(r for r in rows[1:] if r[2] == "Mixing")
    assert mixing == ["PN1", "Tablet", "Mixing", "1", "1", "0", "2", "4", "low"]

from __future__ import annotations

import csv
from io import BytesIO, StringIO
from pathlib import Path
from typing import IO, Dict, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from wiptrack.domain.state import ScopeOverview

SUMMARY_HEADER = [
    "Department",
    "Scope",
    "Stage",
    "In Progress",
    "Waiting",
    "Completed",
    "Total",
    "Avg Days",
    "Queue",
]
BATCH_HEADER = [
    "Department",
    "Scope",
    "Stage",
    "Batch",
    "Product ID",
    "Product",
    "State",
    "Stage Start",
    "Days",
    "Steps Done",
    "Batch Date",
]

# Queue band fills, green through deep red.
QUEUE_FILLS: Dict[str, PatternFill] = {
    "clear": PatternFill("solid", fgColor="10B981"),
    "low": PatternFill("solid", fgColor="22C55E"),
    "light": PatternFill("solid", fgColor="84CC16"),
    "moderate": PatternFill("solid", fgColor="EAB308"),
    "elevated": PatternFill("solid", fgColor="F59E0B"),
    "high": PatternFill("solid", fgColor="F97316"),
    "severe": PatternFill("solid", fgColor="EF4444"),
    "critical": PatternFill("solid", fgColor="DC2626"),
}
FILL_WAITING = PatternFill("solid", fgColor="FFF7E6")

B_THIN = Border(
    left=Side(style="thin", color="DDDDDD"),
    right=Side(style="thin", color="DDDDDD"),
    top=Side(style="thin", color="DDDDDD"),
    bottom=Side(style="thin", color="DDDDDD"),
)

HEADER_FONT = Font(bold=True)
CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")


def summary_rows(rows: Sequence[ScopeOverview]) -> List[list]:
    out: List[list] = []
    for row in rows:
        for snapshot in row.stages:
            out.append(
                [
                    row.department,
                    row.scope,
                    snapshot.stage,
                    snapshot.in_progress_count,
                    snapshot.waiting_count,
                    snapshot.completed_count,
                    snapshot.total_count,
                    snapshot.average_duration,
                    snapshot.queue_level,
                ]
            )
    return out


def batch_rows(rows: Sequence[ScopeOverview]) -> List[list]:
    out: List[list] = []
    for row in rows:
        for snapshot in row.stages:
            for batch in snapshot.batches:
                out.append(
                    [
                        row.department,
                        row.scope,
                        snapshot.stage,
                        batch.batch_no,
                        batch.product_id,
                        batch.product_name,
                        batch.state.value,
                        batch.clock_start.isoformat() if batch.clock_start else "N/A",
                        batch.duration,
                        f"{batch.completed_steps}/{batch.total_steps}",
                        batch.batch_date.isoformat() if batch.batch_date else "",
                    ]
                )
    return out


def _write_header(ws, header: Sequence[str]) -> None:
    for col, title in enumerate(header, start=1):
        cell = ws.cell(row=1, column=col, value=title)
        cell.font = HEADER_FONT
        cell.alignment = CENTER
        cell.border = B_THIN
    ws.freeze_panes = "A2"


def _autosize(ws, header: Sequence[str], rows: Sequence[Sequence[object]]) -> None:
    for col, title in enumerate(header, start=1):
        width = max([len(str(title))] + [len(str(r[col - 1])) for r in rows])
        ws.column_dimensions[get_column_letter(col)].width = min(width + 2, 48)


def build_workbook(rows: Sequence[ScopeOverview]) -> Workbook:
    """Summary sheet (one line per scope and stage) plus a batch detail sheet."""

    wb = Workbook()
    ws = wb.active
    ws.title = "Stages"
    _write_header(ws, SUMMARY_HEADER)
    summary = summary_rows(rows)
    queue_col = SUMMARY_HEADER.index("Queue") + 1
    for r, values in enumerate(summary, start=2):
        for c, value in enumerate(values, start=1):
            cell = ws.cell(row=r, column=c, value=value)
            cell.border = B_THIN
            cell.alignment = LEFT if c <= 3 else CENTER
        ws.cell(row=r, column=queue_col).fill = QUEUE_FILLS.get(str(values[queue_col - 1]), QUEUE_FILLS["clear"])
    _autosize(ws, SUMMARY_HEADER, summary)

    ws_batches = wb.create_sheet("Batches")
    _write_header(ws_batches, BATCH_HEADER)
    detail = batch_rows(rows)
    state_col = BATCH_HEADER.index("State") + 1
    for r, values in enumerate(detail, start=2):
        for c, value in enumerate(values, start=1):
            cell = ws_batches.cell(row=r, column=c, value=value)
            cell.border = B_THIN
            cell.alignment = LEFT if c <= 6 else CENTER
            if values[state_col - 1] == "Waiting":
                cell.fill = FILL_WAITING
    _autosize(ws_batches, BATCH_HEADER, detail)
    return wb


def write_workbook(path: str | Path, rows: Sequence[ScopeOverview]) -> Path:
    path = Path(path)
    build_workbook(rows).save(path)
    return path


def workbook_bytes(rows: Sequence[ScopeOverview]) -> BytesIO:
    buffer = BytesIO()
    build_workbook(rows).save(buffer)
    buffer.seek(0)
    return buffer


def write_csv_summary(handle: IO[str], rows: Sequence[ScopeOverview]) -> None:
    writer = csv.writer(handle)
    writer.writerow(SUMMARY_HEADER)
    writer.writerows(summary_rows(rows))


def csv_summary(rows: Sequence[ScopeOverview]) -> str:
    buffer = StringIO()
    write_csv_summary(buffer, rows)
    return buffer.getvalue()

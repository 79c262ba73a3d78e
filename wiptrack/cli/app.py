"""Command line entry point: ``wiptrack``."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from wiptrack.domain.entry import TaskEntry, to_site_date
from wiptrack.domain.stages import Department, StageTaxonomy
from wiptrack.infrastructure import feeds
from wiptrack.infrastructure.config_loader import ConfigError, duration_mode, load_config, taxonomy_from_config
from wiptrack.infrastructure.working_calendar import WorkingDayCalendar
from wiptrack.presentation import report
from wiptrack.services import aggregator

logger = logging.getLogger(__name__)


@dataclass
class Context:
    config: Dict[str, Any]
    taxonomy: StageTaxonomy
    calendar: WorkingDayCalendar
    mode: str


def _parse_date(ctx, param, value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    parsed = to_site_date(value)
    if parsed is None:
        raise click.BadParameter(f"not a date: {value!r}")
    return parsed


def _load_entries(path: Path) -> List[TaskEntry]:
    try:
        result = feeds.load_entries(path)
    except feeds.FeedError as exc:
        raise click.ClickException(str(exc)) from exc
    if result.dropped:
        click.echo(f"skipped {result.dropped} malformed entries", err=True)
    return result.entries


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--holidays", "holidays_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--today", callback=_parse_date, help="Pin 'today' (YYYY-MM-DD) for reproducible output.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], holidays_path: Optional[Path], today: Optional[date]) -> None:
    """Batch stage tracking and working-day durations."""
    try:
        config = load_config(config_path)
        taxonomy = taxonomy_from_config(config)
        mode = duration_mode(config)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    log_cfg = config.get("logging", {})
    logging.basicConfig(level=str(log_cfg.get("level", "INFO")).upper(), format=log_cfg.get("format") or logging.BASIC_FORMAT)

    holidays: List[Any] = list(config.get("holidays") or [])
    if holidays_path is not None:
        try:
            holidays = feeds.load_holidays(holidays_path)
        except feeds.FeedError as exc:
            raise click.ClickException(str(exc)) from exc
    calendar = WorkingDayCalendar(holidays, today=today)
    logger.debug("Calendar ready with %d holidays", len(calendar.holidays()))
    ctx.obj = Context(config=config, taxonomy=taxonomy, calendar=calendar, mode=mode)


@main.command("working-days")
@click.argument("start", callback=_parse_date)
@click.argument("end", required=False, callback=_parse_date)
@click.pass_obj
def working_days(obj: Context, start: date, end: Optional[date]) -> None:
    """Elapsed working days from START to END (default: today)."""
    if end is None:
        click.echo(obj.calendar.working_days_to_today(start))
    else:
        click.echo(obj.calendar.working_days_between(start, end))


def _echo_snapshots(snapshots, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([s.as_dict() for s in snapshots], ensure_ascii=False, indent=2))
        return
    for s in snapshots:
        click.echo(
            f"{s.stage:<16} in-progress={s.in_progress_count:<3} waiting={s.waiting_count:<3} "
            f"completed={s.completed_count:<3} avg={s.average_duration}d [{s.queue_level}]"
        )
        for batch in s.batches:
            days = f"{batch.duration}d" if batch.is_started else "not started"
            click.echo(f"    {batch.batch_no:<14} {batch.state.value:<12} {days:<12} {batch.product_name}")


@main.command()
@click.option("--entries", "entries_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--department", "-d", required=True)
@click.option("--product-type", "-p", default=None)
@click.option("--condensed", is_flag=True, help="Collapse processing stages into categories.")
@click.option("--json", "as_json", is_flag=True)
@click.pass_obj
def snapshot(obj: Context, entries_path: Path, department: str, product_type: Optional[str], condensed: bool, as_json: bool) -> None:
    """Stage snapshots for one department."""
    if condensed and product_type:
        raise click.UsageError("--condensed and --product-type cannot be combined")
    if Department.parse(department) is None:
        known = ", ".join(d.value for d in Department)
        click.echo(f"unknown department {department!r}, expected one of: {known}", err=True)
    entries = _load_entries(entries_path)
    scope = aggregator.Scope(department, product_type=product_type, condensed=condensed)
    snapshots = aggregator.aggregate(entries, scope, calendar=obj.calendar, taxonomy=obj.taxonomy, mode=obj.mode)
    _echo_snapshots(snapshots, as_json)


def _overview(obj: Context, entries: List[TaskEntry], condensed: bool):
    if condensed:
        return aggregator.department_overview(entries, calendar=obj.calendar, taxonomy=obj.taxonomy, mode=obj.mode)
    return aggregator.overview(entries, calendar=obj.calendar, taxonomy=obj.taxonomy, mode=obj.mode)


@main.command()
@click.option("--entries", "entries_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--condensed", is_flag=True)
@click.option("--json", "as_json", is_flag=True)
@click.pass_obj
def overview(obj: Context, entries_path: Path, condensed: bool, as_json: bool) -> None:
    """In-progress counts per stage for every department (and product type)."""
    rows = _overview(obj, _load_entries(entries_path), condensed)
    if as_json:
        click.echo(json.dumps([r.as_dict() for r in rows], ensure_ascii=False, indent=2))
        return
    for row in rows:
        counts = ", ".join(f"{s.stage}={s.in_progress_count}" for s in row.stages)
        click.echo(f"{row.department} / {row.scope} ({row.total_batches} batches): {counts}")


@main.command()
@click.option("--entries", "entries_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--condensed", is_flag=True)
@click.pass_obj
def export(obj: Context, entries_path: Path, output: Path, condensed: bool) -> None:
    """Write the overview to an XLSX workbook or a CSV summary (by extension)."""
    rows = _overview(obj, _load_entries(entries_path), condensed)
    if output.suffix.lower() == ".csv":
        with output.open("w", newline="", encoding="utf-8") as fh:
            report.write_csv_summary(fh, rows)
    else:
        report.write_workbook(output, rows)
    click.echo(f"written {output}")


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from openpyxl import load_workbook

from wiptrack.cli.app import main

FEED = {
    "data": [
        {
            "Batch_No": "B1",
            "Group_Dept": "PN1",
            "tahapan_group": "Mixing",
            "nama_tahapan": "Mixing Awal",
            "Urutan": 1,
            "IdleStartDate": "2024-01-08T07:00:00.000Z",
            "StartDate": "2024-01-08T08:00:00.000Z",
            "EndDate": None,
            "Produk_Nama": "Paracetamol 500",
            "Jenis_Sediaan": "Tablet",
        },
        {
            "Batch_No": "B2",
            "Group_Dept": "PN1",
            "tahapan_group": "Coating",
            "IdleStartDate": "2024-01-10T07:00:00.000Z",
            "StartDate": "2024-01-10T08:00:00.000Z",
            "Jenis_Sediaan": "Tablet",
        },
        {
            "Batch_No": "B3",
            "Group_Dept": "PN1",
            "tahapan_group": "QC",
            "StartDate": "tomorrow",
        },
    ]
}


@pytest.fixture()
def feed(tmp_path: Path) -> Path:
    path = tmp_path / "entries.json"
    path.write_text(json.dumps(FEED), encoding="utf-8")
    return path


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def test_working_days_with_holidays(runner, tmp_path):
    holidays = tmp_path / "holidays.json"
    holidays.write_text('["2024-01-01"]', encoding="utf-8")
    result = runner.invoke(main, ["--holidays", str(holidays), "working-days", "2023-12-29", "2024-01-02"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "1"


def test_working_days_to_pinned_today(runner):
    result = runner.invoke(main, ["--today", "2024-01-12", "working-days", "2024-01-08"])
    assert result.exit_code == 0
    assert result.output.strip() == "4"


def test_bad_date_is_rejected(runner):
    result = runner.invoke(main, ["working-days", "someday"])
    assert result.exit_code != 0
    assert "not a date" in result.output


def test_snapshot_text_output(runner, feed):
    result = runner.invoke(main, ["--today", "2024-01-12", "snapshot", "--entries", str(feed), "-d", "PN1"])
    assert result.exit_code == 0, result.output
    assert "B1" in result.output
    assert "skipped 1 malformed entries" in result.output
    mixing = next(line for line in result.output.splitlines() if line.startswith("Mixing"))
    assert "in-progress=1" in mixing
    assert "avg=4d" in mixing


def test_snapshot_condensed_json(runner, tmp_path):
    clean = tmp_path / "clean.json"
    clean.write_text(json.dumps({"data": FEED["data"][:2]}), encoding="utf-8")
    quiet = tmp_path / "quiet.yaml"
    quiet.write_text("logging:\n  level: warning\n", encoding="utf-8")
    result = runner.invoke(
        main,
        ["--config", str(quiet), "--today", "2024-01-12", "snapshot", "--entries", str(clean), "-d", "PN1", "--condensed", "--json"]
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [s["stage"] for s in payload][:2] == ["Timbang", "Proses"]
    proses = payload[1]
    assert [b["batch_no"] for b in proses["batches"]] == ["B1", "B2"]
    assert [b["duration"] for b in proses["batches"]] == [4, 2]


def test_condensed_and_product_type_conflict(runner, feed):
    result = runner.invoke(main, ["snapshot", "--entries", str(feed), "-d", "PN1", "-p", "Tablet", "--condensed"])
    assert result.exit_code == 2


def test_overview_and_export(runner, feed, tmp_path):
    result = runner.invoke(main, ["--today", "2024-01-12", "overview", "--entries", str(feed)])
    assert result.exit_code == 0, result.output
    assert "PN1 / Tablet (2 batches)" in result.output

    xlsx = tmp_path / "wip.xlsx"
    result = runner.invoke(main, ["--today", "2024-01-12", "export", "--entries", str(feed), "-o", str(xlsx)])
    assert result.exit_code == 0, result.output
    assert load_workbook(xlsx).sheetnames == ["Stages", "Batches"]

    out_csv = tmp_path / "wip.csv"
    result = runner.invoke(
        main, ["--today", "2024-01-12", "export", "--entries", str(feed), "-o", str(out_csv), "--condensed"]
    )
    assert result.exit_code == 0, result.output
    assert out_csv.read_text(encoding="utf-8").startswith("Department,Scope,Stage")


def test_config_error_is_reported(runner, tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("duration_mode: fortnightly\n", encoding="utf-8")
    result = runner.invoke(main, ["--config", str(bad), "working-days", "2024-01-08", "2024-01-09"])
    assert result.exit_code == 1
    assert "duration_mode" in result.output


def test_unknown_department_is_flagged(runner, feed):
    result = runner.invoke(main, ["--today", "2024-01-12", "snapshot", "--entries", str(feed), "-d", "PN 1"])
    assert result.exit_code == 0, result.output
    assert "unknown department 'PN 1', expected one of: PN1, PN2" in result.output

    result = runner.invoke(main, ["--today", "2024-01-12", "snapshot", "--entries", str(feed), "-d", "PN2"])
    assert "unknown department" not in result.output

"""Blueprint serving stage snapshots, overviews and exports."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from wiptrack.domain.stages import Department
from wiptrack.presentation import report

from ...services import wip_service
from ...store import get_store

bp = Blueprint("wip", __name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@bp.put("/api/entries")
def replace_entries():
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        return jsonify({"error": "Expected a list of task entries"}), 400

    result = get_store().replace_entries(payload)
    return jsonify({"status": "ok", "accepted": len(result.entries), "dropped": result.dropped})


@bp.get("/api/wip/stages")
def stage_snapshots():
    department = (request.args.get("department") or "").strip()
    if not department:
        return jsonify({"error": "Missing department"}), 400

    product_type = request.args.get("product_type") or None
    condensed = wip_service.parse_flag(request.args.get("condensed"))
    if condensed and product_type:
        return jsonify({"error": "Condensed view covers all product types"}), 400
    if Department.parse(department) is None:
        current_app.logger.warning("Stage snapshot requested for unknown department %r", department)

    return jsonify(wip_service.stage_snapshots(get_store(), department, product_type, condensed))


@bp.get("/api/wip/overview")
def overview():
    rows = wip_service.overview_rows(get_store())
    return jsonify({"rows": [row.as_dict() for row in rows]})


@bp.get("/api/wip/departments")
def departments():
    rows = wip_service.overview_rows(get_store(), condensed=True)
    return jsonify({"rows": [row.as_dict() for row in rows]})


@bp.get("/api/wip/batches/<batch_no>")
def batch_detail(batch_no: str):
    stage = request.args.get("stage") or None
    detail = wip_service.batch_detail(get_store(), batch_no, stage)
    if detail is None:
        return jsonify({"error": f"Batch {batch_no} not found"}), 404
    return jsonify(detail)


@bp.get("/api/wip/export.xlsx")
def export_xlsx():
    condensed = wip_service.parse_flag(request.args.get("condensed"))
    rows = wip_service.overview_rows(get_store(), condensed=condensed)
    return send_file(
        report.workbook_bytes(rows),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name="wip_overview.xlsx",
    )


@bp.get("/api/wip/export.csv")
def export_csv():
    condensed = wip_service.parse_flag(request.args.get("condensed"))
    rows = wip_service.overview_rows(get_store(), condensed=condensed)
    return Response(
        report.csv_summary(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=wip_overview.csv"},
    )

from __future__ import annotations

import io
import json
import logging

from flask import Flask, Response, jsonify, request, send_file

from farmacia_precios.excel_import import is_valid_file_name
from farmacia_precios.services import PriceUpdateService, records_from_dicts
from farmacia_precios.settings import Settings

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def create_app(settings: Settings) -> Flask:
    """JSON API over the price-update engine.

    Stateless: every call receives the current records from the client and returns
    the next version.
    """
    service = PriceUpdateService(settings)

    app = Flask(__name__, static_folder=None)
    # Records keep their export field order.
    app.json.sort_keys = False
    app.config["MAX_CONTENT_LENGTH"] = int(settings.MAX_UPLOAD_MB) * 1024 * 1024

    @app.get("/health")
    def health() -> Response:
        return jsonify({"ok": True, "app": settings.APP_NAME})

    def _ok(payload):
        return jsonify(payload)

    def _uploaded():
        f = request.files.get("file")
        if f is None or not f.filename:
            return None, "Archivo inválido"
        if not is_valid_file_name(f.filename):
            return None, "Por favor, selecciona un archivo Excel (.xlsx)"
        return f.read(), None

    def _form_records():
        # Multipart uploads carry the current records as a JSON string field.
        raw = request.form.get("records", "")
        if not raw:
            return [], None
        try:
            items = json.loads(raw)
        except ValueError:
            return None, "Registros inválidos"
        if not isinstance(items, list):
            return None, "Registros inválidos"
        return records_from_dicts(items), None

    def _json_records(data: dict):
        items = data.get("records")
        return records_from_dicts(items if isinstance(items, list) else [])

    # --- Uploads ---
    @app.post("/api/importReference")
    def api_import_reference():
        content, error = _uploaded()
        if error:
            return _ok({"ok": False, "error": error})
        return _ok(service.load_reference(content).to_payload())

    @app.post("/api/applyUpdates")
    def api_apply_updates():
        content, error = _uploaded()
        if error:
            return _ok({"ok": False, "error": error})
        records, error = _form_records()
        if error:
            return _ok({"ok": False, "error": error})
        return _ok(service.apply_updates(records, content).to_payload())

    @app.post("/api/integrateOffers")
    def api_integrate_offers():
        content, error = _uploaded()
        if error:
            return _ok({"ok": False, "error": error})
        records, error = _form_records()
        if error:
            return _ok({"ok": False, "error": error})
        return _ok(service.integrate_offers(records, content).to_payload())

    @app.post("/api/annotateLocations")
    def api_annotate_locations():
        content, error = _uploaded()
        if error:
            return _ok({"ok": False, "error": error})
        records, error = _form_records()
        if error:
            return _ok({"ok": False, "error": error})
        return _ok(service.annotate_locations(records, content).to_payload())

    # --- JSON API ---
    @app.post("/api/groupByLocation")
    def api_group_by_location():
        data = request.get_json(silent=True) or {}
        return _ok(service.grouped(_json_records(data)))

    @app.post("/api/search")
    def api_search():
        data = request.get_json(silent=True) or {}
        return _ok(service.search(_json_records(data), str(data.get("q", ""))).to_payload())

    @app.post("/api/assignLocations")
    def api_assign_locations():
        data = request.get_json(silent=True) or {}
        assignments = data.get("assignments")
        if not isinstance(assignments, dict):
            return _ok({"ok": False, "error": "Asignaciones inválidas"})
        return _ok(service.assign_locations(_json_records(data), assignments).to_payload())

    @app.post("/api/exportExcel")
    def api_export_excel():
        data = request.get_json(silent=True) or {}
        by_location = bool(data.get("by_location"))
        buf = io.BytesIO()
        try:
            res = service.export(_json_records(data), buf, by_location=by_location)
        except Exception as e:
            logger.exception("Error al generar el archivo de descarga")
            return _ok({"ok": False, "error": f"Error al descargar el archivo: {e}"})
        if not res.ok:
            return _ok(res.to_payload())
        buf.seek(0)
        return send_file(
            buf,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=service.export_filename(by_location=by_location),
        )

    return app

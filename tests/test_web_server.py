from __future__ import annotations

import io
import json

import pytest
from openpyxl import load_workbook

from farmacia_precios.web_server import create_app


@pytest.fixture
def client(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app.test_client()


def _upload(client, url: str, content: bytes, records=None, filename: str = "planilla.xlsx"):
    data = {"file": (io.BytesIO(content), filename)}
    if records is not None:
        data["records"] = json.dumps(records)
    return client.post(url, data=data, content_type="multipart/form-data").get_json()


def test_health(client) -> None:
    assert client.get("/health").get_json() == {"ok": True, "app": "Actualizador de Precios"}


def test_full_flow(client, reference_rows, xlsx) -> None:
    res = _upload(client, "/api/importReference", xlsx(reference_rows))
    assert res["ok"] is True
    assert res["stats"] == {"total": 4, "unassigned": 1}
    records = res["records"]
    assert list(records[0]) == [
        "code",
        "description",
        "previousPrice",
        "location",
        "brand",
        "delta",
        "percentChange",
        "isOffer",
        "updatedPrice",
    ]

    res = _upload(client, "/api/applyUpdates", xlsx([["COD", "PVP"], ["57", 1800]]), records)
    assert res["ok"] is True
    assert res["stats"] == {"total": 4, "changed": 1}
    amox = res["records"][0]
    assert amox["updatedPrice"] == 1800
    assert amox["delta"] == 300
    assert amox["percentChange"] == "20.00%"
    records = res["records"]

    res = _upload(
        client,
        "/api/integrateOffers",
        xlsx([["Producto", "Precio"], ["Ibuprofeno Jarabe", 950], ["Paracetamol", 700]]),
        records,
    )
    assert res["ok"] is True
    assert res["stats"] == {"total": 5, "integrated": 2, "newProducts": 1, "updated": 1}
    records = res["records"]
    # The update survives the round trip through the client.
    assert records[0]["updatedPrice"] == 1800
    assert records[-1]["code"] == "OF-1"

    grouped = client.post("/api/groupByLocation", json={"records": records}).get_json()
    assert [g["location"] for g in grouped["groups"]] == ["A1", "B2"]
    assert [r["code"] for r in grouped["unassigned"]] == ["230", "OF-1"]

    res = client.post(
        "/api/assignLocations", json={"records": records, "assignments": {"230": "C3", "OF-1": "A1"}}
    ).get_json()
    assert res["stats"] == {"total": 5, "unassigned": 0}
    records = res["records"]

    found = client.post("/api/search", json={"records": records, "q": "ibupro"}).get_json()
    assert [r["code"] for r in found["records"]] == ["230", "OF-1"]

    resp = client.post("/api/exportExcel", json={"records": records, "by_location": True})
    assert resp.status_code == 200
    assert "_por_mueble.xlsx" in resp.headers["Content-Disposition"]
    wb = load_workbook(io.BytesIO(resp.data))
    assert wb.sheetnames == ["A1", "C3", "B2"]


def test_import_reference_reports_missing_columns(client, xlsx) -> None:
    res = _upload(client, "/api/importReference", xlsx([["Codigo", "Nombre"], ["1", "x"]]))
    assert res["ok"] is False
    assert "precio" in res["error"]


def test_import_reference_rejects_single_row(client, xlsx) -> None:
    res = _upload(client, "/api/importReference", xlsx([["COD", "PVP"]]))
    assert res["ok"] is False
    assert "datos suficientes" in res["error"]


def test_upload_requires_xlsx(client) -> None:
    res = _upload(client, "/api/importReference", b"a,b", filename="lista.csv")
    assert res == {"ok": False, "error": "Por favor, selecciona un archivo Excel (.xlsx)"}


def test_upload_without_file(client) -> None:
    res = client.post("/api/importReference", data={"records": "[]"}).get_json()
    assert res == {"ok": False, "error": "Archivo inválido"}


def test_updates_need_reference(client, xlsx) -> None:
    res = _upload(client, "/api/applyUpdates", xlsx([["COD", "PVP"], ["57", 1800]]))
    assert res == {"ok": False, "error": "Primero debe cargar el archivo de referencia"}


def test_annotate_locations(client, reference_rows, xlsx) -> None:
    records = _upload(client, "/api/importReference", xlsx(reference_rows))["records"]
    res = _upload(
        client,
        "/api/annotateLocations",
        xlsx([["CodProducto", "Cantidad"], ["0102", 2], ["999", 1]]),
        records,
    )
    assert res["ok"] is True
    assert res["rows"] == [["Mueble", "CodProducto", "Cantidad"], ["A1", "0102", 2], ["No encontrado", "999", 1]]


def test_export_without_records(client) -> None:
    res = client.post("/api/exportExcel", json={"records": []}).get_json()
    assert res == {"ok": False, "error": "No hay datos para descargar"}


def test_assign_locations_validates_payload(client) -> None:
    res = client.post("/api/assignLocations", json={"records": [], "assignments": []}).get_json()
    assert res == {"ok": False, "error": "Asignaciones inválidas"}


def test_reference_records_keep_field_order(client, reference_rows, xlsx) -> None:
    resp = _upload(client, "/api/importReference", xlsx(reference_rows))
    raw = json.dumps(resp["records"][0])
    assert raw.index('"code"') < raw.index('"description"') < raw.index('"updatedPrice"')


@pytest.mark.parametrize("raw", ["[{bad json", '{"code": "57"}'])
def test_malformed_records_are_rejected(client, xlsx, raw) -> None:
    data = {"file": (io.BytesIO(xlsx([["Producto", "Precio"], ["Gasas", 90]])), "ofertas.xlsx"), "records": raw}
    res = client.post("/api/integrateOffers", data=data, content_type="multipart/form-data").get_json()
    assert res == {"ok": False, "error": "Registros inválidos"}

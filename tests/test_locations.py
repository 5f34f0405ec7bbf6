from __future__ import annotations

import pytest

from farmacia_precios.errors import InsufficientData, MissingRequiredColumn
from farmacia_precios.importers import import_reference
from farmacia_precios.locations import (
    annotate_locations,
    assign_locations,
    available_locations,
    group_by_location,
    is_location_valid,
    sort_by_location,
    unassigned_records,
)
from farmacia_precios.records import ProductRecord
from farmacia_precios.search import search_records


def _record(code: str, location: str, description: str = "", brand: str = "") -> ProductRecord:
    return ProductRecord.imported(code=code, description=description, price=10.0, location=location, brand=brand)


@pytest.mark.parametrize(
    "location,expected",
    [
        ("NO", False),
        ("Estante 3", True),
        ("sin ASIGNAR", False),
        ("", False),
        ("   ", False),
        (None, False),
        ("No encontrado", False),
        ("SIN MUEBLE asignado", False),
        ("no", True),
        ("Norte", True),
        ("A1", True),
    ],
)
def test_is_location_valid(location, expected) -> None:
    assert is_location_valid(location) is expected


def test_group_by_location_keeps_first_appearance_order() -> None:
    records = [
        _record("1", "B2"),
        _record("2", "A1"),
        _record("3", "NO"),
        _record("4", "B2"),
        _record("5", "Sin asignar"),
    ]
    groups = group_by_location(records)
    assert list(groups) == ["B2", "A1"]
    assert [r.code for r in groups["B2"]] == ["1", "4"]
    assert [r.code for r in unassigned_records(records)] == ["3", "5"]


def test_group_by_location_empty() -> None:
    assert group_by_location([]) == {}


def test_available_locations() -> None:
    records = [_record("1", "B2"), _record("2", "NO"), _record("3", "A1"), _record("4", "B2")]
    assert available_locations(records, extra=["Vitrina", "NO", "A1"]) == ["A1", "B2", "Vitrina"]


def test_assign_locations_returns_new_list() -> None:
    records = [_record("57", "NO"), _record("102", "A1")]
    updated = assign_locations(records, {"0057": " Vitrina ", "999": "X"})
    assert [r.location for r in updated] == ["Vitrina", "A1"]
    assert records[0].location == "NO"
    assert unassigned_records(updated) == []


def test_annotate_locations(reference_rows) -> None:
    reference = import_reference(reference_rows)
    matrix = [
        ["Fecha", "CodProducto", "Cantidad"],
        ["2024-01-02", "00057", 3],
        ["2024-01-02", 230, 1],
        ["2024-01-02", "777", 1],
        [],
    ]
    rows = annotate_locations(reference, matrix)
    assert rows[0] == ["Mueble", "Fecha", "CodProducto", "Cantidad"]
    assert [r[0] for r in rows[1:]] == ["A1", "NO", "No encontrado", "No encontrado"]


def test_annotate_locations_errors() -> None:
    with pytest.raises(InsufficientData):
        annotate_locations([], [["COD"]])
    with pytest.raises(MissingRequiredColumn):
        annotate_locations([], [["Lista"], ["x"]])


def test_sort_by_location() -> None:
    rows = [["Mueble", "Cod"], ["b2", "1"], ["A1", "2"], ["C3", "3"]]
    assert [r[0] for r in sort_by_location(rows)[1:]] == ["A1", "b2", "C3"]
    assert [r[0] for r in sort_by_location(rows, descending=True)[1:]] == ["C3", "b2", "A1"]
    assert sort_by_location([]) == []


def test_search_records() -> None:
    records = [
        _record("57", "A1", "Amoxicilina", "Bayer"),
        _record("102", "A1", "Paracetamol", "Roemmers"),
        _record("1570", "B2", "Gasas", "Johnson"),
    ]
    assert [r.code for r in search_records(records, "57")] == ["57", "1570"]
    assert [r.code for r in search_records(records, " BAYER ")] == ["57"]
    assert [r.code for r in search_records(records, "para")] == ["102"]
    assert search_records(records, "  ") == []

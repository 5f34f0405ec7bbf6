from __future__ import annotations

import io

import pytest
from openpyxl import Workbook

from farmacia_precios.settings import Settings


def make_workbook(rows: list[list], sheet_name: str = "Hoja1") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for r in rows:
        ws.append(r)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def reference_rows() -> list[list]:
    return [
        ["Mueble", "COD", "DROGA", "MARCA", "PVP"],
        ["A1", "057", "Amoxicilina", "Bayer", 1500],
        ["A1", "0102", "Paracetamol", "Roemmers", 800],
        ["NO", "230", "Ibuprofeno", "Bago", 1200],
        ["B2", "0044", "Loratadina", "Gador", 0],
    ]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(INSTANCE_DIR=tmp_path / "instance")


@pytest.fixture
def xlsx():
    return make_workbook

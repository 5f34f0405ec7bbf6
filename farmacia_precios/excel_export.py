from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, Iterable, Sequence

from openpyxl import Workbook

from farmacia_precios.locations import group_by_location, unassigned_records
from farmacia_precios.records import EXPORT_FIELDS, EXPORT_HEADERS, ProductRecord

FULL_SHEET_TITLE = "Precios Actualizados"
UNASSIGNED_SHEET_TITLE = "Sin mueble"
MAX_SHEET_TITLE = 30

_MONEY_FIELDS = {"previousPrice", "delta", "updatedPrice"}
_FORBIDDEN_TITLE_CHARS = '\\/?*[]:'


def _money(x: float) -> float:
    return float(Decimal(str(x or 0)).quantize(Decimal("0.01")))


def safe_sheet_title(name: str, taken: Iterable[str] = ()) -> str:
    """Excel-safe worksheet title, unique among ``taken`` (case-insensitive)."""
    title = "".join("_" if ch in _FORBIDDEN_TITLE_CHARS else ch for ch in str(name or "")).strip()
    title = title[:MAX_SHEET_TITLE] or "Hoja"
    used = {t.casefold() for t in taken}
    if title.casefold() not in used:
        return title
    n = 2
    while True:
        suffix = f" ({n})"
        candidate = title[: MAX_SHEET_TITLE - len(suffix)] + suffix
        if candidate.casefold() not in used:
            return candidate
        n += 1


def export_filename(prefix: str, *, by_location: bool = False, today: date | None = None) -> str:
    day = (today or date.today()).isoformat()
    suffix = "_por_mueble" if by_location else ""
    return f"{prefix}_{day}{suffix}.xlsx"


def _write_sheet(ws, records: Sequence[ProductRecord]) -> None:
    ws.append([EXPORT_HEADERS[f] for f in EXPORT_FIELDS])
    for r in records:
        data = r.to_dict()
        ws.append([_money(data[f]) if f in _MONEY_FIELDS else data[f] for f in EXPORT_FIELDS])


def export_records(
    records: Sequence[ProductRecord],
    destination: Path | str | BinaryIO,
    *,
    by_location: bool = False,
) -> tuple[int, list[str]]:
    """Write the records to a new workbook.

    by_location=False: one sheet with every record.
    by_location=True: one sheet per valid furniture tag, plus a trailing sheet with
    the records still waiting for a tag (only when there are any).
    Returns number of data rows written and the sheet titles.
    """
    wb = Workbook()
    first = wb.active

    if not by_location:
        first.title = FULL_SHEET_TITLE
        _write_sheet(first, records)
    else:
        titles: list[str] = []
        sheets = list(group_by_location(records).items())
        pending = unassigned_records(records)
        if pending or not sheets:
            sheets.append((UNASSIGNED_SHEET_TITLE, pending))
        for i, (name, items) in enumerate(sheets):
            title = safe_sheet_title(name, titles)
            titles.append(title)
            ws = first if i == 0 else wb.create_sheet()
            ws.title = title
            _write_sheet(ws, items)

    if isinstance(destination, (str, Path)):
        p = Path(destination).expanduser().resolve()
        if p.suffix.lower() != ".xlsx":
            raise RuntimeError("El archivo debe ser .xlsx")
        p.parent.mkdir(parents=True, exist_ok=True)
        wb.save(p)
    else:
        wb.save(destination)

    return int(len(records)), list(wb.sheetnames)

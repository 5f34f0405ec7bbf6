from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from farmacia_precios.columns import NOT_FOUND, identify_code_column
from farmacia_precios.errors import InsufficientData, MissingRequiredColumn
from farmacia_precios.normalization import cell_text, normalize_code
from farmacia_precios.records import ProductRecord

logger = logging.getLogger(__name__)

# Placeholders meaning "no furniture assigned".
INVALID_EXACT = frozenset({"", "NO"})
INVALID_SUBSTRINGS = ("no encontrado", "sin mueble", "sin asignar")

NOT_FOUND_LOCATION = "No encontrado"
LOCATION_HEADER = "Mueble"


def is_location_valid(location: Any) -> bool:
    if location is None:
        return False
    text = cell_text(location)
    if text in INVALID_EXACT or not text.strip():
        return False
    lowered = text.lower()
    return not any(p in lowered for p in INVALID_SUBSTRINGS)


def group_by_location(records: Iterable[ProductRecord]) -> dict[str, list[ProductRecord]]:
    """Records per furniture tag, in order of first appearance.

    Records without a valid tag are left out; they still belong to the full export.
    """
    groups: dict[str, list[ProductRecord]] = {}
    for r in records:
        if not is_location_valid(r.location):
            continue
        groups.setdefault(r.location, []).append(r)
    return groups


def unassigned_records(records: Iterable[ProductRecord]) -> list[ProductRecord]:
    return [r for r in records if not is_location_valid(r.location)]


def available_locations(records: Iterable[ProductRecord], extra: Iterable[str] = ()) -> list[str]:
    """Unique valid tags offered as suggestions when assigning furniture."""
    seen = {loc for loc in list(extra) + [r.location for r in records] if is_location_valid(loc)}
    return sorted(seen)


def assign_locations(records: Sequence[ProductRecord], assignments: Mapping[str, str]) -> list[ProductRecord]:
    """New record list with furniture tags set by product code.

    Codes not present in ``records`` are ignored.
    """
    wanted = {normalize_code(code): str(loc or "").strip() for code, loc in (assignments or {}).items()}
    wanted.pop("", None)
    out: list[ProductRecord] = []
    assigned = 0
    for r in records:
        loc = wanted.get(r.code)
        if loc is None:
            out.append(r)
        else:
            out.append(r.with_location(loc))
            assigned += 1
    logger.info("Muebles asignados: %s", assigned)
    return out


def annotate_locations(reference: Sequence[ProductRecord], matrix: Sequence[Sequence[Any]] | None) -> list[list[Any]]:
    """Prepend a "Mueble" column to an arbitrary product sheet.

    The location comes from the reference record with the same code (first one
    wins), or "No encontrado".
    """
    if not matrix or len(matrix) < 2:
        raise InsufficientData()
    header = list(matrix[0] or [])
    i_code = identify_code_column(header)
    if i_code == NOT_FOUND:
        raise MissingRequiredColumn("code")

    by_code: dict[str, str] = {}
    for r in reference:
        if r.code and r.code not in by_code:
            by_code[r.code] = r.location

    out: list[list[Any]] = [[LOCATION_HEADER] + header]
    missing = 0
    for row in matrix[1:]:
        row = list(row or [])
        code = normalize_code(row[i_code]) if i_code < len(row) else ""
        location = by_code.get(code) if code else None
        if location is None:
            location = NOT_FOUND_LOCATION
            missing += 1
        out.append([location] + row)

    if missing:
        logger.info("Productos sin mueble en la referencia: %s", missing)
    return out


def sort_by_location(rows: Sequence[Sequence[Any]], *, descending: bool = False) -> list[list[Any]]:
    """Sort annotated rows (header first) by the leading "Mueble" column."""
    if not rows:
        return []
    header, body = list(rows[0]), [list(r) for r in rows[1:]]
    body.sort(key=lambda r: cell_text(r[0] if r else "").casefold(), reverse=descending)
    return [header] + body

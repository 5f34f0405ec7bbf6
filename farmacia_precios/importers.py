from __future__ import annotations

import logging
from typing import Any, Sequence

from farmacia_precios.columns import (
    CODE,
    NOT_FOUND,
    PRICE,
    identify_brand_column,
    identify_code_column,
    identify_description_column,
    identify_location_column,
    identify_offer_columns,
    identify_price_column,
)
from farmacia_precios.errors import InsufficientData, MissingRequiredColumn
from farmacia_precios.normalization import cell_text, is_blank, normalize_code, parse_money, parse_price
from farmacia_precios.records import UNASSIGNED_LOCATION, OfferPair, ProductRecord, UpdatePair

logger = logging.getLogger(__name__)

Matrix = Sequence[Sequence[Any]]


def _at(row: Sequence[Any], idx: int) -> Any:
    # Guard against short rows and unidentified (-1) columns.
    return row[idx] if 0 <= idx < len(row) else None


def _code_cell_empty(value: Any) -> bool:
    # A literal 0 in the code column is treated as an empty cell.
    return is_blank(value) or (isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0)


def _header(matrix: Matrix | None) -> list[Any]:
    if not matrix or len(matrix) < 2:
        raise InsufficientData()
    return list(matrix[0] or [])


def _code_and_price_columns(header: list[Any]) -> tuple[int, int]:
    i_code = identify_code_column(header)
    if i_code == NOT_FOUND:
        raise MissingRequiredColumn(CODE)
    i_price = identify_price_column(header)
    if i_price == NOT_FOUND:
        raise MissingRequiredColumn(PRICE)
    return i_code, i_price


def _data_rows(matrix: Matrix, i_code: int):
    skipped = 0
    for row in matrix[1:]:
        row = list(row or [])
        if not row or _code_cell_empty(_at(row, i_code)):
            skipped += 1
            continue
        yield row
    if skipped:
        logger.debug("Filas sin código omitidas: %s", skipped)


def import_reference(matrix: Matrix | None) -> list[ProductRecord]:
    """Reference sheet (A): Mueble | COD | DROGA | MARCA | PVP, in any order.

    Duplicated codes are kept; lookups downstream decide which one wins.
    """
    header = _header(matrix)
    i_code, i_price = _code_and_price_columns(header)
    i_desc = identify_description_column(header)
    i_loc = identify_location_column(header)
    i_brand = identify_brand_column(header)

    out: list[ProductRecord] = []
    for row in _data_rows(matrix, i_code):
        location = cell_text(_at(row, i_loc)) if i_loc != NOT_FOUND else UNASSIGNED_LOCATION
        out.append(
            ProductRecord.imported(
                code=normalize_code(_at(row, i_code)),
                description=cell_text(_at(row, i_desc)),
                price=parse_price(_at(row, i_price)),
                location=location,
                brand=cell_text(_at(row, i_brand)),
            )
        )

    logger.info("Planilla de referencia: %s productos", len(out))
    return out


def import_updates(matrix: Matrix | None) -> list[UpdatePair]:
    header = _header(matrix)
    i_code, i_price = _code_and_price_columns(header)

    out = [
        UpdatePair(code=normalize_code(_at(row, i_code)), new_price=parse_price(_at(row, i_price)))
        for row in _data_rows(matrix, i_code)
    ]
    logger.info("Planilla de actualización: %s precios", len(out))
    return out


def import_offers(matrix: Matrix | None, *, keep_zero_prices: bool = False) -> list[OfferPair]:
    """Promo sheet without codes: product name + price (+ optional mueble).

    A price that parses to 0 cannot be told apart from an unreadable one. Those rows
    are dropped unless ``keep_zero_prices`` is set.
    """
    header = _header(matrix)
    i_name, i_price, i_loc = identify_offer_columns(header)

    out: list[OfferPair] = []
    zero_priced: list[str] = []
    for row in matrix[1:]:
        row = list(row or [])
        name_raw = _at(row, i_name)
        if is_blank(name_raw):
            continue
        name = cell_text(name_raw).strip()

        price = parse_money(_at(row, i_price))
        if price == 0:
            zero_priced.append(name)
            if not keep_zero_prices:
                continue

        location = UNASSIGNED_LOCATION
        if i_loc != NOT_FOUND and not is_blank(_at(row, i_loc)):
            location = cell_text(_at(row, i_loc)).strip()

        out.append(OfferPair(product_name=name, price=price, location=location))

    if zero_priced:
        if keep_zero_prices:
            logger.warning("Ofertas con precio 0 conservadas: %s", ", ".join(zero_priced))
        else:
            logger.warning(
                "Ofertas sin precio válido descartadas (%s): %s", len(zero_priced), ", ".join(zero_priced)
            )
    logger.info("Planilla de ofertas: %s ofertas", len(out))
    return out

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from farmacia_precios.normalization import normalize_header

NOT_FOUND = -1

CODE = "code"
DESCRIPTION = "description"
PRICE = "price"
BRAND = "brand"
LOCATION = "location"

ROLES = (CODE, DESCRIPTION, PRICE, BRAND, LOCATION)


class ColumnMatcher(Protocol):
    def find(self, header_row: Sequence[Any]) -> int | None: ...


@dataclass(frozen=True)
class ExactHeader:
    """Case-sensitive literal, as written in the pharmacy's own template."""

    literal: str

    def find(self, header_row: Sequence[Any]) -> int | None:
        for i, cell in enumerate(header_row):
            if cell == self.literal:
                return i
        return None


@dataclass(frozen=True)
class HeaderKeywords:
    keywords: tuple[str, ...]
    skip: frozenset[int] = frozenset()

    def find(self, header_row: Sequence[Any]) -> int | None:
        for i, cell in enumerate(header_row):
            if i in self.skip:
                continue
            norm = normalize_header(cell)
            if norm and any(k in norm for k in self.keywords):
                return i
        return None


@dataclass(frozen=True)
class Position:
    """Legacy layout: Mueble | COD | DROGA | MARCA | PVP, often without headers."""

    index: int
    min_columns: int

    def find(self, header_row: Sequence[Any]) -> int | None:
        if len(header_row) >= self.min_columns:
            return self.index
        return None


KEYWORDS: dict[str, tuple[str, ...]] = {
    CODE: ("codigo", "code", "cod", "id", "articulo", "producto", "item"),
    DESCRIPTION: ("descripcion", "description", "desc", "nombre", "name", "producto", "articulo", "droga"),
    PRICE: ("precio", "price", "valor", "value", "importe", "amount", "costo", "cost", "pvp"),
    BRAND: ("marca", "brand", "fabricante", "manufacturer", "lab", "laboratorio"),
    LOCATION: ("mueble", "furniture", "ubicacion", "location", "estante", "shelf"),
}

# Priority order per role: exact literal, keyword, position. First hit wins.
MATCHERS: dict[str, tuple[ColumnMatcher, ...]] = {
    CODE: (ExactHeader("COD"), HeaderKeywords(KEYWORDS[CODE]), Position(1, 2)),
    DESCRIPTION: (ExactHeader("DROGA"), HeaderKeywords(KEYWORDS[DESCRIPTION]), Position(2, 3)),
    BRAND: (ExactHeader("MARCA"), HeaderKeywords(KEYWORDS[BRAND]), Position(3, 4)),
    PRICE: (ExactHeader("PVP"), HeaderKeywords(KEYWORDS[PRICE]), Position(4, 5)),
    LOCATION: (ExactHeader("Mueble"), HeaderKeywords(KEYWORDS[LOCATION]), Position(0, 1)),
}

# Promo sheets carry no code; only keywords are trusted there.
OFFER_NAME_KEYWORDS = ("producto", "nombre", "descripcion", "description", "articulo", "droga", "name", "item")
OFFER_PRICE_KEYWORDS = ("precio", "price", "valor", "importe", "pvp", "monto")


def first_match(header_row: Sequence[Any], matchers: Sequence[ColumnMatcher]) -> int:
    for matcher in matchers:
        idx = matcher.find(header_row)
        if idx is not None:
            return idx
    return NOT_FOUND


def identify_column(header_row: Sequence[Any] | None, role: str) -> int:
    if role not in MATCHERS:
        raise ValueError(f"Unknown column role: {role!r}")
    return first_match(list(header_row or []), MATCHERS[role])


def identify_code_column(header_row: Sequence[Any] | None) -> int:
    return identify_column(header_row, CODE)


def identify_description_column(header_row: Sequence[Any] | None) -> int:
    return identify_column(header_row, DESCRIPTION)


def identify_price_column(header_row: Sequence[Any] | None) -> int:
    return identify_column(header_row, PRICE)


def identify_brand_column(header_row: Sequence[Any] | None) -> int:
    return identify_column(header_row, BRAND)


def identify_location_column(header_row: Sequence[Any] | None) -> int:
    return identify_column(header_row, LOCATION)


def identify_offer_columns(header_row: Sequence[Any] | None) -> tuple[int, int, int]:
    """(name, price, location) columns of a promo sheet.

    Price is located first and excluded from the name search, so a header such as
    "Precio producto" is not taken as the name. Name/price default to 0/1;
    location is optional (-1).
    """
    row = list(header_row or [])
    price = first_match(row, (HeaderKeywords(OFFER_PRICE_KEYWORDS),))
    name = first_match(row, (HeaderKeywords(OFFER_NAME_KEYWORDS, skip=frozenset({price})),))

    if price == NOT_FOUND:
        price = 1 if name != 1 else 0
    if name == NOT_FOUND:
        name = 0 if price != 0 else 1

    location = first_match(
        row, (HeaderKeywords(KEYWORDS[LOCATION], skip=frozenset({name, price})),)
    )
    return name, price, location

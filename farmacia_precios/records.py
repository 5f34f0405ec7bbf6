from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from farmacia_precios.normalization import cell_text, normalize_code, parse_price

# Marker written into records that still need a furniture tag. It is matched by the
# invalid-location patterns so those records surface in the assignment workflow.
UNASSIGNED_LOCATION = "Sin asignar"
OFFER_BRAND = "Oferta"
NOT_AVAILABLE = "N/A"

# Export order of the record fields; spreadsheet writers rely on it.
EXPORT_FIELDS = [
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

# Column titles used when the records are written to Excel.
EXPORT_HEADERS = {
    "code": "Codigo",
    "description": "Droga",
    "previousPrice": "PrecioAnterior",
    "location": "Mueble",
    "brand": "Marca",
    "delta": "Diferencia",
    "percentChange": "PorcentajeCambio",
    "isOffer": "Oferta",
    "updatedPrice": "PrecioActualizado",
}


def format_percent_change(previous_price: float, updated_price: float) -> str:
    if not previous_price:
        return NOT_AVAILABLE
    pct = (updated_price - previous_price) / previous_price * 100
    return f"{pct:.2f}%"


@dataclass(frozen=True)
class ProductRecord:
    code: str
    description: str
    previous_price: float
    location: str
    brand: str = ""
    delta: float = 0.0
    percent_change: str = NOT_AVAILABLE
    is_offer: bool = False
    updated_price: float = 0.0

    @classmethod
    def imported(
        cls,
        *,
        code: str,
        description: str,
        price: float,
        location: str,
        brand: str = "",
    ) -> "ProductRecord":
        """Fresh record straight out of a reference sheet (no merge applied yet)."""
        return cls(
            code=code,
            description=description,
            previous_price=price,
            location=location,
            brand=brand,
            delta=0.0,
            percent_change=NOT_AVAILABLE,
            is_offer=False,
            updated_price=price,
        )

    def with_updated_price(self, price: float, *, is_offer: bool) -> "ProductRecord":
        return replace(
            self,
            updated_price=price,
            delta=price - self.previous_price,
            percent_change=format_percent_change(self.previous_price, price),
            is_offer=is_offer,
        )

    def with_location(self, location: str) -> "ProductRecord":
        return replace(self, location=location)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "previousPrice": self.previous_price,
            "location": self.location,
            "brand": self.brand,
            "delta": self.delta,
            "percentChange": self.percent_change,
            "isOffer": self.is_offer,
            "updatedPrice": self.updated_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductRecord":
        # Records come back from HTTP clients; derived fields are recomputed instead
        # of trusted.
        previous = parse_price(data.get("previousPrice"))
        updated_raw = data.get("updatedPrice")
        updated = previous if updated_raw in (None, "") else parse_price(updated_raw)
        is_offer = bool(data.get("isOffer"))
        base = cls.imported(
            code=normalize_code(data.get("code")),
            description=cell_text(data.get("description")),
            price=previous,
            location=cell_text(data.get("location")),
            brand=cell_text(data.get("brand")),
        )
        pristine = data.get("percentChange", NOT_AVAILABLE) == NOT_AVAILABLE
        if updated == previous and not is_offer and pristine:
            return base
        return base.with_updated_price(updated, is_offer=is_offer)


@dataclass(frozen=True)
class UpdatePair:
    code: str
    new_price: float


@dataclass(frozen=True)
class OfferPair:
    product_name: str
    price: float
    location: str = UNASSIGNED_LOCATION


@dataclass(frozen=True)
class MergeStats:
    total: int
    changed: int

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "changed": self.changed}


@dataclass(frozen=True)
class OfferStats:
    total: int
    new_products: int
    updated: int

    @property
    def integrated(self) -> int:
        return self.new_products + self.updated

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "integrated": self.integrated,
            "newProducts": self.new_products,
            "updated": self.updated,
        }

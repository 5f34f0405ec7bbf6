from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Sequence

from farmacia_precios.normalization import normalize_code
from farmacia_precios.records import (
    OFFER_BRAND,
    UNASSIGNED_LOCATION,
    MergeStats,
    OfferPair,
    OfferStats,
    ProductRecord,
    UpdatePair,
)

logger = logging.getLogger(__name__)

# Sub-cent differences are float noise, not a price change.
CHANGE_TOLERANCE = 0.01

OFFER_CODE_PREFIX = "OF-"
_OFFER_CODE = re.compile(r"^OF-(\d+)$")


@dataclass(frozen=True)
class MergeResult:
    records: list[ProductRecord]
    stats: MergeStats


@dataclass(frozen=True)
class OfferResult:
    records: list[ProductRecord]
    stats: OfferStats


def is_changed(record: ProductRecord) -> bool:
    return abs(record.delta) > CHANGE_TOLERANCE


def apply_price_updates(records: Sequence[ProductRecord], updates: Sequence[UpdatePair]) -> MergeResult:
    """Apply the update sheet (B) onto the reference records by code.

    Repeated codes in the updates: the last one wins. Records without an update go
    back to their previous price. Applying the same updates twice gives the same result.
    """
    prices: dict[str, float] = {}
    for u in updates:
        code = normalize_code(u.code)
        # A 0 price is an unreadable cell, never a real update.
        if code and u.new_price:
            prices[code] = u.new_price

    out: list[ProductRecord] = []
    for r in records:
        new_price = prices.get(normalize_code(r.code))
        if new_price is None:
            out.append(r.with_updated_price(r.previous_price, is_offer=False))
        else:
            out.append(r.with_updated_price(new_price, is_offer=False))

    stats = MergeStats(total=len(out), changed=sum(1 for r in out if is_changed(r)))
    logger.info("Precios actualizados: %s de %s productos", stats.changed, stats.total)
    return MergeResult(records=out, stats=stats)


def _name_key(name: str) -> str:
    return str(name or "").strip().lower()


def _next_offer_number(records: Sequence[ProductRecord]) -> int:
    used = [int(m.group(1)) for m in (_OFFER_CODE.match(r.code) for r in records) if m]
    return max(used, default=0) + 1


def integrate_offers(records: Sequence[ProductRecord], offers: Sequence[OfferPair]) -> OfferResult:
    """Merge promo prices by product name; unknown products become new records.

    Only the first record with a given name can receive an offer. New records get
    an ``OF-n`` code that does not clash with codes already in ``records``.
    """
    out = list(records)
    by_name: dict[str, int] = {}
    for i, r in enumerate(out):
        key = _name_key(r.description)
        if key and key not in by_name:
            by_name[key] = i

    next_number = _next_offer_number(out)
    new_products = 0
    updated = 0
    for offer in offers:
        key = _name_key(offer.product_name)
        idx = by_name.get(key) if key else None
        if idx is not None:
            out[idx] = out[idx].with_updated_price(offer.price, is_offer=True)
            updated += 1
            continue

        record = ProductRecord(
            code=f"{OFFER_CODE_PREFIX}{next_number}",
            description=offer.product_name,
            previous_price=0.0,
            location=offer.location or UNASSIGNED_LOCATION,
            brand=OFFER_BRAND,
        ).with_updated_price(offer.price, is_offer=True)
        next_number += 1
        new_products += 1
        # Repeated offer names land on the record created for the first one.
        if key:
            by_name[key] = len(out)
        out.append(record)

    stats = OfferStats(total=len(out), new_products=new_products, updated=updated)
    logger.info(
        "Ofertas integradas: %s (%s nuevas, %s actualizadas)",
        stats.integrated,
        stats.new_products,
        stats.updated,
    )
    return OfferResult(records=out, stats=stats)

from __future__ import annotations

from typing import Iterable

from farmacia_precios.records import ProductRecord


def search_records(records: Iterable[ProductRecord], term: str) -> list[ProductRecord]:
    """Records whose code, description or brand contains ``term`` (any case)."""
    needle = (term or "").strip().lower()
    if not needle:
        return []
    return [
        r
        for r in records
        if needle in r.code.lower() or needle in r.description.lower() or needle in r.brand.lower()
    ]

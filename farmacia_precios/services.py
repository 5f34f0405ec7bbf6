from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, BinaryIO, Iterable, Mapping

from farmacia_precios.errors import SpreadsheetImportError
from farmacia_precios.excel_export import export_filename, export_records
from farmacia_precios.excel_import import read_cell_matrix
from farmacia_precios.importers import import_offers, import_reference, import_updates
from farmacia_precios.locations import (
    annotate_locations,
    assign_locations,
    available_locations,
    group_by_location,
    unassigned_records,
)
from farmacia_precios.merge import apply_price_updates, integrate_offers
from farmacia_precios.records import ProductRecord
from farmacia_precios.search import search_records
from farmacia_precios.settings import Settings

logger = logging.getLogger(__name__)

Source = Path | str | bytes | BinaryIO


def records_to_dicts(records: Iterable[ProductRecord]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in records]


def records_from_dicts(items: Iterable[Mapping[str, Any]] | None) -> list[ProductRecord]:
    return [ProductRecord.from_dict(dict(d)) for d in (items or []) if isinstance(d, Mapping)]


@dataclass(frozen=True)
class ServiceResult:
    ok: bool
    error: str | None = None
    records: list[ProductRecord] | None = None
    stats: dict | None = None
    rows: list[list[Any]] | None = None

    def to_payload(self) -> dict[str, Any]:
        if not self.ok:
            return {"ok": False, "error": self.error}
        out: dict[str, Any] = {"ok": True}
        if self.records is not None:
            out["records"] = records_to_dicts(self.records)
        if self.stats is not None:
            out["stats"] = self.stats
        if self.rows is not None:
            out["rows"] = self.rows
        return out


class PriceUpdateService:
    """Upload-level operations: read a workbook, run one engine step, report.

    The caller owns the current record list and passes it into every call.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _matrix(self, source: Source) -> list[list[Any]]:
        return read_cell_matrix(source, self.settings.EXCEL_WORKSHEET_NAME)

    def load_reference(self, source: Source) -> ServiceResult:
        try:
            records = import_reference(self._matrix(source))
        except SpreadsheetImportError as e:
            logger.warning("Error al procesar el archivo de referencia: %s", e)
            return ServiceResult(ok=False, error=f"Error al procesar el archivo de referencia: {e}")
        if not records:
            return ServiceResult(ok=False, error="No se encontraron productos (revisa hoja/encabezados).")
        return ServiceResult(
            ok=True,
            records=records,
            stats={"total": len(records), "unassigned": len(unassigned_records(records))},
        )

    def apply_updates(self, records: list[ProductRecord], source: Source) -> ServiceResult:
        if not records:
            return ServiceResult(ok=False, error="Primero debe cargar el archivo de referencia")
        try:
            updates = import_updates(self._matrix(source))
        except SpreadsheetImportError as e:
            logger.warning("Error al procesar el archivo de actualización: %s", e)
            return ServiceResult(ok=False, error=f"Error al procesar el archivo de actualización: {e}")
        res = apply_price_updates(records, updates)
        return ServiceResult(ok=True, records=res.records, stats=res.stats.to_dict())

    def integrate_offers(self, records: list[ProductRecord], source: Source) -> ServiceResult:
        try:
            offers = import_offers(
                self._matrix(source),
                keep_zero_prices=self.settings.OFFERS_KEEP_ZERO_PRICE,
            )
        except SpreadsheetImportError as e:
            logger.warning("Error al procesar el archivo de ofertas: %s", e)
            return ServiceResult(ok=False, error=f"Error al procesar el archivo de ofertas: {e}")
        res = integrate_offers(records, offers)
        return ServiceResult(ok=True, records=res.records, stats=res.stats.to_dict())

    def annotate_locations(self, records: list[ProductRecord], source: Source) -> ServiceResult:
        if not records:
            return ServiceResult(ok=False, error="Por favor, carga primero el archivo de referencia de muebles.")
        try:
            rows = annotate_locations(records, self._matrix(source))
        except SpreadsheetImportError as e:
            logger.warning("Error al procesar el archivo: %s", e)
            return ServiceResult(ok=False, error=f"Error al procesar el archivo: {e}")
        return ServiceResult(ok=True, rows=rows, stats={"total": len(rows) - 1})

    def grouped(self, records: list[ProductRecord]) -> dict[str, Any]:
        groups = group_by_location(records)
        return {
            "ok": True,
            "groups": [{"location": loc, "records": records_to_dicts(items)} for loc, items in groups.items()],
            "unassigned": records_to_dicts(unassigned_records(records)),
            "locations": available_locations(records),
        }

    def search(self, records: list[ProductRecord], term: str) -> ServiceResult:
        return ServiceResult(ok=True, records=search_records(records, term))

    def assign_locations(self, records: list[ProductRecord], assignments: Mapping[str, str]) -> ServiceResult:
        updated = assign_locations(records, assignments)
        return ServiceResult(
            ok=True,
            records=updated,
            stats={"total": len(updated), "unassigned": len(unassigned_records(updated))},
        )

    def export(
        self,
        records: list[ProductRecord],
        destination: Path | str | BinaryIO,
        *,
        by_location: bool = False,
    ) -> ServiceResult:
        if not records:
            return ServiceResult(ok=False, error="No hay datos para descargar")
        written, sheets = export_records(records, destination, by_location=by_location)
        return ServiceResult(ok=True, stats={"rows": written, "sheets": sheets})

    def export_filename(self, *, by_location: bool = False) -> str:
        return export_filename(self.settings.EXPORT_FILENAME_PREFIX, by_location=by_location)

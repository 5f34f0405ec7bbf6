from __future__ import annotations

import argparse
import logging
from pathlib import Path

from farmacia_precios.services import PriceUpdateService
from farmacia_precios.settings import Settings


def _fail(message: str) -> int:
    print(f"ERROR: {message}")
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Actualización de precios por planillas Excel")
    parser.add_argument("--reference", required=True, type=Path, help="Planilla de referencia (A) con muebles y precios")
    parser.add_argument("--updates", type=Path, help="Planilla de actualización (B) con los nuevos precios")
    parser.add_argument("--offers", type=Path, help="Planilla de ofertas (sin códigos)")
    parser.add_argument("--out", type=Path, help="Archivo .xlsx de salida (por defecto en INSTANCE_DIR)")
    parser.add_argument("--by-location", action="store_true", help="Una hoja por mueble")
    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    service = PriceUpdateService(settings)

    res = service.load_reference(args.reference)
    if not res.ok:
        return _fail(res.error or "")
    records = res.records or []
    print("referencia", len(records), "productos")

    if args.updates is not None:
        res = service.apply_updates(records, args.updates)
        if not res.ok:
            return _fail(res.error or "")
        records = res.records or []
        print("actualizados", res.stats["changed"], "de", res.stats["total"])

    if args.offers is not None:
        res = service.integrate_offers(records, args.offers)
        if not res.ok:
            return _fail(res.error or "")
        records = res.records or []
        print("ofertas", res.stats["integrated"], "nuevas", res.stats["newProducts"], "actualizadas", res.stats["updated"])

    out = args.out
    if out is None:
        settings.ensure_instance()
        out = settings.INSTANCE_DIR / service.export_filename(by_location=args.by_location)

    try:
        res = service.export(records, out, by_location=args.by_location)
    except (RuntimeError, OSError) as e:
        return _fail(str(e))
    if not res.ok:
        return _fail(res.error or "")
    print("exportado", out, "hojas:", ", ".join(res.stats["sheets"]))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "si", "sí")


@dataclass(frozen=True)
class Settings:
    # App
    APP_NAME: str = os.environ.get("APP_NAME", "Actualizador de Precios")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Default output folder for CLI exports
    INSTANCE_DIR: Path = Path(os.environ.get("INSTANCE_DIR", "instance")).resolve()

    # Excel import: empty means the first worksheet.
    EXCEL_WORKSHEET_NAME: str = os.environ.get("EXCEL_WORKSHEET_NAME", "")
    MAX_UPLOAD_MB: int = int(os.environ.get("MAX_UPLOAD_MB", "16"))

    # Excel export
    EXPORT_FILENAME_PREFIX: str = os.environ.get("EXPORT_FILENAME_PREFIX", "Precios_Actualizados")

    # Promo sheets: keep rows whose price reads as 0 instead of discarding them.
    OFFERS_KEEP_ZERO_PRICE: bool = _env_bool("OFFERS_KEEP_ZERO_PRICE")

    def __post_init__(self) -> None:
        # Always resolve INSTANCE_DIR; uploads are written inside it.
        object.__setattr__(self, "INSTANCE_DIR", Path(self.INSTANCE_DIR).resolve())
        object.__setattr__(self, "LOG_LEVEL", (self.LOG_LEVEL or "INFO").strip().upper())

    def ensure_instance(self) -> None:
        self.INSTANCE_DIR.mkdir(parents=True, exist_ok=True)

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, BinaryIO
import zipfile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from farmacia_precios.errors import SpreadsheetImportError
from farmacia_precios.normalization import is_blank

VALID_EXTENSIONS = (".xlsx", ".xlsm")


def is_valid_file_name(name: str) -> bool:
    return str(name or "").strip().lower().endswith(VALID_EXTENSIONS)


class WorkbookReader:
    """Reads one worksheet of an .xlsx file into a plain cell matrix."""

    def __init__(self, source: Path | str | bytes | BinaryIO, worksheet_name: str = ""):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        self.source = source
        self.worksheet_name = (worksheet_name or "").strip()

    def _open(self):
        # read_only=True is dramatically faster and avoids huge memory spikes.
        try:
            return load_workbook(filename=self.source, data_only=True, read_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise SpreadsheetImportError(f"No se pudo leer el archivo Excel: {e}") from e

    def _worksheet(self, wb):
        if self.worksheet_name:
            wanted = self.worksheet_name.casefold()
            for name in wb.sheetnames:
                if str(name).strip().casefold() == wanted:
                    return wb[name]
        # Default: first sheet.
        return wb.worksheets[0]

    def read_matrix(self) -> list[list[Any]]:
        if isinstance(self.source, (str, Path)) and not Path(self.source).exists():
            raise SpreadsheetImportError(f"No existe el archivo Excel: {self.source}")

        wb = self._open()
        try:
            ws = self._worksheet(wb)
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

        # ws.max_row can be misleadingly huge if formatting extends; drop blank tails.
        while rows and all(is_blank(v) for v in rows[-1]):
            rows.pop()
        for r in rows:
            while r and r[-1] is None:
                r.pop()
        return rows


def read_cell_matrix(source: Path | str | bytes | BinaryIO, worksheet_name: str = "") -> list[list[Any]]:
    return WorkbookReader(source, worksheet_name).read_matrix()

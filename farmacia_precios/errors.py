from __future__ import annotations


class SpreadsheetImportError(RuntimeError):
    """Base error for a spreadsheet that cannot be imported as a whole."""


class InsufficientData(SpreadsheetImportError):
    def __init__(self, message: str = "El archivo no contiene datos suficientes"):
        super().__init__(message)


class MissingRequiredColumn(SpreadsheetImportError):
    # Display names used in the error message shown to staff.
    LABELS = {
        "code": "código de producto (COD)",
        "price": "precio (PVP)",
        "description": "descripción (DROGA)",
        "brand": "marca (MARCA)",
        "location": "mueble (Mueble)",
    }

    def __init__(self, role: str):
        self.role = role
        label = self.LABELS.get(role, role)
        super().__init__(f"No se pudo identificar la columna de {label}")

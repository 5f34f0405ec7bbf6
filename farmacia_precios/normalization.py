from __future__ import annotations

import math
import re
from typing import Any
import unicodedata

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_ZEROS = re.compile(r"^[\s0]+")
_NOT_ALNUM = re.compile(r"[^a-z0-9]")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def cell_text(value: Any) -> str:
    """Text of a spreadsheet cell; integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def normalize_header(value: Any) -> str:
    if value is None:
        return ""
    s = str(value).strip()
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return _NOT_ALNUM.sub("", s.casefold())


def normalize_code(value: Any) -> str:
    """Canonical product code: trimmed, without leading zeros, case preserved.

    "0057", " 57 " and 57.0 all become "57".
    """
    if value is None:
        return ""
    s = _LEADING_ZEROS.sub("", cell_text(value))
    return s.rstrip()


def parse_price(value: Any) -> float:
    """Leading-number parse of a price cell; anything unusable is 0.

    Negative amounts are not valid prices and also collapse to 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        f = float(value)
    else:
        m = _LEADING_FLOAT.match(str(value))
        if not m:
            return 0.0
        try:
            f = float(m.group(0))
        except ValueError:
            return 0.0
    if math.isnan(f) or math.isinf(f) or f < 0:
        return 0.0
    return f


def parse_money(value: Any) -> float:
    """Price typed by hand in a promo sheet: "$ 1.234,50", "950", "1,234"."""
    if value in (None, "") or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return parse_price(value)

    # Keep digits/separators only; currency text and signs are dropped.
    s = "".join(ch for ch in str(value) if ch.isdigit() or ch in (".", ","))
    if not s:
        return 0.0

    # Heuristics for thousands/decimal separators.
    if "." in s and "," in s:
        if s.rfind(",") > s.rfind("."):
            # Common LatAm: 1.234,56
            s = s.replace(".", "")
            s = s.replace(",", ".")
        else:
            # 1,234.56
            s = s.replace(",", "")
    elif "," in s:
        # Could be 1234,56 or 1,234
        parts = s.split(",")
        if len(parts) == 2 and len(parts[1]) != 3:
            s = s.replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "." in s:
        # Could be 1.234 (thousands) or 1234.56 (decimal)
        parts = s.split(".")
        if len(parts) > 2 or (len(parts) == 2 and len(parts[1]) == 3 and parts[0].isdigit()):
            s = s.replace(".", "")

    # ",50" / ".50" style prices.
    if s.startswith("."):
        s = "0" + s

    try:
        return parse_price(float(s))
    except ValueError:
        return 0.0

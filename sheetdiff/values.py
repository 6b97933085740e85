from __future__ import annotations

from datetime import date, datetime, time
from typing import Any


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def cell_text(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def values_equal(a: Any, b: Any) -> bool:
    blank_a, blank_b = is_blank(a), is_blank(b)
    if blank_a or blank_b:
        return blank_a and blank_b
    return cell_text(a) == cell_text(b)

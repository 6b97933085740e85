from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Set

from .values import cell_text, is_blank

LOGGER = logging.getLogger(__name__)

BLANK_HEADER = "(Blank Column)"

_LETTERS_RE = re.compile(r"^[A-Z]+$")


def column_letter(index: int) -> str:
    if index < 1:
        raise ValueError(f"column index must be 1-based, got {index}")
    letters = ""
    n = index
    while n > 0:
        mod = (n - 1) % 26
        letters = chr(ord("A") + mod) + letters
        n = (n - 1) // 26
    return letters


def column_index(letter: str) -> int:
    candidate = (letter or "").strip().upper()
    if not _LETTERS_RE.match(candidate):
        raise ValueError(f"not a column identifier: {letter!r}")
    n = 0
    for ch in candidate:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n


def sort_column_ids(ids: Iterable[str]) -> List[str]:
    return sorted(ids, key=column_index)


def header_text(value: Any) -> str:
    # same rendering as cell values, so 2024.0 and 2024 are one header
    return "" if is_blank(value) else cell_text(value)


def blank_column_key(column_id: str) -> str:
    return f"(Blank Column {column_id})"


def distinct_key(text: str, taken: Set[str], occurrence: int = 0) -> str:
    """Key for the n-th (0-based) occurrence of ``text`` that is not yet in ``taken``.

    The first occurrence keeps the bare text, later ones get " #2", " #3", ...
    skipping any suffix already taken. The chosen key is added to ``taken``.
    """
    n = occurrence + 1
    key = text if n == 1 else f"{text} #{n}"
    while key in taken:
        n += 1
        key = f"{text} #{n}"
    taken.add(key)
    return key


def count_duplicate_headers(header: Dict[str, Any]) -> int:
    counts = Counter(t for t in (header_text(v) for v in header.values()) if t)
    duplicates = sum(n - 1 for n in counts.values() if n > 1)
    if duplicates:
        LOGGER.debug("Duplicate header text: %s", sorted(t for t, n in counts.items() if n > 1))
    return duplicates

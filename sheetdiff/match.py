from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .identify import BLANK_HEADER, blank_column_key, distinct_key, header_text
from .keys import row_key
from .models import ADDED, DELETED, MATCHED, KeySelection, Row, UnifiedColumn, UnifiedRow

LOGGER = logging.getLogger(__name__)

# body row i sits on spreadsheet row i + 2 (1-based, below the header)
HEADER_OFFSET = 2

# (header text, occurrence) for named columns, ("", column id) for blank ones
Identity = Tuple[str, Any]


@dataclass(frozen=True)
class RowMatch:
    rows: Tuple[UnifiedRow, ...]
    duplicates_a: int = 0
    duplicates_b: int = 0


def _column_identities(header: Row) -> List[Tuple[str, Identity, str]]:
    seen: Counter = Counter()
    out: List[Tuple[str, Identity, str]] = []
    for cid, value in header.items():
        text = header_text(value)
        if text:
            out.append((cid, (text, seen[text]), text))
            seen[text] += 1
        else:
            # blank headers only pair with a blank header under the same identifier
            out.append((cid, ("", cid), BLANK_HEADER))
    return out


def _column_key(identity: Identity, taken: Set[str]) -> str:
    text, occurrence = identity
    if not text:
        return distinct_key(blank_column_key(occurrence), taken)
    if occurrence == 0:
        return text
    return distinct_key(text, taken, occurrence)


def match_columns(header_a: Row, header_b: Row) -> List[UnifiedColumn]:
    ids_a = _column_identities(header_a)
    ids_b = _column_identities(header_b)
    a_by_identity: Dict[Identity, str] = {identity: cid for cid, identity, _ in ids_a}
    b_identities = {identity for _, identity, _ in ids_b}

    paired: List[Tuple[Identity, str, Optional[str], Optional[str], str]] = []
    for cid_b, identity, text in ids_b:
        cid_a = a_by_identity.get(identity)
        paired.append((identity, text, cid_a, cid_b, MATCHED if cid_a is not None else ADDED))
    for cid_a, identity, text in ids_a:
        if identity not in b_identities:
            paired.append((identity, text, cid_a, None, DELETED))

    # first occurrences keep their bare text; suffixed keys skip any text already used
    taken = {identity[0] for identity, *_ in paired if identity[0] and identity[1] == 0}
    columns = [
        UnifiedColumn(_column_key(identity, taken), text, cid_a, cid_b, kind)
        for identity, text, cid_a, cid_b, kind in paired
    ]

    LOGGER.debug(
        "Columns: %d matched, %d added, %d deleted",
        sum(c.kind == MATCHED for c in columns),
        sum(c.kind == ADDED for c in columns),
        sum(c.kind == DELETED for c in columns),
    )
    return columns


def _group_rows(body: Sequence[Row], key: KeySelection, side: str) -> Dict[str, List[Tuple[int, Row]]]:
    groups: Dict[str, List[Tuple[int, Row]]] = defaultdict(list)
    for i, row in enumerate(body):
        # a blank key falls back to the row position, shared by both sides
        value = row_key(row, key.columns, side) or f"row-{i + HEADER_OFFSET}"
        groups[value].append((i, row))
    return groups


def _duplicates(groups: Dict[str, List[Tuple[int, Row]]]) -> int:
    return sum(len(entries) - 1 for entries in groups.values() if len(entries) > 1)


def _unified_row_key(value: str, occurrence: int, taken: Set[str]) -> str:
    return value if occurrence == 0 else distinct_key(value, taken, occurrence)


def _match_by_key(body_a: Sequence[Row], body_b: Sequence[Row], key: KeySelection) -> RowMatch:
    groups_a = _group_rows(body_a, key, "a")
    groups_b = _group_rows(body_b, key, "b")

    # every key text is reserved so a duplicate suffix never lands on a real key
    taken: Set[str] = set(groups_a) | set(groups_b)
    rows: List[UnifiedRow] = []
    for value, entries_a in groups_a.items():
        entries_b = groups_b.get(value, [])
        for n, (i, row_a) in enumerate(entries_a):
            unified_key = _unified_row_key(value, n, taken)
            if n < len(entries_b):
                j, row_b = entries_b[n]
                rows.append(UnifiedRow(unified_key, row_a, i + HEADER_OFFSET, row_b, j + HEADER_OFFSET, MATCHED))
            else:
                rows.append(UnifiedRow(unified_key, row_a, i + HEADER_OFFSET, None, None, DELETED))
    for value, entries_b in groups_b.items():
        start = len(groups_a.get(value, []))
        for n, (j, row_b) in enumerate(entries_b[start:], start=start):
            rows.append(UnifiedRow(_unified_row_key(value, n, taken), None, None, row_b, j + HEADER_OFFSET, ADDED))

    rows.sort(key=lambda r: (r.position, r.index_a is None))
    return RowMatch(tuple(rows), _duplicates(groups_a), _duplicates(groups_b))


def _match_by_position(body_a: Sequence[Row], body_b: Sequence[Row]) -> RowMatch:
    rows: List[UnifiedRow] = []
    for i in range(max(len(body_a), len(body_b))):
        row_a: Optional[Row] = body_a[i] if i < len(body_a) else None
        row_b: Optional[Row] = body_b[i] if i < len(body_b) else None
        index = i + HEADER_OFFSET
        if row_a is not None and row_b is not None:
            rows.append(UnifiedRow(f"row-{index}", row_a, index, row_b, index, MATCHED))
        elif row_a is not None:
            rows.append(UnifiedRow(f"row-{index}", row_a, index, None, None, DELETED))
        else:
            rows.append(UnifiedRow(f"row-{index}", None, None, row_b, index, ADDED))
    return RowMatch(tuple(rows))


def match_rows(body_a: Sequence[Row], body_b: Sequence[Row], key: Optional[KeySelection] = None) -> RowMatch:
    key = key or KeySelection()
    if key.is_positional:
        result = _match_by_position(body_a, body_b)
    else:
        result = _match_by_key(body_a, body_b, key)
    LOGGER.debug(
        "Rows (%s): %d matched, %d added, %d deleted",
        "positional" if key.is_positional else "key",
        sum(r.kind == MATCHED for r in result.rows),
        sum(r.kind == ADDED for r in result.rows),
        sum(r.kind == DELETED for r in result.rows),
    )
    return result

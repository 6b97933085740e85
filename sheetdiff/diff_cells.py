from __future__ import annotations

from typing import Any, Iterable, List, Sequence

from .models import ADDED, MATCHED, MODIFIED, REMOVED, CellDifference, UnifiedColumn, UnifiedRow
from .values import is_blank, values_equal


def classify_change(old: Any, new: Any) -> str:
    if is_blank(old) and not is_blank(new):
        return ADDED
    if is_blank(new) and not is_blank(old):
        return REMOVED
    return MODIFIED


def diff_row(row: UnifiedRow, columns: Sequence[UnifiedColumn]) -> List[CellDifference]:
    if row.kind != MATCHED:
        return []
    out: List[CellDifference] = []
    for column in columns:
        if column.kind != MATCHED:
            continue
        old = row.value_a(column)
        new = row.value_b(column)
        if values_equal(old, new):
            continue
        out.append(
            CellDifference(
                row_key=row.key,
                index_a=row.index_a,
                index_b=row.index_b,
                column_key=column.key,
                header=column.header,
                old_value=old,
                new_value=new,
                change=classify_change(old, new),
            )
        )
    return out


def diff_cells(rows: Iterable[UnifiedRow], columns: Sequence[UnifiedColumn]) -> List[CellDifference]:
    matched_columns = [c for c in columns if c.kind == MATCHED]
    differences: List[CellDifference] = []
    for row in rows:
        differences.extend(diff_row(row, matched_columns))
    return differences

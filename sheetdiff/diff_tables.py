"""Assemble a sheet-level diff from column, row and cell matches.

``compare_datasets`` is the entry point. It is a pure function: each call builds
its own maps and returns a fresh, read-only ``DiffResult``.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .diff_cells import diff_cells
from .identify import count_duplicate_headers
from .keys import select_key
from .match import match_columns, match_rows
from .models import (
    ADDED,
    DELETED,
    MATCHED,
    MODIFIED,
    REMOVED,
    CellDifference,
    Change,
    ComparisonError,
    Dataset,
    DiffResult,
    DiffSummary,
    KeySelection,
    MatchPolicy,
    UnifiedColumn,
    UnifiedRow,
)

LOGGER = logging.getLogger(__name__)


def build_changes(
    rows: Sequence[UnifiedRow],
    columns: Sequence[UnifiedColumn],
    differences: Sequence[CellDifference],
) -> List[Change]:
    by_cell: Dict[Tuple[str, str], CellDifference] = {(d.row_key, d.column_key): d for d in differences}
    changes: List[Change] = []

    def add(**fields) -> None:
        changes.append(Change(position=len(changes), **fields))

    for row in rows:
        base = dict(row_key=row.key, index_a=row.index_a, index_b=row.index_b)
        if row.kind != MATCHED:
            add(kind=row.kind, **base)
            continue
        for column in columns:
            if column.kind == MATCHED:
                diff = by_cell.get((row.key, column.key))
                if diff is not None:
                    add(kind=MODIFIED, column_key=column.key, header=column.header,
                        old_value=diff.old_value, new_value=diff.new_value, **base)
            elif column.kind == ADDED:
                add(kind=ADDED, column_key=column.key, header=column.header,
                    new_value=row.value_b(column), **base)
            else:
                add(kind=DELETED, column_key=column.key, header=column.header,
                    old_value=row.value_a(column), **base)
    return changes


def summarize(
    columns: Sequence[UnifiedColumn],
    rows: Sequence[UnifiedRow],
    differences: Sequence[CellDifference],
    changes: Sequence[Change],
    key: KeySelection,
    duplicate_headers: Tuple[int, int] = (0, 0),
    duplicate_keys: Tuple[int, int] = (0, 0),
) -> DiffSummary:
    return DiffSummary(
        total_rows=len(rows),
        total_columns=len(columns),
        matched_rows=sum(r.kind == MATCHED for r in rows),
        added_rows=sum(r.kind == ADDED for r in rows),
        deleted_rows=sum(r.kind == DELETED for r in rows),
        changed_rows=len({d.row_key for d in differences}),
        matched_columns=sum(c.kind == MATCHED for c in columns),
        added_columns=sum(c.kind == ADDED for c in columns),
        deleted_columns=sum(c.kind == DELETED for c in columns),
        modified_cells=sum(d.change == MODIFIED for d in differences),
        added_cells=sum(d.change == ADDED for d in differences),
        removed_cells=sum(d.change == REMOVED for d in differences),
        total_changes=len(changes),
        duplicate_headers_a=duplicate_headers[0],
        duplicate_headers_b=duplicate_headers[1],
        duplicate_keys_a=duplicate_keys[0],
        duplicate_keys_b=duplicate_keys[1],
        match_mode="positional" if key.is_positional else "key",
        key_headers=tuple(key.headers),
        key_score=round(key.score, 4),
    )


def compare_datasets(
    dataset_a: Optional[Dataset],
    dataset_b: Optional[Dataset],
    policy: Optional[MatchPolicy] = None,
) -> DiffResult:
    if dataset_a is None or dataset_b is None:
        raise ComparisonError("both datasets are required for a comparison")
    policy = policy or MatchPolicy()

    if dataset_a.is_empty and dataset_b.is_empty:
        LOGGER.info("Compared %s to %s: both empty", dataset_a.name, dataset_b.name)
        return DiffResult()

    header_a = dataset_a.header
    header_b = dataset_b.header
    columns = match_columns(header_a, header_b)
    body_a = () if dataset_a.is_empty else dataset_a.body
    body_b = () if dataset_b.is_empty else dataset_b.body
    key = select_key(columns, body_a, body_b, policy)
    matched = match_rows(body_a, body_b, key)
    differences = diff_cells(matched.rows, columns)
    changes = build_changes(matched.rows, columns, differences)

    summary = summarize(
        columns,
        matched.rows,
        differences,
        changes,
        key,
        duplicate_headers=(count_duplicate_headers(header_a), count_duplicate_headers(header_b)),
        duplicate_keys=(matched.duplicates_a, matched.duplicates_b),
    )
    if summary.duplicate_headers_a or summary.duplicate_headers_b or summary.duplicate_keys_a or summary.duplicate_keys_b:
        LOGGER.warning(
            "Duplicates paired by order of occurrence in %s/%s: headers %d/%d, keys %d/%d",
            dataset_a.name, dataset_b.name,
            summary.duplicate_headers_a, summary.duplicate_headers_b,
            summary.duplicate_keys_a, summary.duplicate_keys_b,
        )
    LOGGER.info(
        "Compared %s to %s: rows +%d/-%d, columns +%d/-%d, cells changed %d",
        dataset_a.name, dataset_b.name,
        summary.added_rows, summary.deleted_rows,
        summary.added_columns, summary.deleted_columns,
        summary.cell_differences,
    )
    return DiffResult(
        columns=tuple(columns),
        rows=matched.rows,
        differences=tuple(differences),
        changes=tuple(changes),
        summary=summary,
        key=key,
    )

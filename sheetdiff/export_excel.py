from __future__ import annotations

import re
from typing import Any, List, Set

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .models import ADDED, DELETED, MATCHED, MODIFIED, DiffResult
from .values import cell_text, is_blank
from .workbook import WorkbookDiff

SUMMARY_HEADERS = [
    "Sheet_Old", "Sheet_New", "Status", "Similarity", "Match_Mode", "Key_Columns",
    "Rows_Matched", "Rows_Added", "Rows_Deleted", "Columns_Added", "Columns_Deleted",
    "Cells_Modified", "Cells_Added", "Cells_Removed", "Duplicate_Keys", "Duplicate_Headers",
]

CHANGE_HEADERS = [
    "Sheet", "Change_No", "Change_Type", "Row_Key", "Old_Row", "New_Row",
    "Column", "Old_Value", "New_Value",
]

FILLS = {
    ADDED: PatternFill("solid", fgColor="C6EFCE"),
    DELETED: PatternFill("solid", fgColor="FFC7CE"),
    MODIFIED: PatternFill("solid", fgColor="FFEB9C"),
}

ARROW = " → "
BLANK = "(blank)"

_INVALID_TITLE = re.compile(r"[\\/*?:\[\]]")


def _display(value: Any) -> str:
    return BLANK if is_blank(value) else cell_text(value)


def _append(ws: Worksheet, values: List[Any]) -> None:
    ws.append(values)
    for cell in ws[ws.max_row]:
        # source text is written as text, never as a live formula
        if isinstance(cell.value, str) and cell.value.startswith("="):
            cell.data_type = "s"


def _autosize(ws: Worksheet, max_width: int = 60) -> None:
    for i, col in enumerate(ws.columns, start=1):
        max_len = max((len(str(c.value)) for c in col if c.value is not None), default=0)
        ws.column_dimensions[get_column_letter(i)].width = min(max_len + 2, max_width)


def _format(ws: Worksheet, headers: List[str]) -> None:
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}1"
    wrap_cols = {"Old_Value", "New_Value", "Key_Columns"}
    for idx, header in enumerate(headers, start=1):
        if header in wrap_cols:
            for row in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
                row[0].alignment = Alignment(wrap_text=True, vertical="top")
    _autosize(ws)


def unified_grid(result: DiffResult) -> List[List[Any]]:
    """Two header rows (identifier with +/− marker, header text) then one line per unified row."""
    grid: List[List[Any]] = [
        ["Old", "New"] + [c.label for c in result.columns],
        ["", ""] + [c.header for c in result.columns],
    ]
    for row in result.rows:
        line: List[Any] = [row.index_a if row.index_a is not None else "-",
                           row.index_b if row.index_b is not None else "-"]
        for column in result.columns:
            diff = result.difference(row.key, column.key)
            if diff is not None:
                line.append(f"{_display(diff.old_value)}{ARROW}{_display(diff.new_value)}")
            elif column.kind == DELETED or row.kind == DELETED:
                line.append(_display(row.value_a(column)))
            else:
                line.append(_display(row.value_b(column)))
        grid.append(line)
    return grid


def _cell_kind(result: DiffResult, row_idx: int, col_idx: int) -> str:
    row = result.rows[row_idx]
    column = result.columns[col_idx]
    if result.difference(row.key, column.key) is not None:
        return MODIFIED
    if column.kind != MATCHED:
        return column.kind
    return row.kind


def _sheet_title(name: str, taken: Set[str]) -> str:
    base = _INVALID_TITLE.sub("_", name)[:28] or "Sheet"
    title = base
    n = 2
    while title.lower() in taken:
        title = f"{base[:25]}_{n}"
        n += 1
    taken.add(title.lower())
    return title


def _write_unified(ws: Worksheet, result: DiffResult) -> None:
    for line in unified_grid(result):
        _append(ws, line)
    bold = Font(bold=True)
    for col_idx, column in enumerate(result.columns, start=3):
        for header_row in (1, 2):
            cell = ws.cell(row=header_row, column=col_idx)
            cell.font = bold
            if column.kind in FILLS:
                cell.fill = FILLS[column.kind]
    for row_idx in range(len(result.rows)):
        for col_idx in range(len(result.columns)):
            kind = _cell_kind(result, row_idx, col_idx)
            if kind in FILLS:
                ws.cell(row=row_idx + 3, column=col_idx + 3).fill = FILLS[kind]
    ws.freeze_panes = "C3"
    _autosize(ws)


def write_workbook(path: str, diff: WorkbookDiff) -> None:
    wb = Workbook()
    summary = wb.active
    summary.title = "Summary"
    summary.append(SUMMARY_HEADERS)
    for sheet in diff.sheets:
        s = sheet.result.summary
        _append(summary, [
            sheet.name_a or "", sheet.name_b or "", sheet.status, round(sheet.similarity, 2),
            s.match_mode, ", ".join(s.key_headers), s.matched_rows, s.added_rows, s.deleted_rows,
            s.added_columns, s.deleted_columns, s.modified_cells, s.added_cells, s.removed_cells,
            s.duplicate_keys_a + s.duplicate_keys_b, s.duplicate_headers_a + s.duplicate_headers_b,
        ])

    changes = wb.create_sheet("Changes")
    changes.append(CHANGE_HEADERS)
    for sheet in diff.sheets:
        for change in sheet.result.changes:
            _append(changes, [
                sheet.display_name, change.position + 1, change.kind, change.row_key,
                change.index_a if change.index_a is not None else "",
                change.index_b if change.index_b is not None else "",
                change.header or "",
                "" if change.is_row_change else _display(change.old_value),
                "" if change.is_row_change else _display(change.new_value),
            ])

    taken = {"summary", "changes"}
    for sheet in diff.sheets:
        if not sheet.result.columns:
            continue
        _write_unified(wb.create_sheet(_sheet_title(sheet.name_b or sheet.name_a or "", taken)), sheet.result)

    _format(summary, SUMMARY_HEADERS)
    _format(changes, CHANGE_HEADERS)
    wb.save(path)

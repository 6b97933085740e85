from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .identify import column_letter
from .models import Cell, Dataset, Row
from .values import is_blank
from .workbook import Workbook

LOGGER = logging.getLogger(__name__)

WORKBOOK_SUFFIXES = {".xlsx", ".xlsm", ".xltx", ".xltm"}


class WorkbookLoadError(Exception):
    pass


def _trim_trailing_blank_rows(grid: List[Sequence[Cell]]) -> List[Sequence[Cell]]:
    end = len(grid)
    while end > 0 and all(is_blank(v) for v in grid[end - 1]):
        end -= 1
    return grid[:end]


def _used_width(grid: List[Sequence[Cell]]) -> int:
    width = 0
    for line in grid:
        for idx in range(len(line), 0, -1):
            if not is_blank(line[idx - 1]):
                width = max(width, idx)
                break
    return width


def rows_from_grid(grid: Iterable[Sequence[Cell]]) -> List[Row]:
    lines = _trim_trailing_blank_rows([tuple(line) for line in grid])
    width = _used_width(lines)
    rows: List[Row] = []
    for line in lines:
        padded = list(line[:width]) + [None] * (width - len(line))
        rows.append({column_letter(i): value for i, value in enumerate(padded, start=1)})
    return rows


def load_workbook(path: str, sheet_names: Optional[Iterable[str]] = None) -> Workbook:
    source = Path(path)
    if not source.exists():
        raise WorkbookLoadError(f"workbook not found: {path}")
    if source.suffix.lower() not in WORKBOOK_SUFFIXES:
        raise WorkbookLoadError(f"unsupported workbook type: {source.suffix or '(none)'}")
    try:
        # data_only: cached computed values, never formula text
        wb = openpyxl.load_workbook(str(source), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError, ValueError) as exc:
        raise WorkbookLoadError(f"unable to read {path}: {exc}") from exc

    wanted = set(sheet_names) if sheet_names is not None else None
    book = Workbook(name=source.name)
    try:
        for ws in wb.worksheets:
            if wanted is not None and ws.title not in wanted:
                continue
            rows = rows_from_grid(ws.iter_rows(values_only=True))
            book.sheets[ws.title] = Dataset(name=ws.title, rows=tuple(rows))
            LOGGER.debug("Loaded %s!%s: %d rows", source.name, ws.title, len(rows))
    finally:
        wb.close()
    LOGGER.info("Loaded %s: %d sheets", source.name, len(book.sheets))
    return book

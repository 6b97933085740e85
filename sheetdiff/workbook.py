from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from .diff_tables import compare_datasets
from .models import ADDED, DELETED, Dataset, DiffResult, MatchPolicy

LOGGER = logging.getLogger(__name__)

UNCHANGED = "Unchanged"
MODIFIED_SHEET = "Modified"
RENAMED = "Renamed"


@dataclass
class Workbook:
    name: str
    sheets: Dict[str, Dataset] = field(default_factory=dict)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets)


@dataclass
class SheetPair:
    name_a: Optional[str]
    name_b: Optional[str]
    similarity: float = 1.0

    @property
    def status(self) -> str:
        if self.name_a is None:
            return ADDED
        if self.name_b is None:
            return DELETED
        if self.name_a != self.name_b:
            return RENAMED
        return UNCHANGED


@dataclass
class SheetDiff:
    name_a: Optional[str]
    name_b: Optional[str]
    status: str
    similarity: float
    result: DiffResult

    @property
    def display_name(self) -> str:
        if self.status == RENAMED:
            return f"{self.name_a} → {self.name_b}"
        return self.name_b or self.name_a or ""


@dataclass
class WorkbookDiff:
    name_a: str
    name_b: str
    sheets: List[SheetDiff] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(s.status == status for s in self.sheets)

    @property
    def total_sheets(self) -> int:
        return len(self.sheets)

    @property
    def modified_sheets(self) -> int:
        return self._count(MODIFIED_SHEET)

    @property
    def unchanged_sheets(self) -> int:
        return self._count(UNCHANGED)

    @property
    def added_sheets(self) -> int:
        return self._count(ADDED)

    @property
    def deleted_sheets(self) -> int:
        return self._count(DELETED)

    @property
    def renamed_sheets(self) -> int:
        return self._count(RENAMED)

    def sheet(self, name: str) -> Optional[SheetDiff]:
        return next((s for s in self.sheets if name in (s.name_a, s.name_b)), None)


def name_similarity(a: str, b: str) -> float:
    return fuzz.ratio(a.strip().lower(), b.strip().lower()) / 100.0


def pair_sheets(names_a: Sequence[str], names_b: Sequence[str], policy: Optional[MatchPolicy] = None) -> List[SheetPair]:
    policy = policy or MatchPolicy()
    set_b = set(names_b)
    pairs: List[SheetPair] = [SheetPair(n, n) for n in names_a if n in set_b]
    left_a = [n for n in names_a if n not in set_b]
    left_b = [n for n in names_b if n not in set(names_a)]

    candidates: List[Tuple[float, int, int]] = []
    for i, a in enumerate(left_a):
        for j, b in enumerate(left_b):
            score = name_similarity(a, b)
            if score >= policy.rename_similarity:
                candidates.append((score, i, j))
    # highest similarity first; ties resolved by sheet order
    candidates.sort(key=lambda c: (-c[0], c[1], c[2]))
    used_a, used_b = set(), set()
    for score, i, j in candidates:
        if i in used_a or j in used_b:
            continue
        used_a.add(i)
        used_b.add(j)
        pairs.append(SheetPair(left_a[i], left_b[j], round(score, 4)))
        LOGGER.debug("Sheet renamed: %s -> %s (%.2f)", left_a[i], left_b[j], score)

    pairs.extend(SheetPair(None, b, 0.0) for j, b in enumerate(left_b) if j not in used_b)
    pairs.extend(SheetPair(a, None, 0.0) for i, a in enumerate(left_a) if i not in used_a)
    return pairs


def compare_workbooks(book_a: Workbook, book_b: Workbook, policy: Optional[MatchPolicy] = None) -> WorkbookDiff:
    policy = policy or MatchPolicy()
    out = WorkbookDiff(book_a.name, book_b.name)
    for pair in pair_sheets(book_a.sheet_names, book_b.sheet_names, policy):
        dataset_a = book_a.sheets[pair.name_a] if pair.name_a is not None else Dataset(pair.name_b or "")
        dataset_b = book_b.sheets[pair.name_b] if pair.name_b is not None else Dataset(pair.name_a or "")
        result = compare_datasets(dataset_a, dataset_b, policy)
        status = pair.status
        if status == UNCHANGED and result.has_changes:
            status = MODIFIED_SHEET
        out.sheets.append(SheetDiff(pair.name_a, pair.name_b, status, pair.similarity, result))

    LOGGER.info(
        "Compared %s to %s: %d sheets (%d modified, %d added, %d deleted, %d renamed)",
        book_a.name, book_b.name, out.total_sheets, out.modified_sheets,
        out.added_sheets, out.deleted_sheets, out.renamed_sheets,
    )
    return out

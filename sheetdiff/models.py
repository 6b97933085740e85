from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .identify import column_letter, sort_column_ids

MATCHED = "Matched"
ADDED = "Added"
DELETED = "Deleted"

REMOVED = "Removed"
MODIFIED = "Modified"

Cell = Any
Row = Dict[str, Cell]
Config = Dict[str, Any]


class ComparisonError(ValueError):
    """Raised when a comparison is requested without both datasets."""


@dataclass(frozen=True)
class Dataset:
    name: str
    rows: Tuple[Row, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))

    @classmethod
    def from_grid(cls, name: str, grid: Sequence[Sequence[Cell]]) -> "Dataset":
        rows = [{column_letter(i): value for i, value in enumerate(line, start=1)} for line in grid]
        return cls(name=name, rows=tuple(rows))

    @property
    def column_ids(self) -> List[str]:
        seen = set()
        for row in self.rows:
            seen.update(row.keys())
        return sort_column_ids(seen)

    @property
    def header(self) -> Row:
        first = self.rows[0] if self.rows else {}
        return {cid: first.get(cid) for cid in self.column_ids}

    @property
    def body(self) -> Tuple[Row, ...]:
        return self.rows[1:]

    @property
    def is_empty(self) -> bool:
        return not self.rows or not self.column_ids


@dataclass(frozen=True)
class UnifiedColumn:
    key: str
    header: str
    column_a: Optional[str]
    column_b: Optional[str]
    kind: str

    @property
    def label(self) -> str:
        if self.kind == ADDED:
            return f"+{self.column_b}"
        if self.kind == DELETED:
            return f"−{self.column_a}"
        return self.column_b or self.column_a or ""


@dataclass(frozen=True)
class UnifiedRow:
    key: str
    row_a: Optional[Row]
    index_a: Optional[int]
    row_b: Optional[Row]
    index_b: Optional[int]
    kind: str

    @property
    def position(self) -> int:
        return self.index_a if self.index_a is not None else (self.index_b or 0)

    def value_a(self, column: UnifiedColumn) -> Cell:
        if self.row_a is None or column.column_a is None:
            return None
        return self.row_a.get(column.column_a)

    def value_b(self, column: UnifiedColumn) -> Cell:
        if self.row_b is None or column.column_b is None:
            return None
        return self.row_b.get(column.column_b)


@dataclass(frozen=True)
class CellDifference:
    row_key: str
    index_a: Optional[int]
    index_b: Optional[int]
    column_key: str
    header: str
    old_value: Cell
    new_value: Cell
    change: str


@dataclass(frozen=True)
class Change:
    position: int
    kind: str
    row_key: str
    index_a: Optional[int]
    index_b: Optional[int]
    column_key: Optional[str] = None
    header: Optional[str] = None
    old_value: Cell = None
    new_value: Cell = None

    @property
    def is_row_change(self) -> bool:
        return self.column_key is None


@dataclass(frozen=True)
class KeySelection:
    columns: Tuple[UnifiedColumn, ...] = ()
    score: float = 0.0
    strategy: str = "positional"

    @property
    def headers(self) -> List[str]:
        return [column.header for column in self.columns]

    @property
    def is_positional(self) -> bool:
        return not self.columns


@dataclass(frozen=True)
class DiffSummary:
    total_rows: int = 0
    total_columns: int = 0
    matched_rows: int = 0
    added_rows: int = 0
    deleted_rows: int = 0
    changed_rows: int = 0
    matched_columns: int = 0
    added_columns: int = 0
    deleted_columns: int = 0
    modified_cells: int = 0
    added_cells: int = 0
    removed_cells: int = 0
    total_changes: int = 0
    duplicate_headers_a: int = 0
    duplicate_headers_b: int = 0
    duplicate_keys_a: int = 0
    duplicate_keys_b: int = 0
    match_mode: str = "positional"
    key_headers: Tuple[str, ...] = ()
    key_score: float = 0.0

    @property
    def cell_differences(self) -> int:
        return self.modified_cells + self.added_cells + self.removed_cells


@dataclass(frozen=True)
class DiffResult:
    columns: Tuple[UnifiedColumn, ...] = ()
    rows: Tuple[UnifiedRow, ...] = ()
    differences: Tuple[CellDifference, ...] = ()
    changes: Tuple[Change, ...] = ()
    summary: DiffSummary = field(default_factory=DiffSummary)
    key: KeySelection = field(default_factory=KeySelection)
    _index: Dict[Tuple[str, str], CellDifference] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {(d.row_key, d.column_key): d for d in self.differences})

    def difference(self, row_key: str, column_key: str) -> Optional[CellDifference]:
        return self._index.get((row_key, column_key))

    def column(self, key: str) -> Optional[UnifiedColumn]:
        return next((c for c in self.columns if c.key == key), None)

    def row(self, key: str) -> Optional[UnifiedRow]:
        return next((r for r in self.rows if r.key == key), None)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes) or self.summary.added_columns > 0 or self.summary.deleted_columns > 0

    @property
    def is_identical(self) -> bool:
        return not self.has_changes


@dataclass(frozen=True)
class MatchPolicy:
    key_uniqueness: float = 0.9
    composite_uniqueness: float = 0.95
    max_key_columns: int = 3
    key_headers: Tuple[str, ...] = ()
    rename_similarity: float = 0.6

    @classmethod
    def from_config(cls, config: Optional[Config]) -> "MatchPolicy":
        matching = (config or {}).get("matching") or {}
        defaults = cls()
        return cls(
            key_uniqueness=float(matching.get("key_uniqueness", defaults.key_uniqueness)),
            composite_uniqueness=float(matching.get("composite_uniqueness", defaults.composite_uniqueness)),
            max_key_columns=int(matching.get("max_key_columns", defaults.max_key_columns)),
            key_headers=tuple(str(h).strip() for h in matching.get("key_headers") or ()),
            rename_similarity=float(matching.get("rename_similarity", defaults.rename_similarity)),
        )

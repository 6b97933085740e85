from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import MATCHED, KeySelection, MatchPolicy, Row, UnifiedColumn
from .values import cell_text, is_blank

LOGGER = logging.getLogger(__name__)

KEY_SEPARATOR = "|"


def uniqueness(values: Iterable[str]) -> float:
    present = [v for v in values if v]
    if not present:
        return 0.0
    return len(set(present)) / len(present)


def row_key(row: Row, columns: Sequence[UnifiedColumn], side: str) -> str:
    parts: List[str] = []
    for column in columns:
        cid = column.column_a if side == "a" else column.column_b
        value = row.get(cid) if cid else None
        parts.append("" if is_blank(value) else cell_text(value))
    if not any(parts):
        return ""
    return KEY_SEPARATOR.join(parts)


def key_uniqueness(columns: Sequence[UnifiedColumn], body_a: Sequence[Row], body_b: Sequence[Row]) -> float:
    score_a = uniqueness(row_key(row, columns, "a") for row in body_a)
    score_b = uniqueness(row_key(row, columns, "b") for row in body_b)
    return (score_a + score_b) / 2


def coverage(columns: Sequence[UnifiedColumn], body_a: Sequence[Row], body_b: Sequence[Row]) -> float:
    def side(body: Sequence[Row], name: str) -> float:
        if not body:
            return 0.0
        return sum(1 for row in body if row_key(row, columns, name)) / len(body)

    return (side(body_a, "a") + side(body_b, "b")) / 2


def rank_columns(
    columns: Sequence[UnifiedColumn], body_a: Sequence[Row], body_b: Sequence[Row]
) -> List[Tuple[UnifiedColumn, float]]:
    scored = [
        (c, key_uniqueness([c], body_a, body_b), coverage([c], body_a, body_b))
        for c in columns
        if c.kind == MATCHED
    ]
    # equal scores prefer fewer blank cells, then unified column order (sorted() is stable)
    scored.sort(key=lambda item: (item[1], item[2]), reverse=True)
    return [(c, score) for c, score, _ in scored]


def _explicit_key(columns: Sequence[UnifiedColumn], headers: Sequence[str]) -> Optional[List[UnifiedColumn]]:
    by_header = {c.header: c for c in columns if c.kind == MATCHED}
    chosen = [by_header.get(h) for h in headers]
    if not chosen or any(c is None for c in chosen):
        return None
    return chosen  # type: ignore[return-value]


def select_key(
    columns: Sequence[UnifiedColumn],
    body_a: Sequence[Row],
    body_b: Sequence[Row],
    policy: Optional[MatchPolicy] = None,
) -> KeySelection:
    policy = policy or MatchPolicy()

    if policy.key_headers:
        explicit = _explicit_key(columns, policy.key_headers)
        if explicit is not None:
            score = key_uniqueness(explicit, body_a, body_b)
            LOGGER.debug("Key columns forced by config: %s (%.3f)", list(policy.key_headers), score)
            return KeySelection(tuple(explicit), score, "explicit")
        LOGGER.warning("Configured key headers %s are not present on both sides; selecting automatically", list(policy.key_headers))

    ranked = rank_columns(columns, body_a, body_b)
    if not ranked:
        return KeySelection()

    top, top_score = ranked[0]
    if top_score > policy.key_uniqueness:
        LOGGER.debug("Key column: %s (%.3f)", top.header, top_score)
        return KeySelection((top,), top_score, "single")

    best_score = top_score
    for size in range(2, min(policy.max_key_columns, len(ranked)) + 1):
        candidate = [c for c, _ in ranked[:size]]
        score = key_uniqueness(candidate, body_a, body_b)
        best_score = max(best_score, score)
        if score > policy.composite_uniqueness:
            LOGGER.debug("Composite key: %s (%.3f)", [c.header for c in candidate], score)
            return KeySelection(tuple(candidate), score, "composite")

    LOGGER.debug("No reliable key column (best %.3f); using positional matching", best_score)
    return KeySelection(score=best_score)

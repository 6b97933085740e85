from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import Iterable, Optional

import yaml

from .diff_tables import compare_datasets
from .export_excel import write_workbook
from .ingest import WorkbookLoadError, load_workbook
from .models import Config, MatchPolicy
from .workbook import MODIFIED_SHEET, RENAMED, UNCHANGED, SheetDiff, WorkbookDiff, compare_workbooks, name_similarity

LOGGER = logging.getLogger(__name__)


def load_config(path: Optional[str]) -> Config:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


def build_policy(config: Config, key_headers: Optional[Iterable[str]] = None) -> MatchPolicy:
    policy = MatchPolicy.from_config(config)
    if key_headers:
        policy = dataclasses.replace(policy, key_headers=tuple(h.strip() for h in key_headers))
    return policy


def compare_selected_sheets(old_path: str, new_path: str, sheet_old: str, sheet_new: str, policy: MatchPolicy) -> WorkbookDiff:
    book_a = load_workbook(old_path, sheet_names=[sheet_old])
    book_b = load_workbook(new_path, sheet_names=[sheet_new])
    if sheet_old not in book_a.sheets:
        raise SystemExit(f"sheet {sheet_old!r} not found in {old_path}")
    if sheet_new not in book_b.sheets:
        raise SystemExit(f"sheet {sheet_new!r} not found in {new_path}")
    result = compare_datasets(book_a.sheets[sheet_old], book_b.sheets[sheet_new], policy)
    if sheet_old != sheet_new:
        status, similarity = RENAMED, name_similarity(sheet_old, sheet_new)
    else:
        status, similarity = (MODIFIED_SHEET if result.has_changes else UNCHANGED), 1.0
    return WorkbookDiff(book_a.name, book_b.name, [SheetDiff(sheet_old, sheet_new, status, similarity, result)])


def run(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Spreadsheet differ (column/row reorder aware)")
    parser.add_argument("--old", required=True, help="Original workbook (.xlsx)")
    parser.add_argument("--new", required=True, help="Revised workbook (.xlsx)")
    parser.add_argument("--out", required=True, help="Report workbook to write")
    parser.add_argument("--config", help="YAML config with a matching: section")
    parser.add_argument("--sheet-old", help="Compare only this sheet of --old")
    parser.add_argument("--sheet-new", help="Compare only this sheet of --new (defaults to --sheet-old)")
    parser.add_argument("--key", action="append", help="Header to use as row key; can repeat")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(list(argv) if argv else None)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    policy = build_policy(load_config(args.config), args.key)

    try:
        if args.sheet_old or args.sheet_new:
            sheet_old = args.sheet_old or args.sheet_new
            sheet_new = args.sheet_new or args.sheet_old
            diff = compare_selected_sheets(args.old, args.new, sheet_old, sheet_new, policy)
        else:
            diff = compare_workbooks(load_workbook(args.old), load_workbook(args.new), policy)
    except WorkbookLoadError as exc:
        raise SystemExit(str(exc)) from exc

    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    write_workbook(args.out, diff)
    changes = sum(len(s.result.changes) for s in diff.sheets)
    LOGGER.info("Wrote %s (sheets=%d, changes=%d)", args.out, diff.total_sheets, changes)
    return 0


if __name__ == "__main__":
    raise SystemExit(run())

import datetime as dt
import os
import tempfile
import unittest

import openpyxl

from sheetdiff.diff_tables import compare_datasets
from sheetdiff.export_excel import write_workbook, unified_grid
from sheetdiff.ingest import WorkbookLoadError, load_workbook, rows_from_grid
from sheetdiff.models import Dataset
from sheetdiff.workbook import Workbook, compare_workbooks


def _save(path, sheets):
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, grid in sheets.items():
        ws = wb.create_sheet(title)
        for line in grid:
            ws.append(line)
    wb.save(path)


class RowsFromGridTests(unittest.TestCase):
    def test_trims_trailing_blank_rows_and_columns(self):
        rows = rows_from_grid([("ID", "Name", None), (1, "ann", "  "), (None, None, None), ("", None, None)])
        self.assertEqual(rows, [{"A": "ID", "B": "Name"}, {"A": 1, "B": "ann"}])

    def test_pads_short_rows(self):
        rows = rows_from_grid([("ID", "Name", "Team"), (1,)])
        self.assertEqual(rows[1], {"A": 1, "B": None, "C": None})

    def test_inner_blank_rows_are_kept(self):
        rows = rows_from_grid([("ID",), (None,), (2,)])
        self.assertEqual(len(rows), 3)


class LoadWorkbookTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_reads_values_and_types(self):
        path = os.path.join(self.tmp, "book.xlsx")
        _save(path, {
            "Data": [["ID", "Due"], [1, dt.datetime(2024, 1, 5)], [None, None]],
            "Notes": [["Text"], ["hello"]],
        })
        book = load_workbook(path)
        self.assertEqual(book.name, "book.xlsx")
        self.assertEqual(book.sheet_names, ["Data", "Notes"])
        data = book.sheets["Data"]
        self.assertEqual(len(data.rows), 2)
        self.assertEqual(data.rows[1]["A"], 1)
        self.assertEqual(data.rows[1]["B"], dt.datetime(2024, 1, 5))

    def test_selected_sheets_only(self):
        path = os.path.join(self.tmp, "book.xlsx")
        _save(path, {"Data": [["ID"], [1]], "Notes": [["Text"], ["x"]]})
        self.assertEqual(load_workbook(path, sheet_names=["Notes"]).sheet_names, ["Notes"])

    def test_missing_file(self):
        with self.assertRaises(WorkbookLoadError):
            load_workbook(os.path.join(self.tmp, "nope.xlsx"))

    def test_unsupported_suffix(self):
        path = os.path.join(self.tmp, "data.csv")
        with open(path, "w", encoding="utf-8") as file:
            file.write("ID\n1\n")
        with self.assertRaises(WorkbookLoadError):
            load_workbook(path)

    def test_corrupt_workbook(self):
        path = os.path.join(self.tmp, "broken.xlsx")
        with open(path, "wb") as file:
            file.write(b"not a zip archive")
        with self.assertRaises(WorkbookLoadError):
            load_workbook(path)


class ExportTests(unittest.TestCase):
    def test_unified_grid_marks_changes(self):
        a = Dataset.from_grid("A", [["Name", "Email", "Phone"], ["John", "john@old.com", 111]])
        b = Dataset.from_grid("B", [["Name", "Phone", "Email", "Department"], ["John", 111, "john@new.com", "Sales"]])
        grid = unified_grid(compare_datasets(a, b))
        self.assertEqual(grid, [
            ["Old", "New", "A", "B", "C", "+D"],
            ["", "", "Name", "Phone", "Email", "Department"],
            [2, 2, "John", "111", "john@old.com → john@new.com", "Sales"],
        ])

    def test_unified_grid_deleted_row_shows_old_values(self):
        a = Dataset.from_grid("A", [["ID", "V"], ["x", 1], ["k", 2]])
        b = Dataset.from_grid("B", [["ID", "V"], ["k", 2]])
        grid = unified_grid(compare_datasets(a, b))
        self.assertEqual(grid[2], [2, "-", "x", "1"])
        self.assertEqual(grid[3], [3, 2, "k", "2"])

    def test_formula_like_text_is_written_as_text(self):
        book_a = Workbook("a.xlsx", {"Data": Dataset.from_grid("Data", [["ID", "Note"], [1, "=A1+1"]])})
        book_b = Workbook("b.xlsx", {"Data": Dataset.from_grid("Data", [["ID", "Note"], [1, "=A1+2"]])})
        with tempfile.TemporaryDirectory() as tmp:
            out_path = os.path.join(tmp, "report.xlsx")
            write_workbook(out_path, compare_workbooks(book_a, book_b))

            report = openpyxl.load_workbook(out_path)
            unified = report["Data"]["D3"]
            self.assertEqual(unified.value, "=A1+1 → =A1+2")
            self.assertEqual(unified.data_type, "s")
            old_value = report["Changes"]["H2"]
            self.assertEqual(old_value.value, "=A1+1")
            self.assertEqual(old_value.data_type, "s")

    def test_write_workbook(self):
        with tempfile.TemporaryDirectory() as tmp:
            old_path = os.path.join(tmp, "old.xlsx")
            new_path = os.path.join(tmp, "new.xlsx")
            out_path = os.path.join(tmp, "report.xlsx")
            _save(old_path, {"Data": [["ID", "V"], [1, "a"], [2, "b"]]})
            _save(new_path, {"Data": [["ID", "V"], [2, "b"], [1, "z"]]})
            diff = compare_workbooks(load_workbook(old_path), load_workbook(new_path))
            write_workbook(out_path, diff)

            report = openpyxl.load_workbook(out_path)
            self.assertEqual(report.sheetnames, ["Summary", "Changes", "Data"])
            summary = list(report["Summary"].iter_rows(min_row=2, values_only=True))
            self.assertEqual(summary[0][:3], ("Data", "Data", "Modified"))
            changes = list(report["Changes"].iter_rows(min_row=2, values_only=True))
            self.assertEqual(changes, [("Data", 1, "Modified", "1", 2, 3, "V", "a", "z")])
            self.assertEqual(report["Data"]["D3"].value, "a → z")


if __name__ == "__main__":
    unittest.main()

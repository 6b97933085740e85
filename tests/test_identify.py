import unittest

from openpyxl.utils import get_column_letter

from sheetdiff.identify import column_index, column_letter, count_duplicate_headers, distinct_key, header_text, sort_column_ids


class IdentifyTests(unittest.TestCase):
    def test_column_letter_sequence(self):
        self.assertEqual(column_letter(1), "A")
        self.assertEqual(column_letter(26), "Z")
        self.assertEqual(column_letter(27), "AA")
        self.assertEqual(column_letter(28), "AB")
        self.assertEqual(column_letter(52), "AZ")
        self.assertEqual(column_letter(53), "BA")
        self.assertEqual(column_letter(702), "ZZ")
        self.assertEqual(column_letter(703), "AAA")

    def test_column_letter_agrees_with_openpyxl(self):
        for index in range(1, 2000):
            self.assertEqual(column_letter(index), get_column_letter(index))

    def test_column_index_is_inverse(self):
        for index in (1, 26, 27, 702, 703, 16384):
            self.assertEqual(column_index(column_letter(index)), index)
        self.assertEqual(column_index(" ab "), 28)

    def test_invalid_identifiers_rejected(self):
        with self.assertRaises(ValueError):
            column_letter(0)
        with self.assertRaises(ValueError):
            column_index("A1")

    def test_sort_column_ids_is_positional(self):
        self.assertEqual(sort_column_ids(["AA", "B", "Z", "A"]), ["A", "B", "Z", "AA"])
        self.assertEqual(sort_column_ids(["AB", "BA", "Z"]), ["Z", "AB", "BA"])

    def test_header_text_trims(self):
        self.assertEqual(header_text("  Email "), "Email")
        self.assertEqual(header_text(None), "")
        self.assertEqual(header_text(2024), "2024")
        self.assertEqual(header_text(2024.0), "2024")
        self.assertEqual(header_text("   "), "")

    def test_distinct_key_skips_taken_suffixes(self):
        taken = {"Val", "Val #2"}
        self.assertEqual(distinct_key("Val", taken, 1), "Val #3")
        self.assertEqual(distinct_key("Val", taken, 1), "Val #4")
        self.assertEqual(distinct_key("New", taken), "New")
        self.assertEqual(distinct_key("New", taken), "New #2")
        self.assertIn("Val #3", taken)

    def test_count_duplicate_headers_ignores_blanks(self):
        header = {"A": "Name", "B": "Name ", "C": "", "D": None, "E": "Name", "F": "Email"}
        self.assertEqual(count_duplicate_headers(header), 2)
        self.assertEqual(count_duplicate_headers({"A": "", "B": None}), 0)


if __name__ == "__main__":
    unittest.main()

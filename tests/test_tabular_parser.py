from __future__ import annotations

import io
import unittest

from openpyxl import Workbook

from app.domain.errors import EmptyFileError, SpreadsheetDecodeError, UnsupportedFileFormatError
from app.parsing.tabular_parser import detect_delimiter, format_cell, parse_tabular


def _xlsx_bytes(rows: list[list[object]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestDelimiterDetection(unittest.TestCase):
    def test_picks_delimiter_with_most_columns(self) -> None:
        self.assertEqual(detect_delimiter("Shape;Weight;Color"), ";")
        self.assertEqual(detect_delimiter("Shape\tWeight\tColor"), "\t")
        self.assertEqual(detect_delimiter("Shape,Weight,Color"), ",")

    def test_single_column_header_defaults_to_comma(self) -> None:
        self.assertEqual(detect_delimiter("Shape"), ",")


class TestDelimitedParsing(unittest.TestCase):
    def test_parses_comma_separated_rows(self) -> None:
        table = parse_tabular(b"Stock #,Shape,Carat\nA1,RB,1.05\nA2,PR,0.90\n", "inventory.csv")

        self.assertEqual(table.headers, ("Stock #", "Shape", "Carat"))
        self.assertEqual(table.file_kind, "csv")
        self.assertEqual(table.delimiter, ",")
        self.assertEqual(len(table.rows), 2)
        self.assertEqual(table.rows[0].row_number, 1)
        self.assertEqual(table.rows[1].values["Carat"], "0.90")

    def test_semicolon_export_with_decimal_commas(self) -> None:
        table = parse_tabular(b"Shape;Weight\nRB;1,05\n", "export.txt")

        self.assertEqual(table.delimiter, ";")
        self.assertEqual(table.rows[0].values, {"Shape": "RB", "Weight": "1,05"})

    def test_tab_separated_file_kind(self) -> None:
        table = parse_tabular(b"Shape\tWeight\nRB\t1.05\n", "export.tsv")

        self.assertEqual(table.file_kind, "tsv")
        self.assertEqual(table.delimiter, "\t")

    def test_short_rows_are_padded_and_long_rows_truncated(self) -> None:
        table = parse_tabular(b"a,b,c\n1\n1,2,3,4\n", "inventory.csv")

        self.assertEqual(table.rows[0].values, {"a": "1", "b": "", "c": ""})
        self.assertEqual(table.rows[1].values, {"a": "1", "b": "2", "c": "3"})

    def test_blank_rows_are_skipped_but_keep_their_number(self) -> None:
        table = parse_tabular(b"a,b\n1,2\n\n,\n3,4\n", "inventory.csv")

        self.assertEqual([row.row_number for row in table.rows], [1, 4])

    def test_duplicate_headers_are_disambiguated(self) -> None:
        table = parse_tabular(b"Color,Color\nG,H\n", "inventory.csv")

        self.assertEqual(table.headers, ("Color", "Color (2)"))
        self.assertEqual(table.rows[0].values["Color (2)"], "H")

    def test_trailing_blank_headers_are_dropped(self) -> None:
        table = parse_tabular(b"Shape,Weight,,\nRB,1.05,,\n", "inventory.csv")

        self.assertEqual(table.headers, ("Shape", "Weight"))

    def test_utf8_bom_is_stripped(self) -> None:
        table = parse_tabular(b"\xef\xbb\xbfShape,Weight\nRB,1\n", "inventory.csv")

        self.assertEqual(table.headers[0], "Shape")
        self.assertEqual(table.encoding, "utf-8-sig")

    def test_hebrew_windows_encoding_fallback(self) -> None:
        content = "צורה,משקל\nעגול,1.05\n".encode("cp1255")

        table = parse_tabular(content, "inventory.csv")

        self.assertEqual(table.encoding, "cp1255")
        self.assertEqual(table.headers, ("צורה", "משקל"))

    def test_header_only_file_is_empty(self) -> None:
        with self.assertRaises(EmptyFileError) as ctx:
            parse_tabular(b"Shape,Weight\n", "inventory.csv")
        self.assertEqual(ctx.exception.code, "empty_file")

    def test_zero_byte_file_is_empty(self) -> None:
        with self.assertRaises(EmptyFileError):
            parse_tabular(b"", "inventory.csv")

    def test_unsupported_extension(self) -> None:
        with self.assertRaises(UnsupportedFileFormatError) as ctx:
            parse_tabular(b"%PDF-1.4", "inventory.pdf")
        self.assertEqual(ctx.exception.to_dict()["code"], "unsupported_format")


class TestSpreadsheetParsing(unittest.TestCase):
    def test_reads_first_worksheet_of_xlsx(self) -> None:
        content = _xlsx_bytes(
            [
                ["Stock #", "Carat", "Color"],
                ["A1", 1.5, "G"],
                [None, None, None],
                ["A2", 2, "H"],
            ]
        )

        table = parse_tabular(content, "inventory.xlsx")

        self.assertEqual(table.file_kind, "xlsx")
        self.assertIsNone(table.delimiter)
        self.assertEqual(table.headers, ("Stock #", "Carat", "Color"))
        self.assertEqual([row.row_number for row in table.rows], [1, 3])
        self.assertEqual(table.rows[0].values["Carat"], "1.5")
        self.assertEqual(table.rows[1].values["Carat"], "2")

    def test_corrupt_xlsx_raises_decode_error(self) -> None:
        with self.assertRaises(SpreadsheetDecodeError):
            parse_tabular(b"definitely not a zip archive", "inventory.xlsx")

    def test_corrupt_xls_raises_decode_error(self) -> None:
        with self.assertRaises(SpreadsheetDecodeError):
            parse_tabular(b"definitely not a workbook", "inventory.xls")

    def test_header_only_workbook_is_empty(self) -> None:
        with self.assertRaises(EmptyFileError):
            parse_tabular(_xlsx_bytes([["Shape", "Carat"]]), "inventory.xlsx")


class TestFormatCell(unittest.TestCase):
    def test_whole_floats_lose_trailing_zero(self) -> None:
        self.assertEqual(format_cell(3.0), "3")
        self.assertEqual(format_cell(1.05), "1.05")

    def test_empty_and_text_cells(self) -> None:
        self.assertEqual(format_cell(None), "")
        self.assertEqual(format_cell("  RB "), "RB")


if __name__ == "__main__":
    unittest.main()

import math

import pandas as pd
import pytest

from portfolio_risk.errors import FormatError, ValidationError
from portfolio_risk.ingestion.cells import (
    cell_text,
    is_blank_row,
    normalize_header,
    parse_number,
)
from portfolio_risk.ingestion.reader import read_delimited, read_grid, read_spreadsheet


class TestParseNumber:
    def test_thousands_separator(self):
        assert parse_number("1,234.50") == 1234.5

    def test_currency_and_whitespace(self):
        assert parse_number("₹ 99") == 99
        assert parse_number("$1,000") == 1000

    def test_parenthesized_negative(self):
        assert parse_number("(12.5)") == -12.5

    def test_percent(self):
        assert parse_number("12%") == 12

    def test_unparsable(self):
        assert parse_number("abc") is None
        assert parse_number("") is None
        assert parse_number(None) is None
        assert parse_number("-") is None
        assert parse_number("inf") is None


class TestCells:
    def test_normalize_header(self):
        assert normalize_header("Avg. Price") == "avg price"
        assert normalize_header("  Quantity_Available ") == "quantity available"
        assert normalize_header("Cur. Value (Rs)") == "cur value rs"

    def test_cell_text(self):
        assert cell_text(3.0) == "3"
        assert cell_text(2.5) == "2.5"
        assert cell_text(math.nan) == ""
        assert cell_text(None) == ""
        assert cell_text(" x ") == "x"

    def test_is_blank_row(self):
        assert is_blank_row(["", "  "])
        assert not is_blank_row(["", "a"])


class TestReadDelimited:
    def test_comma(self):
        grid = read_delimited(b"ticker,qty\nAAA,1\nBBB,2\n")
        assert grid == [["ticker", "qty"], ["AAA", "1"], ["BBB", "2"]]

    def test_semicolon_detected(self):
        grid = read_delimited(b"ticker;qty\nAAA;1\nBBB;2\nCCC;3\n")
        assert grid[1] == ["AAA", "1"]

    def test_rectangular_with_blank_rows(self):
        grid = read_delimited(b"a,b,c\n\nx\n")
        assert all(len(r) == 3 for r in grid)
        assert is_blank_row(grid[1])

    def test_utf8_bom_stripped(self):
        grid = read_delimited("ticker,qty\nAAA,1\n".encode("utf-8-sig"))
        assert grid[0][0] == "ticker"


class TestReadGrid:
    def test_unsupported_extension(self):
        with pytest.raises(ValidationError):
            read_grid(b"data", "statement.pdf")

    def test_bad_spreadsheet(self):
        with pytest.raises(FormatError, match="Excel parsing failed"):
            read_spreadsheet(b"not a workbook")

    def test_xlsx_round_trip(self, tmp_path):
        path = tmp_path / "holdings.xlsx"
        pd.DataFrame(
            [["Symbol", "Qty", "Avg Price"], ["INFY", 10, 1500.5]]
        ).to_excel(path, header=False, index=False)

        grid = read_grid(path.read_bytes(), path.name)
        assert grid[0] == ["Symbol", "Qty", "Avg Price"]
        assert grid[1] == ["INFY", "10", "1500.5"]

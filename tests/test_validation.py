import pytest

from portfolio_risk.config import MB, IngestionLimits
from portfolio_risk.errors import ValidationError
from portfolio_risk.ingestion.validation import (
    count_rows,
    validate_file_size,
    validate_file_type,
    validate_row_count,
    validate_upload,
)


class TestFileType:
    def test_rejects_unknown_extension(self):
        with pytest.raises(ValidationError, match="Invalid file type"):
            validate_file_type("statement.pdf")

    def test_rejects_wrong_mime(self):
        with pytest.raises(ValidationError, match="got: application/pdf"):
            validate_file_type("statement.csv", "application/pdf")

    def test_accepts_missing_mime(self):
        validate_file_type("statement.csv", "")
        validate_file_type("statement.xlsx", None)

    def test_accepts_known_mime(self):
        validate_file_type("statement.csv", "text/csv")
        validate_file_type("statement.xls", "application/vnd.ms-excel")


class TestFileSize:
    def test_csv_ceiling(self):
        with pytest.raises(ValidationError, match="File too large"):
            validate_file_size("a.csv", 6 * MB, IngestionLimits())

    def test_excel_has_larger_ceiling(self):
        validate_file_size("a.xlsx", 6 * MB, IngestionLimits())
        with pytest.raises(ValidationError):
            validate_file_size("a.xlsx", 11 * MB, IngestionLimits())

    def test_type_checked_before_size(self):
        with pytest.raises(ValidationError, match="Invalid file type"):
            validate_upload("a.txt", 100 * MB, IngestionLimits())


class TestRowCount:
    def test_blank_rows_not_counted(self):
        assert count_rows([["a"], [""], ["b"], [" "]]) == 2

    def test_too_few(self):
        with pytest.raises(ValidationError, match="Too few rows"):
            validate_row_count([["a"]] * 4, IngestionLimits())

    def test_too_many(self):
        limits = IngestionLimits(min_rows=1, max_rows=3)
        with pytest.raises(ValidationError, match="Too many rows"):
            validate_row_count([["a"]] * 4, limits)

    def test_within_bounds(self):
        assert validate_row_count([["a"]] * 5, IngestionLimits()) == 5

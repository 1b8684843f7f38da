import logging

from portfolio_risk.config import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    MB,
    IngestionLimits,
)
from portfolio_risk.errors import ValidationError
from portfolio_risk.ingestion.cells import RawGrid, is_blank_row
from portfolio_risk.ingestion.reader import file_extension

logger = logging.getLogger(__name__)


def validate_file_type(filename: str, mime_type: str | None = None) -> None:
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            "Invalid file type. Please upload CSV or Excel files only. "
            f"Supported formats: {', '.join(ALLOWED_EXTENSIONS)}"
        )
    # Some clients send no MIME type at all; only a wrong one is rejected.
    mime = (mime_type or "").strip().lower()
    if mime and mime not in ALLOWED_MIME_TYPES[ext]:
        raise ValidationError(
            f"Invalid file type. Expected CSV or Excel file, got: {mime}"
        )


def validate_file_size(filename: str, size_bytes: int, limits: IngestionLimits) -> None:
    ext = file_extension(filename)
    max_size = limits.csv_max_bytes if ext == ".csv" else limits.excel_max_bytes
    if size_bytes > max_size:
        raise ValidationError(
            f"File too large. Maximum size: {max_size / MB:g}MB for "
            f"{ext.upper()} files. Your file: {size_bytes / MB:.1f}MB"
        )


def count_rows(grid: RawGrid) -> int:
    return sum(1 for row in grid if not is_blank_row(row))


def validate_row_count(grid: RawGrid, limits: IngestionLimits) -> int:
    count = count_rows(grid)
    if count < limits.min_rows:
        raise ValidationError(
            f"Too few rows. Minimum: {limits.min_rows} rows. "
            f"Your file has: {count} rows"
        )
    if count > limits.max_rows:
        raise ValidationError(
            f"Too many rows. Maximum: {limits.max_rows} rows. "
            f"Your file has: {count} rows"
        )
    return count


def validate_upload(
    filename: str,
    size_bytes: int,
    limits: IngestionLimits,
    mime_type: str | None = None,
) -> None:
    """Run the pre-parse gates: type first, then size."""
    validate_file_type(filename, mime_type)
    validate_file_size(filename, size_bytes, limits)
    logger.debug("Upload %s passed type and size checks", filename)

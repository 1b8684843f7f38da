"""Decode uploaded statements into a rectangular grid of cell strings."""

import csv
import io
import logging
from pathlib import Path

import pandas as pd

from portfolio_risk.errors import FormatError, ValidationError
from portfolio_risk.ingestion.cells import RawGrid, cell_text

logger = logging.getLogger(__name__)

SNIFF_BYTES = 10_000
DELIMITERS = ",;\t|"


def file_extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def _decode(data: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252", "latin-1"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise FormatError("Unable to decode file as text")


def _detect_delimiter(text: str) -> str:
    sample = text[:SNIFF_BYTES]
    try:
        return csv.Sniffer().sniff(sample, delimiters=DELIMITERS).delimiter
    except csv.Error:
        first_line = sample.splitlines()[0] if sample else ""
        if ";" in first_line and "," not in first_line:
            return ";"
        return ","


def _rectangular(rows: list[list[str]]) -> RawGrid:
    width = max((len(r) for r in rows), default=0)
    return [r + [""] * (width - len(r)) for r in rows]


def read_delimited(data: bytes) -> RawGrid:
    text = _decode(data)
    delimiter = _detect_delimiter(text)
    logger.debug("Reading delimited text with delimiter %r", delimiter)
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = [[cell.strip() for cell in row] for row in reader]
    return _rectangular(rows)


def read_spreadsheet(data: bytes, sheet_name: str | int = 0) -> RawGrid:
    try:
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=sheet_name,
            header=None,
            dtype=object,
        )
    except Exception as e:
        raise FormatError(
            "Excel parsing failed. Please try uploading a CSV file instead."
        ) from e
    rows = [[cell_text(v) for v in row] for row in df.itertuples(index=False)]
    return _rectangular(rows)


def read_grid(data: bytes, filename: str) -> RawGrid:
    """Decode ``data`` according to the extension of ``filename``.

    Blank rows are preserved because they delimit sections in broker exports.
    """
    ext = file_extension(filename)
    if ext == ".csv":
        return read_delimited(data)
    if ext in (".xlsx", ".xls"):
        return read_spreadsheet(data)
    raise ValidationError(f"Unsupported file type: {ext or filename}")

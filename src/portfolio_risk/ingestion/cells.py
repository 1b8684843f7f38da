import math
import re

RawRow = list[str]
RawGrid = list[RawRow]

_NUMBER_NOISE = re.compile(r"[,\s₹$€£]")
_HEADER_NOISE = re.compile(r"[._\-/()]+")


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def is_blank_row(row: RawRow) -> bool:
    return all(not c.strip() for c in row)


def parse_number(value: str | None) -> float | None:
    """Parse a broker-formatted number: ``"1,234.50"``, ``"₹ 99"``, ``"(12)"``.

    Returns ``None`` for empty or non-numeric cells.
    """
    if not value:
        return None
    cleaned = _NUMBER_NOISE.sub("", value)
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    negative = cleaned.startswith("(") and cleaned.endswith(")")
    if negative:
        cleaned = cleaned[1:-1]
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return -number if negative else number


def normalize_header(value: str) -> str:
    """Lowercase a header cell and collapse punctuation into single spaces."""
    text = _HEADER_NOISE.sub(" ", value.strip().lower())
    return " ".join(text.split())

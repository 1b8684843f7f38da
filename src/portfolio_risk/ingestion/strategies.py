"""Holdings-table discovery strategies.

Each strategy is a pure function ``(grid, limits) -> list[HoldingsTable] | None``
that only locates candidate tables; the ingestor extracts the rows (in
chunks) and moves on to the next strategy when nothing usable comes out.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from portfolio_risk.analysis.sectors import canonical_sector, resolve_sector
from portfolio_risk.config import IngestionLimits
from portfolio_risk.ingestion.cells import (
    RawGrid,
    RawRow,
    is_blank_row,
    normalize_header,
    parse_number,
)
from portfolio_risk.models.holding import Holding, Instrument
from portfolio_risk.models.ingest import DiscoveryStrategy

logger = logging.getLogger(__name__)

RowParser = Callable[[RawRow], Holding | None]


@dataclass(frozen=True)
class HoldingsTable:
    strategy: DiscoveryStrategy
    first_row: int  # grid index of the first data row
    rows: RawGrid
    parse_row: RowParser


Strategy = Callable[[RawGrid, IngestionLimits], list[HoldingsTable] | None]

# --- canonical CSV ---------------------------------------------------------

CANONICAL_HEADERS: dict[str, str] = {
    "ticker": "ticker",
    "name": "name",
    "quantity": "quantity",
    "avgprice": "avg_price",
    "avg_price": "avg_price",
    "avg price": "avg_price",
    "instrument": "instrument",
    "sector": "sector",
}
CANONICAL_FIELDS = frozenset(CANONICAL_HEADERS.values())

# --- broker statements -----------------------------------------------------

SECTION_MARKERS: tuple[str, ...] = (
    "holdings",
    "portfolio",
    "unrealised trades",
    "unrealized trades",
    "zerodha",
    "groww",
    "upstox",
    "angel one",
    "icici direct",
    "hdfc securities",
    "kotak securities",
)

HEADER_VOCABULARY: tuple[str, ...] = (
    "symbol",
    "quantity",
    "qty",
    "price",
    "name",
    "shares",
    "cost",
    "average",
    "ltp",
    "value",
)

NEXT_SECTION = re.compile(
    r"\b(realised trades|realized trades|disclaimer|summary|total)\b",
    re.IGNORECASE,
)

# Candidate headers per logical field, highest priority first.
COLUMN_CANDIDATES: dict[str, tuple[str, ...]] = {
    "symbol": (
        "symbol",
        "stock name",
        "name",
        "scrip",
        "company name",
        "instrument",
        "security",
        "stock symbol",
        "ticker",
    ),
    "quantity": (
        "quantity available",
        "quantity availab",
        "quantity",
        "qty",
        "shares",
        "units",
        "balance",
        "available quantity",
    ),
    "current_price": (
        "current price",
        "ltp",
        "last price",
        "market price",
        "closing price",
        "previous closing",
    ),
    "avg_price": (
        "average price",
        "avg price",
        "buy price",
        "purchase price",
        "cost price",
        "average cost",
        "avg cost",
        "price",
    ),
    "value": (
        "current value",
        "market value",
        "closing value",
        "present value",
        "total value",
        "value",
    ),
    "sector": ("sector", "industry", "category", "segment"),
    "isin": ("isin", "isin code", "security code"),
    "name": ("company name", "security name", "stock name", "name"),
}

REQUIRED_COLUMNS: tuple[str, ...] = ("symbol", "quantity", "avg_price")

# --- pattern fallback ------------------------------------------------------

MAX_PATTERN_PRICE = 10_000
MAX_PATTERN_QUANTITY = 1_000_000
_LETTER = re.compile(r"[A-Za-z]")
_AGGREGATE_WORDS = re.compile(r"total|summary", re.IGNORECASE)


def _cell(row: RawRow, index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


def _first_non_blank(grid: RawGrid) -> int | None:
    for i, row in enumerate(grid):
        if not is_blank_row(row):
            return i
    return None


def _build_holding(
    ticker: str,
    name: str,
    quantity: float,
    avg_price: float,
    *,
    sector: str = "",
    isin: str = "",
    instrument: Instrument = Instrument.EQUITY,
    current_price: float = 0.0,
    current_value: float = 0.0,
) -> Holding:
    ticker = ticker.upper()
    name = name or ticker
    holding = Holding(
        ticker=ticker,
        name=name,
        quantity=quantity,
        avg_price=avg_price,
        instrument=instrument,
        sector=canonical_sector(sector) if sector else resolve_sector(ticker, name),
        isin=isin or None,
    )
    if current_price > 0 or current_value > 0:
        price = current_price if current_price > 0 else current_value / quantity
        holding = holding.priced(price, current_value if current_value > 0 else None)
    return holding


# ---------------------------------------------------------------------------
# Strategy: canonical CSV
# ---------------------------------------------------------------------------


def canonical_columns(header: RawRow) -> dict[str, int] | None:
    """Map the exact canonical header row to column indices, else ``None``."""
    columns: dict[str, int] = {}
    for i, raw in enumerate(header):
        key = raw.strip().lower()
        if not key:
            continue
        field = CANONICAL_HEADERS.get(key)
        if field is None or field in columns:
            return None
        columns[field] = i
    if set(columns) != CANONICAL_FIELDS:
        return None
    return columns


def _canonical_row_parser(columns: dict[str, int]) -> RowParser:
    def parse(row: RawRow) -> Holding | None:
        ticker = _cell(row, columns["ticker"]).upper()
        if not ticker:
            return None
        quantity = parse_number(_cell(row, columns["quantity"])) or 0.0
        avg_price = parse_number(_cell(row, columns["avg_price"])) or 0.0
        if not (quantity > 0 and avg_price > 0):
            return None
        return _build_holding(
            ticker,
            _cell(row, columns["name"]),
            quantity,
            avg_price,
            sector=_cell(row, columns["sector"]),
            instrument=Instrument.parse(_cell(row, columns["instrument"])),
        )

    return parse


def canonical_csv(
    grid: RawGrid, limits: IngestionLimits
) -> list[HoldingsTable] | None:
    start = _first_non_blank(grid)
    if start is None:
        return None
    columns = canonical_columns(grid[start])
    if columns is None:
        return None
    return [
        HoldingsTable(
            strategy=DiscoveryStrategy.CANONICAL,
            first_row=start + 1,
            rows=grid[start + 1 :],
            parse_row=_canonical_row_parser(columns),
        )
    ]


# ---------------------------------------------------------------------------
# Strategy: section marker + header scan
# ---------------------------------------------------------------------------


def is_section_marker(row: RawRow) -> bool:
    cells = [c.strip().lower() for c in row]
    return any(marker in c for c in cells if c for marker in SECTION_MARKERS)


def looks_like_header(row: RawRow) -> bool:
    cells = [c.strip().lower() for c in row]
    return any(term in c for c in cells if c for term in HEADER_VOCABULARY)


def is_next_section(row: RawRow) -> bool:
    return any(NEXT_SECTION.search(c) for c in row if c.strip())


def resolve_columns(header: RawRow) -> dict[str, int] | None:
    """Resolve logical fields to column indices.

    For each field the candidates are tried in priority order, first as exact
    matches and then as substrings. A column serves at most one field. The
    header is rejected when symbol, quantity or price cannot be resolved.
    """
    normalized = [normalize_header(c) for c in header]
    claimed: set[int] = set()
    columns: dict[str, int] = {}

    for field, candidates in COLUMN_CANDIDATES.items():
        index = _find_column(normalized, candidates, claimed)
        if index is not None:
            columns[field] = index
            claimed.add(index)

    if any(f not in columns for f in REQUIRED_COLUMNS):
        return None
    return columns


def _find_column(
    normalized: list[str], candidates: tuple[str, ...], claimed: set[int]
) -> int | None:
    for cand in candidates:
        for i, h in enumerate(normalized):
            if i not in claimed and h == cand:
                return i
    for cand in candidates:
        for i, h in enumerate(normalized):
            if i not in claimed and h and cand in h:
                return i
    return None


def _section_row_parser(columns: dict[str, int]) -> RowParser:
    def parse(row: RawRow) -> Holding | None:
        symbol = _cell(row, columns["symbol"])
        if not symbol:
            return None
        quantity = parse_number(_cell(row, columns["quantity"])) or 0.0
        avg_price = parse_number(_cell(row, columns["avg_price"])) or 0.0
        if not (quantity > 0 and avg_price > 0):
            return None
        current_price = parse_number(_cell(row, columns.get("current_price")))
        current_value = parse_number(_cell(row, columns.get("value")))
        return _build_holding(
            symbol,
            _cell(row, columns.get("name")),
            quantity,
            avg_price,
            sector=_cell(row, columns.get("sector")),
            isin=_cell(row, columns.get("isin")),
            current_price=max(current_price or 0.0, 0.0),
            current_value=max(current_value or 0.0, 0.0),
        )

    return parse


def _table_end(grid: RawGrid, start: int) -> int:
    end = start
    while end < len(grid):
        row = grid[end]
        if is_blank_row(row) or is_next_section(row):
            break
        end += 1
    return end


def section_scan(
    grid: RawGrid, limits: IngestionLimits
) -> list[HoldingsTable] | None:
    tables: list[HoldingsTable] = []
    consumed_until = -1

    for r, row in enumerate(grid):
        if r <= consumed_until or not is_section_marker(row):
            continue

        window_end = min(len(grid), r + 1 + limits.header_scan_rows)
        for k in range(r + 1, window_end):
            candidate = grid[k]
            if is_blank_row(candidate) or not looks_like_header(candidate):
                continue
            columns = resolve_columns(candidate)
            if columns is None:
                logger.debug("Rejected header candidate at row %d", k + 1)
                continue

            end = _table_end(grid, k + 1)
            logger.info(
                "Found holdings header at row %d (%d data rows)", k + 1, end - k - 1
            )
            tables.append(
                HoldingsTable(
                    strategy=DiscoveryStrategy.SECTION_SCAN,
                    first_row=k + 1,
                    rows=grid[k + 1 : end],
                    parse_row=_section_row_parser(columns),
                )
            )
            consumed_until = end
            break

    return tables or None


# ---------------------------------------------------------------------------
# Strategy: numeric pattern fallback
# ---------------------------------------------------------------------------


def parse_pattern_row(row: RawRow) -> Holding | None:
    """Best-effort extraction from a row with no usable header.

    The first textual token is the symbol, the first integer below one
    million is the quantity and the first other number below 10 000 is the
    price.
    """
    filled = [c.strip() for c in row if c.strip()]
    if len(filled) < 3:
        return None

    symbol = ""
    numbers: list[tuple[int, float]] = []
    for i, cell in enumerate(filled):
        value = parse_number(cell)
        if value is None:
            if symbol or not _LETTER.search(cell):
                continue
            if not _AGGREGATE_WORDS.search(cell):
                symbol = cell
        elif value > 0:
            numbers.append((i, value))

    if not symbol or len(numbers) < 2:
        return None

    qty_index, quantity = next(
        (
            (i, v)
            for i, v in numbers
            if v.is_integer() and 0 < v < MAX_PATTERN_QUANTITY
        ),
        (None, 0.0),
    )
    price = next(
        (v for i, v in numbers if i != qty_index and 0 < v < MAX_PATTERN_PRICE),
        0.0,
    )
    if not (quantity > 0 and price > 0):
        return None
    return _build_holding(symbol, "", quantity, price)


def pattern_fallback(
    grid: RawGrid, limits: IngestionLimits
) -> list[HoldingsTable] | None:
    if not grid:
        return None
    return [
        HoldingsTable(
            strategy=DiscoveryStrategy.PATTERN,
            first_row=0,
            rows=grid,
            parse_row=parse_pattern_row,
        )
    ]


STRATEGIES: tuple[Strategy, ...] = (canonical_csv, section_scan, pattern_fallback)

"""Parse transaction-level exports (one row per trade) into ``Transaction``s."""

import logging
from datetime import date

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from portfolio_risk.errors import FormatError
from portfolio_risk.ingestion.cells import RawGrid, is_blank_row, parse_number
from portfolio_risk.models.holding import Transaction, TransactionType
from portfolio_risk.models.ingest import ParsedRow

logger = logging.getLogger(__name__)

COLUMN_CANDIDATES: dict[str, tuple[str, ...]] = {
    "date": ("date", "trade date", "txn date", "transaction date"),
    "ticker": (
        "ticker",
        "symbol",
        "name",
        "asset",
        "scrip",
        "stock",
        "isin",
        "symbol/name",
    ),
    "type": ("type", "side", "action", "buy/sell"),
    "quantity": ("qty", "quantity", "shares", "units"),
    "price": ("price", "avg price", "average price", "rate", "filled price"),
    "currency": ("currency", "ccy"),
    "fees": ("fees", "brokerage", "commission", "charges"),
    "notes": ("notes", "remark", "remarks", "description"),
}

REQUIRED_FIELDS: tuple[str, ...] = ("date", "ticker", "type", "quantity", "price")

_BUY = frozenset({"BUY", "B", "PURCHASE", "LONG"})
_SELL = frozenset({"SELL", "S", "SALE", "SHORT"})


def auto_map_columns(headers: list[str]) -> dict[str, str]:
    """Map each logical field to the first header that matches a candidate."""
    lowered = [h.strip().lower() for h in headers]
    mapping: dict[str, str] = {}
    for field, candidates in COLUMN_CANDIDATES.items():
        for cand in candidates:
            if cand in lowered:
                mapping[field] = headers[lowered.index(cand)]
                break
    return mapping


def normalize_type(value: str | None) -> TransactionType | None:
    v = (value or "").strip().upper()
    if v in _BUY:
        return TransactionType.BUY
    if v in _SELL:
        return TransactionType.SELL
    return None


def _parse_date(value: str, dayfirst: bool) -> date | None:
    if not value:
        return None
    parsed = pd.to_datetime(value, errors="coerce", dayfirst=dayfirst)
    if pd.isna(parsed):
        return None
    return parsed.date()


def parse_transactions(
    grid: RawGrid,
    mapping: dict[str, str] | None = None,
    dayfirst: bool = False,
) -> list[ParsedRow]:
    """Parse every data row, keeping per-row errors instead of raising.

    The first non-blank row is the header. Without an explicit ``mapping`` the
    columns are auto-mapped; a missing required column raises ``FormatError``.
    """
    rows = [r for r in grid if not is_blank_row(r)]
    if not rows:
        raise FormatError("No transactions found in the file")
    headers = [c.strip() for c in rows[0]]
    mapping = mapping if mapping is not None else auto_map_columns(headers)

    missing = [f for f in REQUIRED_FIELDS if not mapping.get(f)]
    if missing:
        raise FormatError(f"Missing required columns: {', '.join(missing)}")
    unknown = [h for h in mapping.values() if h and h not in headers]
    if unknown:
        raise FormatError(f"Mapped columns not in file: {', '.join(unknown)}")

    parsed: list[ParsedRow] = []
    for number, row in enumerate(rows[1:], start=2):
        raw = {
            h: (row[i].strip() if i < len(row) else "") for i, h in enumerate(headers)
        }
        parsed.append(_parse_row(number, raw, mapping, dayfirst))

    failed = sum(1 for p in parsed if not p.ok)
    if failed:
        logger.warning("%d of %d transaction rows had errors", failed, len(parsed))
    return parsed


def _parse_row(
    number: int, raw: dict[str, str], mapping: dict[str, str], dayfirst: bool
) -> ParsedRow:
    def get(field: str) -> str:
        header = mapping.get(field)
        return raw.get(header, "") if header else ""

    trade_date = _parse_date(get("date"), dayfirst)
    ticker = get("ticker")
    tx_type = normalize_type(get("type"))
    quantity = parse_number(get("quantity"))
    price = parse_number(get("price"))

    errors: list[str] = []
    if trade_date is None:
        errors.append("Invalid or missing date")
    if not ticker:
        errors.append("Missing ticker/name")
    if tx_type is None:
        errors.append("Invalid type (BUY/SELL)")
    if quantity is None or quantity <= 0:
        errors.append("Invalid quantity")
    if price is None or price < 0:
        errors.append("Invalid price")
    if errors:
        return ParsedRow(row_number=number, raw=raw, errors=errors)

    try:
        transaction = Transaction(
            ticker=ticker,
            type=tx_type,
            quantity=quantity,
            price=price,
            trade_date=trade_date,
            fees=parse_number(get("fees")) or 0.0,
            currency=get("currency").upper() or None,
            notes=get("notes") or None,
        )
    except PydanticValidationError as e:
        return ParsedRow(row_number=number, raw=raw, errors=[str(e)])
    return ParsedRow(row_number=number, raw=raw, transaction=transaction)


def valid_transactions(rows: list[ParsedRow]) -> list[Transaction]:
    return [r.transaction for r in rows if r.transaction is not None]

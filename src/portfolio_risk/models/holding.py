from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Instrument(StrEnum):
    EQUITY = "Equity"
    FNO = "F&O"
    CURRENCY = "Currency"

    @staticmethod
    def parse(value: str | None) -> "Instrument":
        v = (value or "").strip().lower()
        if v in ("f&o", "fno", "futures", "options", "derivative", "derivatives"):
            return Instrument.FNO
        if v in ("currency", "fx", "forex"):
            return Instrument.CURRENCY
        return Instrument.EQUITY


class Holding(BaseModel):
    """A position in one instrument, keyed by its uppercase ticker.

    ``invested_amount`` is always derived from quantity and cost basis.
    ``risk`` and ``annual_return`` stay ``None`` when no usable price history
    exists; in that case ``error`` says why.
    """

    ticker: str
    name: str = ""
    quantity: float = Field(default=0.0, ge=0)
    avg_price: float = Field(default=0.0, ge=0)
    invested_amount: float = 0.0
    current_price: float = 0.0
    current_value: float = 0.0
    total_pl: float = 0.0
    total_pl_percent: float = 0.0
    instrument: Instrument = Instrument.EQUITY
    sector: str | None = None
    isin: str | None = None
    risk: float | None = None
    annual_return: float | None = None
    error: str | None = None

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker must not be empty")
        return ticker

    @model_validator(mode="after")
    def _derive_invested(self) -> "Holding":
        self.invested_amount = self.quantity * self.avg_price
        if not self.name:
            self.name = self.ticker
        return self

    @property
    def is_valid(self) -> bool:
        return self.quantity > 0 and self.avg_price > 0

    @property
    def has_risk_data(self) -> bool:
        return self.error is None and self.risk is not None

    def priced(
        self, current_price: float, current_value: float | None = None
    ) -> "Holding":
        """Return a copy valued at ``current_price`` with P&L derived."""
        if current_value is None or current_value <= 0:
            current_value = current_price * self.quantity
        total_pl = current_value - self.invested_amount
        pct = (
            total_pl / self.invested_amount * 100 if self.invested_amount > 0 else 0.0
        )
        return self.model_copy(
            update={
                "current_price": current_price,
                "current_value": current_value,
                "total_pl": total_pl,
                "total_pl_percent": pct,
            }
        )

    def at_cost_basis(self, error: str) -> "Holding":
        """Return a copy valued at cost with risk data marked unavailable."""
        return self.model_copy(
            update={
                "current_price": self.avg_price,
                "current_value": self.invested_amount,
                "total_pl": 0.0,
                "total_pl_percent": 0.0,
                "risk": None,
                "annual_return": None,
                "error": error,
            }
        )


class TransactionType(StrEnum):
    BUY = "BUY"
    SELL = "SELL"


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    type: TransactionType
    quantity: float = Field(gt=0)
    price: float = Field(ge=0)
    trade_date: date
    name: str = ""
    fees: float = 0.0
    currency: str | None = None
    notes: str | None = None

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker must not be empty")
        return ticker

import math

from pydantic import BaseModel, Field


class PricePoint(BaseModel):
    date: str
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None


class PriceHistory(BaseModel):
    """Daily OHLC series for one ticker as returned by a price source."""

    ticker: str
    data: list[PricePoint] = []
    is_mock: bool = Field(default=False, alias="isMock")

    model_config = {"populate_by_name": True}

    def closes(self) -> list[float]:
        """Closing prices that are finite and positive, oldest first."""
        out: list[float] = []
        for point in self.data:
            c = point.close
            if c is not None and math.isfinite(c) and c > 0:
                out.append(float(c))
        return out

    def dates(self) -> list[str]:
        return [
            p.date
            for p in self.data
            if p.close is not None and math.isfinite(p.close) and p.close > 0
        ]

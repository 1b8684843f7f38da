import logging
import math
from datetime import date, timedelta

import pandas as pd
import yfinance as yf

from portfolio_risk.errors import DataUnavailableError
from portfolio_risk.models.price import PriceHistory, PricePoint

logger = logging.getLogger(__name__)


def _value(row: pd.Series, column: str) -> float | None:
    v = row.get(column)
    if v is None:
        return None
    v = float(v)
    return v if math.isfinite(v) else None


def frame_to_history(ticker: str, df: pd.DataFrame) -> PriceHistory:
    points = [
        PricePoint(
            date=pd.Timestamp(idx).strftime("%Y-%m-%d"),
            open=_value(row, "Open"),
            high=_value(row, "High"),
            low=_value(row, "Low"),
            close=_value(row, "Close"),
            volume=_value(row, "Volume"),
        )
        for idx, row in df.iterrows()
    ]
    return PriceHistory(ticker=ticker, data=points)


class YFinanceClient:
    source_name: str = "yfinance"

    def __init__(self) -> None:
        self._tickers: dict[str, yf.Ticker] = {}

    def ticker(self, symbol: str) -> yf.Ticker:
        if symbol not in self._tickers:
            self._tickers[symbol] = yf.Ticker(symbol)
        return self._tickers[symbol]

    def get_history(self, ticker: str, start: date, end: date) -> PriceHistory:
        symbol = ticker.upper()
        try:
            # yfinance treats ``end`` as exclusive.
            df = self.ticker(symbol).history(
                start=start.isoformat(),
                end=(end + timedelta(days=1)).isoformat(),
                interval="1d",
            )
        except Exception as e:
            logger.warning("Failed to fetch history for %s", symbol)
            raise DataUnavailableError(symbol, str(e)) from e

        if df is None or df.empty:
            logger.warning("Empty history for %s", symbol)
            raise DataUnavailableError(symbol, "no data points")
        return frame_to_history(symbol, df)

    def close(self) -> None:
        self._tickers.clear()

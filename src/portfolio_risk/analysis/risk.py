"""Per-holding and portfolio-level risk metrics.

Holdings without a usable price series are valued at cost basis and flagged
with ``error``; they still count towards totals and weights but never towards
return, variance or drawdown.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import date

import numpy as np
import pandas as pd

from portfolio_risk.analysis.sectors import sector_of
from portfolio_risk.config import MAJOR_SECTORS, TRADING_DAYS, AnalysisConfig
from portfolio_risk.errors import DataUnavailableError
from portfolio_risk.models.analysis import (
    DrawdownMethod,
    PortfolioMetrics,
    Timeframe,
    ValuePoint,
)
from portfolio_risk.models.holding import Holding

logger = logging.getLogger(__name__)

PriceMap = Mapping[str, Sequence[float]]


def clean_prices(prices: Sequence[float] | None) -> np.ndarray:
    if prices is None:
        return np.array([], dtype=float)
    arr = np.asarray(prices, dtype=float)
    return arr[np.isfinite(arr) & (arr > 0)]


def daily_returns(prices: Sequence[float] | np.ndarray) -> np.ndarray:
    arr = np.asarray(prices, dtype=float)
    if len(arr) < 2:
        return np.array([], dtype=float)
    returns = np.diff(arr) / arr[:-1]
    return returns[np.isfinite(returns)]


def annualize(returns: np.ndarray) -> tuple[float, float]:
    """Annualized (return, volatility) from daily returns."""
    annual_return = float(np.mean(returns)) * TRADING_DAYS
    daily_mean = annual_return / TRADING_DAYS
    variance = float(np.mean((returns - daily_mean) ** 2))
    return annual_return, math.sqrt(variance * TRADING_DAYS)


def sector_correlation(sector_a: str, sector_b: str) -> float:
    """Assumed correlation between two distinct holdings."""
    if sector_a == sector_b:
        return 0.7
    if sector_a in MAJOR_SECTORS and sector_b in MAJOR_SECTORS:
        return 0.6
    return 0.3


def portfolio_variance(
    weights: Sequence[float], vols: Sequence[float], sectors: Sequence[str]
) -> float:
    n = len(weights)
    variance = 0.0
    for i in range(n):
        for j in range(n):
            rho = 1.0 if i == j else sector_correlation(sectors[i], sectors[j])
            variance += weights[i] * weights[j] * vols[i] * vols[j] * rho
    return variance


def historical_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the peak."""
    arr = np.asarray(values, dtype=float)
    if len(arr) == 0:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    return float(np.max(drawdowns))


def approximate_drawdown(volatility: float, n_holdings: int) -> float:
    # More holdings shrink the multiplier from 2.5x towards 1.5x.
    diversification = min(1.0, math.sqrt(n_holdings / 10))
    return volatility * (2.5 - diversification)


def value_series(
    holdings: Sequence[Holding], histories: PriceMap
) -> np.ndarray | None:
    """Σ quantity × price over the common tail window of every series."""
    series = [clean_prices(histories.get(h.ticker)) for h in holdings]
    series = [s for s in series if len(s) > 0]
    if not series or len(series) != len(holdings):
        return None
    n = min(len(s) for s in series)
    total = np.zeros(n)
    for h, s in zip(holdings, series):
        total += h.quantity * s[-n:]
    return total


def slice_history(history: list[ValuePoint], timeframe: Timeframe) -> list[ValuePoint]:
    days = timeframe.days
    if days is None:
        return list(history)
    return list(history[-days:])


class RiskMetricsEngine:
    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    def enrich(self, holding: Holding, prices: Sequence[float] | None) -> Holding:
        try:
            return self._enrich(holding, prices)
        except DataUnavailableError as e:
            logger.warning("%s", e)
            return holding.at_cost_basis(str(e))

    def _enrich(self, holding: Holding, prices: Sequence[float] | None) -> Holding:
        if prices is None:
            raise DataUnavailableError(holding.ticker, "no price history")
        clean = clean_prices(prices)
        if len(clean) < 2:
            raise DataUnavailableError(holding.ticker, "insufficient price history")
        returns = daily_returns(clean)
        if len(returns) == 0:
            raise DataUnavailableError(holding.ticker, "no valid returns")

        annual_return, volatility = annualize(returns)
        priced = holding.priced(float(clean[-1]))
        return priced.model_copy(
            update={"risk": volatility, "annual_return": annual_return, "error": None}
        )

    def compute_metrics(
        self,
        holdings: Sequence[Holding],
        price_histories: PriceMap,
        risk_free_rate: float,
        benchmark: Sequence[float] | None = None,
    ) -> tuple[list[Holding], PortfolioMetrics]:
        enriched = [self.enrich(h, price_histories.get(h.ticker)) for h in holdings]

        total_value = sum(h.current_value for h in enriched)
        valid = [h for h in enriched if h.has_risk_data]
        weights = [
            h.current_value / total_value if total_value > 0 else 0.0 for h in valid
        ]
        vols = [h.risk or 0.0 for h in valid]

        expected_return = sum(
            w * (h.annual_return or 0.0) for w, h in zip(weights, valid)
        )
        variance = portfolio_variance(weights, vols, [sector_of(h) for h in valid])
        volatility = math.sqrt(max(variance, 0.0))
        sharpe = 0.0
        if volatility > 0:
            sharpe = (expected_return - risk_free_rate) / volatility

        values = value_series(valid, price_histories) if valid else None
        if values is not None and len(values) >= self.config.min_drawdown_observations:
            max_drawdown = historical_drawdown(values)
            method = DrawdownMethod.HISTORICAL
        else:
            max_drawdown = approximate_drawdown(volatility, len(valid))
            method = DrawdownMethod.VOLATILITY

        beta, alpha = self._benchmark_stats(
            values, benchmark, expected_return, risk_free_rate
        )

        logger.info(
            "Computed metrics for %d holdings (%d with risk data)",
            len(enriched),
            len(valid),
        )
        metrics = PortfolioMetrics(
            annual_return=expected_return,
            volatility=volatility,
            sharpe_ratio=sharpe,
            max_drawdown=max_drawdown,
            drawdown_method=method,
            beta=beta,
            alpha=alpha,
        )
        return enriched, metrics

    def _benchmark_stats(
        self,
        values: np.ndarray | None,
        benchmark: Sequence[float] | None,
        portfolio_return: float,
        risk_free_rate: float,
    ) -> tuple[float | None, float | None]:
        if values is None or benchmark is None:
            return None, None
        p_ret = daily_returns(values)
        m_ret = daily_returns(clean_prices(benchmark))
        n = min(len(p_ret), len(m_ret))
        if n < 2:
            return None, None
        p_ret, m_ret = p_ret[-n:], m_ret[-n:]
        market_var = float(np.var(m_ret))
        if market_var == 0:
            return None, None
        cov = float(np.mean((p_ret - p_ret.mean()) * (m_ret - m_ret.mean())))
        beta = cov / market_var
        market_return = float(np.mean(m_ret)) * TRADING_DAYS
        alpha = portfolio_return - (
            risk_free_rate + beta * (market_return - risk_free_rate)
        )
        return beta, alpha

    def value_history(
        self,
        holdings: Sequence[Holding],
        price_histories: PriceMap,
        as_of: date | None = None,
    ) -> list[ValuePoint]:
        """Recent portfolio values dated backwards over business days.

        Holdings without risk data contribute their cost basis to every point.
        """
        points = self.config.history_points
        valid = [h for h in holdings if h.has_risk_data]
        at_cost = sum(h.invested_amount for h in holdings if not h.has_risk_data)

        values = value_series(valid, price_histories) if valid else None
        if values is None:
            total = sum(h.invested_amount for h in holdings)
            series = [total] * points
        else:
            series = [float(v) + at_cost for v in values[-points:]]

        end = pd.Timestamp(as_of or date.today())
        dates = pd.bdate_range(end=end, periods=len(series))
        return [
            ValuePoint(date=d.strftime("%Y-%m-%d"), value=v)
            for d, v in zip(dates, series)
        ]

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from itertools import combinations

import numpy as np

from portfolio_risk.analysis.risk import clean_prices
from portfolio_risk.config import AnalysisConfig
from portfolio_risk.models.analysis import CorrelationPair, Significance
from portfolio_risk.models.holding import Holding

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[Sequence[float]]]


def pearson(prices_a: Sequence[float], prices_b: Sequence[float]) -> float:
    """Correlation of daily returns over the shared most recent window."""
    a = clean_prices(prices_a)
    b = clean_prices(prices_b)
    n = min(len(a), len(b))
    if n < 3:
        return 0.0
    a, b = a[-n:], b[-n:]
    ra = np.diff(a) / a[:-1]
    rb = np.diff(b) / b[:-1]
    mask = np.isfinite(ra) & np.isfinite(rb)
    ra, rb = ra[mask], rb[mask]
    if len(ra) < 2:
        return 0.0
    da = ra - ra.mean()
    db = rb - rb.mean()
    denom = float(np.sqrt(np.sum(da**2) * np.sum(db**2)))
    if denom == 0 or not np.isfinite(denom):
        return 0.0
    return float(np.clip(np.sum(da * db) / denom, -1.0, 1.0))


def make_pair(ticker_a: str, ticker_b: str, correlation: float) -> CorrelationPair:
    return CorrelationPair(
        ticker_a=ticker_a,
        ticker_b=ticker_b,
        correlation=correlation,
        significance=Significance.from_correlation(correlation),
    )


class CorrelationMatrixBuilder:
    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    def _eligible(self, holdings: Sequence[Holding]) -> list[str]:
        seen: dict[str, None] = {}
        for h in holdings:
            if h.error is None:
                seen.setdefault(h.ticker)
        return list(seen)

    def _long_enough(self, prices: Sequence[float] | None) -> bool:
        if prices is None:
            return False
        return len(clean_prices(prices)) >= self.config.min_correlation_points

    def build_matrix(
        self,
        holdings: Sequence[Holding],
        price_histories: Mapping[str, Sequence[float]],
    ) -> list[CorrelationPair]:
        tickers = [
            t
            for t in self._eligible(holdings)
            if self._long_enough(price_histories.get(t))
        ]
        pairs = [
            make_pair(a, b, pearson(price_histories[a], price_histories[b]))
            for a, b in combinations(tickers, 2)
        ]
        logger.debug("Built %d correlation pairs", len(pairs))
        return pairs

    async def build_matrix_async(
        self, holdings: Sequence[Holding], fetch: Fetch
    ) -> list[CorrelationPair]:
        """Fetch histories on demand and correlate every eligible pair.

        Each ticker is fetched at most once and shared by all its pairs. A
        failed or too-short fetch excludes only the pairs involving it.
        """
        tickers = self._eligible(holdings)
        tasks = {t: asyncio.ensure_future(fetch(t)) for t in tickers}

        async def one_pair(a: str, b: str) -> CorrelationPair | None:
            try:
                prices_a, prices_b = await asyncio.gather(tasks[a], tasks[b])
            except Exception as e:
                logger.debug("Skipping pair %s/%s: %s", a, b, e)
                return None
            if not (self._long_enough(prices_a) and self._long_enough(prices_b)):
                return None
            return make_pair(a, b, pearson(prices_a, prices_b))

        try:
            results = await asyncio.gather(
                *[one_pair(a, b) for a, b in combinations(tickers, 2)]
            )
        finally:
            # Retrieve results of fetches no pair awaited (single ticker).
            await asyncio.gather(*tasks.values(), return_exceptions=True)
        return [p for p in results if p is not None]

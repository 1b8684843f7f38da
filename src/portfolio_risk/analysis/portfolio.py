import asyncio
import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date

from portfolio_risk.analysis.correlation import CorrelationMatrixBuilder
from portfolio_risk.analysis.diversification import DiversificationScorer
from portfolio_risk.analysis.risk import RiskMetricsEngine
from portfolio_risk.analysis.sectors import SectorAnalyzer
from portfolio_risk.config import AnalysisConfig
from portfolio_risk.data.market_data import MarketDataProvider
from portfolio_risk.models.analysis import PortfolioAnalysis, RiskLevel
from portfolio_risk.models.holding import Holding
from portfolio_risk.models.price import PriceHistory

logger = logging.getLogger(__name__)


def analyze_portfolio(
    holdings: Sequence[Holding],
    price_histories: Mapping[str, Sequence[float]],
    risk_free_rate: float,
    config: AnalysisConfig | None = None,
    benchmark: Sequence[float] | None = None,
    as_of: date | None = None,
) -> PortfolioAnalysis:
    """Full analytics pass over the valid ``holdings``; inputs are never mutated."""
    config = config or AnalysisConfig()
    valid = [h.model_copy(deep=True) for h in holdings if h.is_valid]
    if len(valid) < len(holdings):
        logger.info(
            "Dropped %d holdings with zero quantity or price",
            len(holdings) - len(valid),
        )

    engine = RiskMetricsEngine(config)
    enriched, metrics = engine.compute_metrics(
        valid, price_histories, risk_free_rate, benchmark
    )
    buckets = SectorAnalyzer().analyze_by_sector(enriched)
    pairs = CorrelationMatrixBuilder(config).build_matrix(enriched, price_histories)
    score = DiversificationScorer().score(buckets, pairs)

    total_invested = sum(h.invested_amount for h in enriched)
    current_value = sum(h.current_value for h in enriched)
    total_pl = current_value - total_invested
    issues = [h.ticker for h in enriched if h.error is not None]
    if issues:
        logger.warning("No price data for: %s", ", ".join(issues))

    return PortfolioAnalysis(
        total_invested=total_invested,
        current_value=current_value,
        total_pl=total_pl,
        total_pl_percent=total_pl / total_invested * 100 if total_invested > 0 else 0.0,
        risk_level=RiskLevel.from_volatility(metrics.volatility),
        risk_free_rate=risk_free_rate,
        holdings=enriched,
        value_history=engine.value_history(enriched, price_histories, as_of),
        metrics=metrics,
        sector_buckets=buckets,
        correlation_pairs=pairs,
        diversification_score=score,
        data_quality_issues=issues,
    )


class PortfolioAnalyzer:
    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    async def analyze(
        self,
        holdings: Sequence[Holding],
        provider: MarketDataProvider,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        as_of: date | None = None,
    ) -> PortfolioAnalysis:
        tickers = list(dict.fromkeys(h.ticker for h in holdings if h.is_valid))
        benchmark_ticker = self.config.benchmark_ticker
        histories = await self._fetch_histories(
            tickers + ([benchmark_ticker] if benchmark_ticker else []),
            provider,
            loop,
            executor,
        )

        benchmark = histories.get(benchmark_ticker) if benchmark_ticker else None
        fetched = [t for t in tickers if t in histories]
        price_map = {t: histories[t].closes() for t in fetched}
        analysis = analyze_portfolio(
            holdings,
            price_map,
            self.config.risk_free_rate,
            self.config,
            benchmark=benchmark.closes() if benchmark is not None else None,
            as_of=as_of or provider.as_of,
        )
        analysis.mock_data_tickers = sorted(t for t in fetched if histories[t].is_mock)
        return analysis

    async def _fetch_histories(
        self,
        tickers: list[str],
        provider: MarketDataProvider,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
    ) -> dict[str, PriceHistory]:
        async def fetch(t: str) -> tuple[str, PriceHistory]:
            history = await loop.run_in_executor(executor, provider.get_history, t)
            return t, history

        results = await asyncio.gather(
            *[fetch(t) for t in dict.fromkeys(tickers)],
            return_exceptions=True,
        )

        histories: dict[str, PriceHistory] = {}
        for r in results:
            if isinstance(r, Exception):
                logger.warning("Price fetch failed: %s", r)
                continue
            t, history = r
            histories[t] = history
        return histories

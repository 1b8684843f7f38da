import logging
from datetime import date, timedelta

from portfolio_risk.config import AnalysisConfig
from portfolio_risk.data.base import PriceSource
from portfolio_risk.data.history_client import HistoryClient
from portfolio_risk.data.yfinance_client import YFinanceClient
from portfolio_risk.models.price import PriceHistory

logger = logging.getLogger(__name__)


def make_source(config: AnalysisConfig) -> PriceSource:
    if config.price_source == "yfinance":
        return YFinanceClient()
    if config.price_source == "http":
        if not config.history_url:
            raise ValueError(
                "A price-history URL is required for the http source "
                "(set PRICE_HISTORY_URL or pass --history-url)"
            )
        return HistoryClient(config.history_url, timeout=config.request_timeout)
    raise ValueError(f"Unknown price source: {config.price_source}")


class MarketDataProvider:
    """Fetch daily histories over the configured lookback window."""

    def __init__(
        self,
        config: AnalysisConfig,
        source: PriceSource | None = None,
        as_of: date | None = None,
    ) -> None:
        self.config = config
        self.source = source or make_source(config)
        self.as_of = as_of or date.today()

    @property
    def window(self) -> tuple[date, date]:
        return self.as_of - timedelta(days=self.config.lookback_days), self.as_of

    def get_history(self, ticker: str) -> PriceHistory:
        start, end = self.window
        history = self.source.get_history(ticker, start, end)
        logger.debug(
            "Fetched %d points for %s from %s",
            len(history.data),
            ticker,
            self.source.source_name,
        )
        return history

    def get_closes(self, ticker: str) -> list[float]:
        return self.get_history(ticker).closes()

    def close(self) -> None:
        self.source.close()

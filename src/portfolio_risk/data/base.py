from datetime import date
from typing import Protocol

from portfolio_risk.models.price import PriceHistory


class PriceSource(Protocol):
    """Protocol for daily price-history sources."""

    source_name: str

    def get_history(self, ticker: str, start: date, end: date) -> PriceHistory:
        """Daily history for ``ticker``; raises ``DataUnavailableError``."""
        ...

    def close(self) -> None:
        """Release any open connections."""
        ...

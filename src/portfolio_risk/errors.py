"""Error taxonomy for statement ingestion and portfolio analysis.

Ingestion errors (``ValidationError``, ``FormatError``, ``CancelledError``)
abort the whole import. ``DataUnavailableError`` is per ticker and is
recovered inside the analysis pass: the holding is flagged, never dropped.
"""


class PortfolioRiskError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(PortfolioRiskError):
    """Uploaded file rejected before parsing (type, size or row count)."""


class FormatError(PortfolioRiskError):
    """No recognizable holdings table after every discovery strategy."""


class CancelledError(PortfolioRiskError):
    """Processing was cancelled by the caller; partial results discarded."""


class DataUnavailableError(PortfolioRiskError):
    """No usable price history for a single ticker."""

    def __init__(self, ticker: str, reason: str) -> None:
        self.ticker = ticker
        self.reason = reason
        super().__init__(f"Unable to fetch data for {ticker}: {reason}")

import calendar
import logging
from datetime import date

import httpx
from pydantic import ValidationError as PydanticValidationError

from portfolio_risk.errors import DataUnavailableError
from portfolio_risk.models.price import PriceHistory

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_HEADERS = {"Accept": "application/json"}


def _unix(day: date) -> int:
    return calendar.timegm(day.timetuple())


class HistoryClient:
    """Client for the price-history service.

    ``GET {base_url}/history/{ticker}?from=<unix>&to=<unix>`` returns
    ``{"data": [{"date", "open", "high", "low", "close", "volume"}], "isMock"}``.
    """

    source_name: str = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self._timeout,
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def get_history(self, ticker: str, start: date, end: date) -> PriceHistory:
        symbol = ticker.upper()
        params = {"from": _unix(start), "to": _unix(end)}
        try:
            resp = self.client.get(f"/history/{symbol}", params=params)
        except httpx.HTTPError as e:
            logger.warning("History request failed for %s: %s", symbol, e)
            raise DataUnavailableError(symbol, str(e)) from e

        if not resp.is_success:
            raise DataUnavailableError(symbol, f"HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise DataUnavailableError(symbol, "malformed response") from e
        if not isinstance(payload, dict):
            raise DataUnavailableError(symbol, "malformed response")

        try:
            history = PriceHistory.model_validate({**payload, "ticker": symbol})
        except PydanticValidationError as e:
            raise DataUnavailableError(symbol, "malformed response") from e

        if not history.data:
            raise DataUnavailableError(symbol, "no data points")
        if history.is_mock:
            logger.info("Using mock price data for %s", symbol)
        return history

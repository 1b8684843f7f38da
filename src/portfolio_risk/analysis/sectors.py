import logging
import re
from collections.abc import Iterable

from portfolio_risk.config import KNOWN_SECTORS, SECTOR_KEYWORDS, TICKER_SECTOR
from portfolio_risk.models.analysis import SectorBucket
from portfolio_risk.models.holding import Holding

logger = logging.getLogger(__name__)

DEFAULT_SECTOR = "Other"

SECTOR_ALIASES: dict[str, str] = {
    "information technology": "IT",
    "technology": "IT",
    "software": "IT",
    "financial services": "Financials",
    "financial": "Financials",
    "finance": "Financials",
    "banking": "Financials",
    "banks": "Financials",
    "health care": "Healthcare",
    "pharmaceuticals": "Healthcare",
    "pharma": "Healthcare",
    "telecommunication": "Telecom",
    "telecommunications": "Telecom",
    "communication services": "Telecom",
    "automobile": "Auto",
    "automobiles": "Auto",
    "automotive": "Auto",
    "fmcg": "Consumer",
    "consumer goods": "Consumer",
    "consumer staples": "Consumer",
    "consumer discretionary": "Consumer",
    "basic materials": "Materials",
    "metals": "Materials",
    "oil & gas": "Energy",
    "power": "Energy",
    "realty": "Real Estate",
    "capital goods": "Industrials",
}

_CANONICAL = {s.lower(): s for s in KNOWN_SECTORS}


def _keyword_hit(text: str, keyword: str) -> bool:
    # Short keywords like "IT" or "LT" only count as whole words.
    if len(keyword) <= 3:
        pattern = rf"(?<![A-Z]){re.escape(keyword)}(?![A-Z])"
        return re.search(pattern, text) is not None
    return keyword in text


def canonical_sector(raw: str) -> str:
    key = " ".join(raw.strip().lower().split())
    if key in _CANONICAL:
        return _CANONICAL[key]
    if key in SECTOR_ALIASES:
        return SECTOR_ALIASES[key]
    return raw.strip()


def infer_sector_from_name(name_or_ticker: str) -> str:
    text = (name_or_ticker or "").upper()
    for sector, keywords in SECTOR_KEYWORDS:
        if any(_keyword_hit(text, kw) for kw in keywords):
            return sector
    return DEFAULT_SECTOR


def resolve_sector(ticker: str, name: str = "", explicit: str | None = None) -> str:
    """Explicit sector, then the lookup table, then keyword inference."""
    if explicit and explicit.strip():
        return canonical_sector(explicit)
    for key in (ticker.strip().upper(), name.strip().upper()):
        if key and key in TICKER_SECTOR:
            return TICKER_SECTOR[key]
    sector = infer_sector_from_name(name or ticker)
    if sector == DEFAULT_SECTOR and name and name.upper() != ticker.upper():
        sector = infer_sector_from_name(ticker)
    return sector


def sector_of(holding: Holding) -> str:
    return resolve_sector(holding.ticker, holding.name, holding.sector)


class SectorAnalyzer:
    def analyze_by_sector(self, holdings: Iterable[Holding]) -> list[SectorBucket]:
        groups: dict[str, list[Holding]] = {}
        for h in holdings:
            groups.setdefault(sector_of(h), []).append(h)

        total_value = sum(
            h.current_value for members in groups.values() for h in members
        )
        buckets: list[SectorBucket] = []
        for sector, members in groups.items():
            value = sum(h.current_value for h in members)
            pl = sum(h.total_pl for h in members)
            invested = sum(h.invested_amount for h in members)
            # Absent risk data counts as zero here; exclusion only applies to
            # the portfolio-level variance.
            avg_return = sum(h.annual_return or 0.0 for h in members) / len(members)
            avg_vol = sum(h.risk or 0.0 for h in members) / len(members)
            buckets.append(
                SectorBucket(
                    sector=sector,
                    total_value=value,
                    percentage=value / total_value * 100 if total_value > 0 else 0.0,
                    total_pl=pl,
                    total_pl_percent=pl / invested * 100 if invested > 0 else 0.0,
                    avg_return=avg_return,
                    avg_volatility=avg_vol,
                    holdings=members,
                )
            )

        buckets.sort(key=lambda b: (-b.percentage, b.sector))
        logger.debug("Grouped holdings into %d sectors", len(buckets))
        return buckets

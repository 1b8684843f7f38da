from enum import StrEnum

from pydantic import BaseModel, Field

from portfolio_risk.models.holding import Holding


class RiskLevel(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @staticmethod
    def from_volatility(volatility: float) -> "RiskLevel":
        if volatility < 0.15:
            return RiskLevel.LOW
        if volatility < 0.30:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH


class Significance(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @staticmethod
    def from_correlation(correlation: float) -> "Significance":
        strength = abs(correlation)
        if strength > 0.7:
            return Significance.HIGH
        if strength > 0.4:
            return Significance.MEDIUM
        return Significance.LOW


class DrawdownMethod(StrEnum):
    HISTORICAL = "historical"
    VOLATILITY = "volatility-approximation"


class Timeframe(StrEnum):
    ONE_MONTH = "1M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    THREE_YEARS = "3Y"
    FIVE_YEARS = "5Y"
    ALL = "ALL"

    @property
    def days(self) -> int | None:
        mapping = {
            Timeframe.ONE_MONTH: 30,
            Timeframe.SIX_MONTHS: 182,
            Timeframe.ONE_YEAR: 365,
            Timeframe.THREE_YEARS: 365 * 3,
            Timeframe.FIVE_YEARS: 365 * 5,
            Timeframe.ALL: None,
        }
        return mapping[self]


class SectorBucket(BaseModel):
    sector: str
    total_value: float = 0.0
    percentage: float = 0.0
    total_pl: float = 0.0
    total_pl_percent: float = 0.0
    avg_return: float = 0.0
    avg_volatility: float = 0.0
    holdings: list[Holding] = []


class CorrelationPair(BaseModel):
    ticker_a: str
    ticker_b: str
    correlation: float = Field(ge=-1.0, le=1.0)
    significance: Significance


class ValuePoint(BaseModel):
    date: str
    value: float


class AssetValue(BaseModel):
    name: str
    value: float


class PortfolioMetrics(BaseModel):
    """Portfolio-level ratios, all expressed as fractions (0.12 == 12%)."""

    annual_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    drawdown_method: DrawdownMethod = DrawdownMethod.VOLATILITY
    beta: float | None = None
    alpha: float | None = None


class PortfolioAnalysis(BaseModel):
    total_invested: float = 0.0
    current_value: float = 0.0
    total_pl: float = 0.0
    total_pl_percent: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW
    risk_free_rate: float = 0.0
    holdings: list[Holding] = []
    value_history: list[ValuePoint] = []
    metrics: PortfolioMetrics = PortfolioMetrics()
    sector_buckets: list[SectorBucket] = []
    correlation_pairs: list[CorrelationPair] = []
    diversification_score: int = 0
    data_quality_issues: list[str] = []
    mock_data_tickers: list[str] = []

    @property
    def is_partial(self) -> bool:
        return bool(self.data_quality_issues)

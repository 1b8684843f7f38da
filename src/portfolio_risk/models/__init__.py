from portfolio_risk.models.analysis import (
    AssetValue,
    CorrelationPair,
    PortfolioAnalysis,
    PortfolioMetrics,
    RiskLevel,
    SectorBucket,
    Significance,
    Timeframe,
    ValuePoint,
)
from portfolio_risk.models.holding import Holding, Transaction, TransactionType
from portfolio_risk.models.ingest import IngestResult

__all__ = [
    "AssetValue",
    "CorrelationPair",
    "Holding",
    "IngestResult",
    "PortfolioAnalysis",
    "PortfolioMetrics",
    "RiskLevel",
    "SectorBucket",
    "Significance",
    "Timeframe",
    "Transaction",
    "TransactionType",
    "ValuePoint",
]

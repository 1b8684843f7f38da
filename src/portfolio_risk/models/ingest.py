from enum import StrEnum

from pydantic import BaseModel

from portfolio_risk.models.holding import Holding, Transaction


class DiscoveryStrategy(StrEnum):
    CANONICAL = "canonical-csv"
    SECTION_SCAN = "section-scan"
    PATTERN = "pattern-fallback"


class IngestResult(BaseModel):
    holdings: list[Holding] = []
    warnings: list[str] = []
    strategy: DiscoveryStrategy | None = None
    rows_scanned: int = 0


class ParsedRow(BaseModel):
    row_number: int
    raw: dict[str, str] = {}
    transaction: Transaction | None = None
    errors: list[str] = []

    @property
    def ok(self) -> bool:
        return self.transaction is not None

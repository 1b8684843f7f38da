import asyncio
import logging
from collections.abc import Sequence

from portfolio_risk.config import IngestionLimits
from portfolio_risk.errors import FormatError
from portfolio_risk.ingestion.cells import RawGrid, RawRow, is_blank_row
from portfolio_risk.ingestion.chunked import (
    CancellationToken,
    ProgressCallback,
    ProgressTracker,
    process_in_chunks,
)
from portfolio_risk.ingestion.strategies import STRATEGIES, HoldingsTable, Strategy
from portfolio_risk.models.holding import Holding
from portfolio_risk.models.ingest import DiscoveryStrategy, IngestResult

logger = logging.getLogger(__name__)

NO_HOLDINGS_MESSAGE = (
    "No valid holdings found in the file. Please check your data format."
)


def merge_duplicates(holdings: Sequence[Holding]) -> tuple[list[Holding], list[str]]:
    """Collapse repeated tickers into one position with a weighted cost basis."""
    merged: dict[str, Holding] = {}
    warnings: list[str] = []
    for h in holdings:
        existing = merged.get(h.ticker)
        if existing is None:
            merged[h.ticker] = h
            continue
        quantity = existing.quantity + h.quantity
        avg_price = (existing.invested_amount + h.invested_amount) / quantity
        combined = existing.model_copy(
            update={"quantity": quantity, "avg_price": avg_price}
        )
        # Re-run validation so invested_amount follows the new cost basis.
        combined = Holding.model_validate(combined.model_dump())
        current_value = existing.current_value + h.current_value
        if current_value > 0:
            combined = combined.priced(current_value / quantity, current_value)
        merged[h.ticker] = combined
        warnings.append(f"Merged duplicate rows for {h.ticker}")
    return list(merged.values()), warnings


class StatementIngestor:
    """Turn a decoded grid into holdings, trying each discovery strategy in turn.

    Extraction runs in chunks so long statements can be cancelled between
    chunks and report progress. Each strategy attempt advances the progress
    through half of the remaining range; only the strategy that yields
    holdings reports 100, and the reported value never decreases.
    """

    def __init__(
        self,
        limits: IngestionLimits | None = None,
        strategies: Sequence[Strategy] = STRATEGIES,
    ) -> None:
        self.limits = limits or IngestionLimits()
        self.strategies = tuple(strategies)

    def ingest(
        self,
        grid: RawGrid,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> IngestResult:
        return asyncio.run(self.ingest_async(grid, on_progress, token))

    async def ingest_async(
        self,
        grid: RawGrid,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> IngestResult:
        tracker = ProgressTracker(on_progress)
        tracker.report(0)

        for strategy in self.strategies:
            if token is not None:
                token.raise_if_cancelled()
            tables = strategy(grid, self.limits)
            if not tables:
                logger.debug("Strategy %s found no tables", strategy.__name__)
                continue

            holdings, warnings, scanned = await self._extract(
                tables, tracker, token
            )
            if not holdings:
                logger.info("Strategy %s yielded no holdings", strategy.__name__)
                continue

            kind = tables[0].strategy
            if kind is DiscoveryStrategy.PATTERN:
                warnings.append(
                    "No holdings header found; rows were matched by numeric pattern"
                )
            holdings, merge_warnings = merge_duplicates(holdings)
            warnings.extend(merge_warnings)

            tracker.report(100)
            logger.info(
                "Ingested %d holdings via %s (%d rows scanned)",
                len(holdings),
                kind,
                scanned,
            )
            return IngestResult(
                holdings=holdings,
                warnings=warnings,
                strategy=kind,
                rows_scanned=scanned,
            )

        raise FormatError(NO_HOLDINGS_MESSAGE)

    async def _extract(
        self,
        tables: list[HoldingsTable],
        tracker: ProgressTracker,
        token: CancellationToken | None,
    ) -> tuple[list[Holding], list[str], int]:
        rows: list[tuple[int, RawRow, HoldingsTable]] = [
            (table.first_row + i, row, table)
            for table in tables
            for i, row in enumerate(table.rows)
        ]
        warnings: list[str] = []
        base = tracker.last

        def handle_chunk(
            chunk: Sequence[tuple[int, RawRow, HoldingsTable]], start: int
        ) -> list[Holding]:
            out: list[Holding] = []
            for index, row, table in chunk:
                if is_blank_row(row):
                    continue
                holding = table.parse_row(row)
                if holding is not None:
                    out.append(holding)
                elif table.strategy is not DiscoveryStrategy.PATTERN:
                    warnings.append(f"Skipped row {index + 1}: no usable holding data")
            return out

        span = (100 - base) / 2

        def on_chunk(percent: float) -> None:
            tracker.report(base + span * percent / 100)

        holdings = await process_in_chunks(
            rows, handle_chunk, self.limits.chunk_size, token, on_chunk
        )
        return holdings, warnings, len(rows)


def ingest(
    grid: RawGrid,
    limits: IngestionLimits | None = None,
    on_progress: ProgressCallback | None = None,
    token: CancellationToken | None = None,
) -> IngestResult:
    return StatementIngestor(limits).ingest(grid, on_progress, token)

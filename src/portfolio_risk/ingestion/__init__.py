import logging
from pathlib import Path

from portfolio_risk.config import IngestionLimits
from portfolio_risk.ingestion.chunked import CancellationToken, ProgressCallback
from portfolio_risk.ingestion.ingestor import StatementIngestor
from portfolio_risk.ingestion.reader import read_grid
from portfolio_risk.ingestion.transactions import parse_transactions
from portfolio_risk.ingestion.validation import validate_row_count, validate_upload
from portfolio_risk.models.ingest import IngestResult, ParsedRow

logger = logging.getLogger(__name__)


def ingest_upload(
    data: bytes,
    filename: str,
    limits: IngestionLimits | None = None,
    mime_type: str | None = None,
    on_progress: ProgressCallback | None = None,
    token: CancellationToken | None = None,
) -> IngestResult:
    """Validate → decode → row-count check → holdings discovery."""
    limits = limits or IngestionLimits()
    validate_upload(filename, len(data), limits, mime_type)
    grid = read_grid(data, filename)
    rows = validate_row_count(grid, limits)
    logger.info("Read %s: %d non-blank rows", filename, rows)
    return StatementIngestor(limits).ingest(grid, on_progress, token)


def load_statement(
    path: str | Path,
    limits: IngestionLimits | None = None,
    on_progress: ProgressCallback | None = None,
    token: CancellationToken | None = None,
) -> IngestResult:
    path = Path(path)
    return ingest_upload(
        path.read_bytes(), path.name, limits, on_progress=on_progress, token=token
    )


def load_transactions(
    path: str | Path,
    limits: IngestionLimits | None = None,
    mapping: dict[str, str] | None = None,
    dayfirst: bool = False,
) -> list[ParsedRow]:
    """Read a trade-by-trade export; row bounds do not apply to these files."""
    path = Path(path)
    data = path.read_bytes()
    validate_upload(path.name, len(data), limits or IngestionLimits())
    grid = read_grid(data, path.name)
    return parse_transactions(grid, mapping, dayfirst)

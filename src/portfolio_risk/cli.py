import argparse
import asyncio
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from rich.console import Console

from portfolio_risk.analysis.aggregator import HoldingsAggregator
from portfolio_risk.analysis.portfolio import PortfolioAnalyzer
from portfolio_risk.analysis.risk import slice_history
from portfolio_risk.config import AnalysisConfig
from portfolio_risk.data.market_data import MarketDataProvider
from portfolio_risk.errors import PortfolioRiskError
from portfolio_risk.ingestion import load_statement, load_transactions
from portfolio_risk.ingestion.transactions import valid_transactions
from portfolio_risk.models.analysis import PortfolioAnalysis, Timeframe
from portfolio_risk.models.holding import Holding
from portfolio_risk.models.ingest import IngestResult
from portfolio_risk.output.renderer import ReportRenderer

logger = logging.getLogger(__name__)
console = Console()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="portfolio-risk",
        description="Broker statement import and portfolio risk analytics",
    )
    sub = p.add_subparsers(dest="command")

    # --- ingest ---
    ingest = sub.add_parser("ingest", help="Parse a holdings statement")
    ingest.add_argument("file", type=Path, help="CSV or Excel statement")
    ingest.add_argument(
        "--transactions",
        action="store_true",
        help="Treat the file as a trade-by-trade transaction log",
    )
    ingest.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    # --- analyze ---
    analyze = sub.add_parser("analyze", help="Run portfolio risk analysis")
    analyze.add_argument("file", type=Path, help="CSV or Excel statement")
    analyze.add_argument(
        "--transactions",
        action="store_true",
        help="Treat the file as a trade-by-trade transaction log",
    )
    analyze.add_argument(
        "--source",
        choices=("http", "yfinance"),
        default=None,
        help="Price history source (default: http)",
    )
    analyze.add_argument(
        "--history-url",
        default=None,
        help="Base URL of the price-history service",
    )
    analyze.add_argument(
        "--risk-free-rate",
        type=float,
        default=None,
        help="Annual risk-free rate as a fraction (e.g. 0.065)",
    )
    analyze.add_argument(
        "--benchmark",
        default=None,
        help="Benchmark ticker for beta/alpha ('' to disable)",
    )
    analyze.add_argument(
        "--timeframe",
        choices=[t.value for t in Timeframe],
        default=Timeframe.ALL.value,
        help="Slice of the value history to display",
    )
    analyze.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON instead of a report",
    )
    analyze.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return p


def load_config(args: argparse.Namespace) -> AnalysisConfig:
    """Defaults, overridden by the environment, overridden by flags."""
    from dotenv import load_dotenv

    load_dotenv()

    overrides: dict = {}
    if os.environ.get("PRICE_HISTORY_URL"):
        overrides["history_url"] = os.environ["PRICE_HISTORY_URL"]
    if os.environ.get("RISK_FREE_RATE"):
        overrides["risk_free_rate"] = float(os.environ["RISK_FREE_RATE"])

    if args.history_url:
        overrides["history_url"] = args.history_url
    if args.source:
        overrides["price_source"] = args.source
    if args.risk_free_rate is not None:
        overrides["risk_free_rate"] = args.risk_free_rate
    if args.benchmark is not None:
        overrides["benchmark_ticker"] = args.benchmark or None
    return AnalysisConfig(**overrides)


def load_holdings(path: Path, transactions: bool) -> IngestResult:
    if not transactions:
        with console.status(f"[cyan]Reading {path.name}...") as status:

            def progress(pct: int) -> None:
                status.update(f"[cyan]Reading {path.name}... {pct}%")

            return load_statement(path, on_progress=progress)

    with console.status(f"[cyan]Reading transactions from {path.name}..."):
        rows = load_transactions(path)
    warnings = [f"Row {r.row_number}: {'; '.join(r.errors)}" for r in rows if not r.ok]
    return IngestResult(
        holdings=HoldingsAggregator().aggregate(valid_transactions(rows)),
        warnings=warnings,
        rows_scanned=len(rows),
    )


async def run_analysis(
    holdings: list[Holding], config: AnalysisConfig
) -> PortfolioAnalysis:
    provider = MarketDataProvider(config)
    executor = ThreadPoolExecutor(max_workers=config.max_workers)
    loop = asyncio.get_running_loop()
    try:
        with console.status(
            f"[cyan]Fetching price history for {len(holdings)} holdings..."
        ):
            return await PortfolioAnalyzer(config).analyze(
                holdings, provider, loop, executor
            )
    finally:
        provider.close()
        executor.shutdown(wait=False)


def _run_ingest(args: argparse.Namespace) -> None:
    """Execute the ingest subcommand."""
    result = load_holdings(args.file, args.transactions)
    ReportRenderer(console).render_ingest(result)


def _run_analyze(args: argparse.Namespace) -> None:
    """Execute the analyze subcommand."""
    config = load_config(args)
    result = load_holdings(args.file, args.transactions)
    for w in result.warnings:
        logger.info(w)

    analysis = asyncio.run(run_analysis(result.holdings, config))
    history = slice_history(analysis.value_history, Timeframe(args.timeframe))

    if args.json:
        analysis.value_history = history
        print(analysis.model_dump_json(indent=2))
        return
    ReportRenderer(console).render(analysis, history)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        if args.command == "ingest":
            _run_ingest(args)
        elif args.command == "analyze":
            _run_analyze(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(1)
    except PortfolioRiskError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()

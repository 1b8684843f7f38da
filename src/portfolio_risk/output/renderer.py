from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from portfolio_risk.models.analysis import PortfolioAnalysis, ValuePoint
from portfolio_risk.models.holding import Holding
from portfolio_risk.models.ingest import IngestResult
from portfolio_risk.output.formatters import (
    fmt_fraction,
    fmt_money,
    fmt_number,
    fmt_pct,
    fmt_quantity,
    pl_color,
    risk_color,
    score_bar,
    significance_color,
    sparkline,
)

MAX_CORRELATION_ROWS = 10


class ReportRenderer:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_ingest(self, result: IngestResult) -> None:
        self.console.print()
        self.console.print(
            Panel(
                f"[bold]{len(result.holdings)}[/bold] holdings from "
                f"{result.rows_scanned} rows  ({result.strategy})",
                title="Statement Import",
                style="cyan",
            )
        )
        self._render_holdings(result.holdings, with_risk=False)
        self._render_warnings(result.warnings)

    def render(
        self, analysis: PortfolioAnalysis, history: list[ValuePoint] | None = None
    ) -> None:
        self._render_header(analysis)
        self._render_metrics(analysis)
        self._render_holdings(analysis.holdings, with_risk=True)
        self._render_sectors(analysis)
        self._render_correlations(analysis)
        self._render_history(history if history is not None else analysis.value_history)
        self._render_data_quality(analysis)

    def _render_header(self, a: PortfolioAnalysis) -> None:
        color = pl_color(a.total_pl)
        self.console.print()
        self.console.print(
            Panel(
                f"Invested [bold]{fmt_money(a.total_invested)}[/bold]  "
                f"Value [bold]{fmt_money(a.current_value)}[/bold]  "
                f"P&L [{color}]{fmt_money(a.total_pl)} "
                f"({fmt_pct(a.total_pl_percent)})[/{color}]",
                title="Portfolio Risk Analysis",
                style="cyan",
            )
        )

    def _render_metrics(self, a: PortfolioAnalysis) -> None:
        m = a.metrics
        table = Table(title="Risk Metrics", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")

        table.add_row(
            "Annual Return",
            fmt_fraction(m.annual_return),
            "Volatility",
            fmt_fraction(m.volatility),
        )
        table.add_row(
            "Sharpe Ratio",
            fmt_number(m.sharpe_ratio),
            "Max Drawdown",
            f"{fmt_fraction(m.max_drawdown)} ({m.drawdown_method})",
        )
        table.add_row(
            "Risk Level",
            Text(a.risk_level.value, style=risk_color(a.risk_level)),
            "Risk-free Rate",
            fmt_fraction(a.risk_free_rate),
        )
        if m.beta is not None:
            table.add_row("Beta", fmt_number(m.beta), "Alpha", fmt_fraction(m.alpha))
        table.add_row(
            "Diversification",
            f"{a.diversification_score}/100",
            "",
            score_bar(a.diversification_score),
        )
        self.console.print(table)

    def _render_holdings(self, holdings: list[Holding], with_risk: bool) -> None:
        table = Table(title="Holdings", show_header=True)
        table.add_column("Ticker", style="cyan")
        table.add_column("Name")
        table.add_column("Sector")
        table.add_column("Qty", justify="right")
        table.add_column("Avg Price", justify="right")
        table.add_column("Invested", justify="right")
        if with_risk:
            table.add_column("Value", justify="right")
            table.add_column("P&L %", justify="right")
            table.add_column("Return", justify="right")
            table.add_column("Volatility", justify="right")

        for h in holdings:
            row: list[str | Text] = [
                h.ticker,
                h.name[:30],
                h.sector or "",
                fmt_quantity(h.quantity),
                fmt_money(h.avg_price),
                fmt_money(h.invested_amount),
            ]
            if with_risk:
                row += [
                    fmt_money(h.current_value),
                    Text(fmt_pct(h.total_pl_percent), style=pl_color(h.total_pl)),
                    fmt_fraction(h.annual_return),
                    fmt_fraction(h.risk),
                ]
            table.add_row(*row)
        self.console.print(table)

    def _render_sectors(self, a: PortfolioAnalysis) -> None:
        if not a.sector_buckets:
            return
        table = Table(title="Sector Exposure", show_header=True)
        table.add_column("Sector", style="cyan")
        table.add_column("Holdings", justify="right")
        table.add_column("Value", justify="right")
        table.add_column("Weight", justify="right")
        table.add_column("P&L %", justify="right")
        table.add_column("Avg Return", justify="right")
        table.add_column("Avg Vol", justify="right")
        for b in a.sector_buckets:
            table.add_row(
                b.sector,
                str(len(b.holdings)),
                fmt_money(b.total_value),
                f"{b.percentage:.1f}%",
                Text(fmt_pct(b.total_pl_percent), style=pl_color(b.total_pl)),
                fmt_fraction(b.avg_return),
                fmt_fraction(b.avg_volatility),
            )
        self.console.print(table)

    def _render_correlations(self, a: PortfolioAnalysis) -> None:
        if not a.correlation_pairs:
            return
        table = Table(title="Strongest Correlations", show_header=True)
        table.add_column("Pair", style="cyan")
        table.add_column("Correlation", justify="right")
        table.add_column("Significance")
        top = sorted(a.correlation_pairs, key=lambda p: -abs(p.correlation))
        for p in top[:MAX_CORRELATION_ROWS]:
            table.add_row(
                f"{p.ticker_a} / {p.ticker_b}",
                fmt_number(p.correlation, 3),
                Text(p.significance.value, style=significance_color(p.significance)),
            )
        self.console.print(table)

    def _render_history(self, history: list[ValuePoint]) -> None:
        if not history:
            return
        values = [p.value for p in history]
        self.console.print(
            f"[cyan]Value history[/cyan] {history[0].date} → {history[-1].date}  "
            f"{sparkline(values)}  {fmt_money(values[-1])}"
        )

    def _render_data_quality(self, a: PortfolioAnalysis) -> None:
        if a.data_quality_issues:
            self.console.print(
                Panel(
                    "Price history unavailable for: "
                    + ", ".join(a.data_quality_issues)
                    + "\nThese holdings are valued at cost and excluded from "
                    "risk aggregates.",
                    title="Data Quality",
                    style="yellow",
                )
            )
        if a.mock_data_tickers:
            self.console.print(
                "[yellow]Mock price data used for: "
                f"{', '.join(a.mock_data_tickers)}[/yellow]"
            )

    def _render_warnings(self, warnings: list[str]) -> None:
        for w in warnings:
            self.console.print(f"[yellow]• {w}[/yellow]")

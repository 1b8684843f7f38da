import io

from rich.console import Console

from portfolio_risk.analysis.correlation import make_pair
from portfolio_risk.models.analysis import (
    PortfolioAnalysis,
    PortfolioMetrics,
    SectorBucket,
    ValuePoint,
)
from portfolio_risk.models.holding import Holding
from portfolio_risk.models.ingest import DiscoveryStrategy, IngestResult
from portfolio_risk.output.renderer import ReportRenderer


def render_to_text(fn, *args) -> str:
    buf = io.StringIO()
    renderer = ReportRenderer(Console(file=buf, width=200, force_terminal=False))
    getattr(renderer, fn)(*args)
    return buf.getvalue()


def sample_analysis() -> PortfolioAnalysis:
    tcs = Holding(ticker="TCS", quantity=10, avg_price=90, sector="IT").priced(100)
    gone = Holding(ticker="GONE", quantity=1, avg_price=5).at_cost_basis("HTTP 404")
    return PortfolioAnalysis(
        total_invested=905,
        current_value=1005,
        total_pl=100,
        total_pl_percent=11.05,
        holdings=[tcs, gone],
        value_history=[
            ValuePoint(date="2024-06-27", value=990),
            ValuePoint(date="2024-06-28", value=1005),
        ],
        metrics=PortfolioMetrics(annual_return=0.12, volatility=0.2, beta=1.1),
        sector_buckets=[SectorBucket(sector="IT", percentage=100, holdings=[tcs])],
        correlation_pairs=[make_pair("TCS", "INFY", 0.82)],
        diversification_score=55,
        data_quality_issues=["GONE"],
        mock_data_tickers=["TCS"],
    )


class TestRender:
    def test_sections_present(self):
        out = render_to_text("render", sample_analysis())
        assert "Portfolio Risk Analysis" in out
        assert "Risk Metrics" in out
        assert "12.00%" in out
        assert "Beta" in out
        assert "55/100" in out
        assert "Sector Exposure" in out
        assert "TCS / INFY" in out
        assert "Price history unavailable for: GONE" in out
        assert "Mock price data used for: TCS" in out

    def test_sliced_history(self):
        history = [ValuePoint(date="2024-06-28", value=1005)]
        out = render_to_text("render", sample_analysis(), history)
        assert "2024-06-28 → 2024-06-28" in out

    def test_clean_analysis_has_no_quality_panel(self):
        out = render_to_text("render", PortfolioAnalysis())
        assert "Data Quality" not in out
        assert "Beta" not in out


class TestRenderIngest:
    def test_summary_and_warnings(self):
        result = IngestResult(
            holdings=[Holding(ticker="INFY", quantity=3, avg_price=1500)],
            warnings=["Merged duplicate rows for INFY"],
            strategy=DiscoveryStrategy.SECTION_SCAN,
            rows_scanned=12,
        )
        out = render_to_text("render_ingest", result)
        assert "Statement Import" in out
        assert "section-scan" in out
        assert "INFY" in out
        assert "4,500.00" in out
        assert "Merged duplicate rows for INFY" in out

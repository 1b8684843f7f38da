from portfolio_risk.models.analysis import RiskLevel, Significance
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


class TestFmtPct:
    def test_positive(self):
        assert fmt_pct(12.345) == "+12.35%"

    def test_negative(self):
        assert fmt_pct(-5.1) == "-5.10%"

    def test_none(self):
        assert fmt_pct(None) == "N/A"


class TestFmtFraction:
    def test_fraction_scaled(self):
        assert fmt_fraction(0.1234) == "12.34%"

    def test_none(self):
        assert fmt_fraction(None) == "N/A"


class TestFmtNumber:
    def test_basic(self):
        assert fmt_number(1234.567) == "1,234.57"

    def test_none(self):
        assert fmt_number(None) == "N/A"

    def test_zero_decimals(self):
        assert fmt_number(42, 0) == "42"


class TestFmtMoney:
    def test_negative(self):
        assert fmt_money(-1500.5) == "-1,500.50"

    def test_none(self):
        assert fmt_money(None) == "N/A"


class TestFmtQuantity:
    def test_whole(self):
        assert fmt_quantity(1200.0) == "1,200"

    def test_fractional(self):
        assert fmt_quantity(0.125) == "0.125"


class TestColors:
    def test_pl_color(self):
        assert pl_color(1) == "green"
        assert pl_color(-1) == "red"
        assert pl_color(0) == "white"

    def test_risk_color(self):
        assert risk_color(RiskLevel.HIGH) == "red"

    def test_significance_color(self):
        assert significance_color(Significance.LOW) == "green"


class TestScoreBar:
    def test_half(self):
        assert score_bar(50, width=10) == "█████░░░░░"

    def test_clamped(self):
        assert score_bar(150, width=4) == "████"
        assert score_bar(-5, width=4) == "░░░░"


class TestSparkline:
    def test_empty(self):
        assert sparkline([]) == ""

    def test_flat(self):
        assert sparkline([3, 3, 3]) == "▁▁▁"

    def test_range(self):
        assert sparkline([0, 7]) == "▁█"

from portfolio_risk.models.analysis import RiskLevel, Significance


def fmt_pct(value: float | None, decimals: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{value:+.{decimals}f}%"


def fmt_fraction(value: float | None, decimals: int = 2) -> str:
    """Render a ratio stored as a fraction (0.12) as a percentage."""
    if value is None:
        return "N/A"
    return f"{value * 100:.{decimals}f}%"


def fmt_number(value: float | None, decimals: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{value:,.{decimals}f}"


def fmt_money(value: float | None) -> str:
    if value is None:
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}{abs(value):,.2f}"


def fmt_quantity(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.4f}".rstrip("0").rstrip(".")


def pl_color(value: float) -> str:
    if value > 0:
        return "green"
    if value < 0:
        return "red"
    return "white"


def risk_color(level: RiskLevel) -> str:
    colors = {
        RiskLevel.LOW: "green",
        RiskLevel.MEDIUM: "yellow",
        RiskLevel.HIGH: "red",
    }
    return colors.get(level, "white")


def significance_color(significance: Significance) -> str:
    colors = {
        Significance.LOW: "green",
        Significance.MEDIUM: "yellow",
        Significance.HIGH: "bold red",
    }
    return colors.get(significance, "white")


def score_bar(score: int, width: int = 20) -> str:
    filled = round(max(0, min(100, score)) / 100 * width)
    return "█" * filled + "░" * (width - filled)


def sparkline(values: list[float]) -> str:
    blocks = "▁▂▃▄▅▆▇█"
    if not values:
        return ""
    lo, hi = min(values), max(values)
    if hi == lo:
        return blocks[0] * len(values)
    scale = (len(blocks) - 1) / (hi - lo)
    return "".join(blocks[round((v - lo) * scale)] for v in values)

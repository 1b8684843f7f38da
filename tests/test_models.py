from datetime import date

import pytest
from pydantic import ValidationError

from portfolio_risk.models.analysis import (
    CorrelationPair,
    RiskLevel,
    Significance,
    Timeframe,
)
from portfolio_risk.models.holding import (
    Holding,
    Instrument,
    Transaction,
    TransactionType,
)
from portfolio_risk.models.price import PriceHistory


class TestHolding:
    def test_ticker_normalized_and_invested_derived(self):
        h = Holding(ticker=" tcs ", quantity=10, avg_price=3500)
        assert h.ticker == "TCS"
        assert h.name == "TCS"
        assert h.invested_amount == 35000

    def test_empty_ticker_rejected(self):
        with pytest.raises(ValidationError):
            Holding(ticker="  ", quantity=1, avg_price=1)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            Holding(ticker="A", quantity=-1, avg_price=1)

    def test_is_valid(self):
        assert Holding(ticker="A", quantity=1, avg_price=1).is_valid
        assert not Holding(ticker="A", quantity=0, avg_price=1).is_valid
        assert not Holding(ticker="A", quantity=1, avg_price=0).is_valid

    def test_priced(self):
        h = Holding(ticker="A", quantity=10, avg_price=100).priced(120)
        assert h.current_value == 1200
        assert h.total_pl == 200
        assert h.total_pl_percent == pytest.approx(20.0)

    def test_priced_keeps_explicit_value(self):
        h = Holding(ticker="A", quantity=10, avg_price=100).priced(120, 1250)
        assert h.current_value == 1250
        assert h.total_pl == 250

    def test_at_cost_basis(self):
        h = Holding(ticker="A", quantity=4, avg_price=25, risk=0.2, annual_return=0.1)
        flagged = h.at_cost_basis("no data")
        assert flagged.error == "no data"
        assert flagged.risk is None
        assert flagged.annual_return is None
        assert flagged.current_value == flagged.invested_amount == 100
        assert flagged.total_pl == 0
        assert not flagged.has_risk_data

    def test_instrument_parse(self):
        assert Instrument.parse("fno") == Instrument.FNO
        assert Instrument.parse("Currency") == Instrument.CURRENCY
        assert Instrument.parse("") == Instrument.EQUITY
        assert Instrument.parse(None) == Instrument.EQUITY


class TestTransaction:
    def test_frozen(self):
        t = Transaction(
            ticker="aapl",
            type=TransactionType.BUY,
            quantity=1,
            price=10,
            trade_date=date(2024, 1, 2),
        )
        assert t.ticker == "AAPL"
        with pytest.raises(ValidationError):
            t.quantity = 5

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Transaction(
                ticker="A",
                type=TransactionType.SELL,
                quantity=0,
                price=10,
                trade_date=date(2024, 1, 2),
            )


class TestClassifications:
    def test_risk_level(self):
        assert RiskLevel.from_volatility(0.10) == RiskLevel.LOW
        assert RiskLevel.from_volatility(0.15) == RiskLevel.MEDIUM
        assert RiskLevel.from_volatility(0.29) == RiskLevel.MEDIUM
        assert RiskLevel.from_volatility(0.30) == RiskLevel.HIGH

    def test_significance(self):
        assert Significance.from_correlation(-0.8) == Significance.HIGH
        assert Significance.from_correlation(0.7) == Significance.MEDIUM
        assert Significance.from_correlation(0.5) == Significance.MEDIUM
        assert Significance.from_correlation(0.4) == Significance.LOW

    def test_timeframe_days(self):
        assert Timeframe.ONE_MONTH.days == 30
        assert Timeframe.FIVE_YEARS.days == 1825
        assert Timeframe.ALL.days is None

    def test_correlation_bounds(self):
        with pytest.raises(ValidationError):
            CorrelationPair(
                ticker_a="A",
                ticker_b="B",
                correlation=1.5,
                significance=Significance.HIGH,
            )


class TestPriceHistory:
    def test_mock_alias_and_closes(self):
        history = PriceHistory.model_validate(
            {
                "ticker": "A",
                "isMock": True,
                "data": [
                    {"date": "2024-01-01", "close": 10},
                    {"date": "2024-01-02", "close": None},
                    {"date": "2024-01-03", "close": -1},
                    {"date": "2024-01-04", "close": 11},
                ],
            }
        )
        assert history.is_mock
        assert history.closes() == [10.0, 11.0]
        assert history.dates() == ["2024-01-01", "2024-01-04"]

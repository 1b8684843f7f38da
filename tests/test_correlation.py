import asyncio
import math

import pytest

from portfolio_risk.analysis.correlation import CorrelationMatrixBuilder, pearson
from portfolio_risk.errors import DataUnavailableError
from portfolio_risk.models.analysis import Significance
from portfolio_risk.models.holding import Holding

WAVE = [100 + 5 * math.sin(i / 2) for i in range(30)]
MIRROR = [100 - 5 * math.sin(i / 2) for i in range(30)]


def holding(ticker, error=None):
    h = Holding(ticker=ticker, quantity=1, avg_price=1)
    return h.at_cost_basis(error) if error else h


class TestPearson:
    def test_identical_series(self):
        assert pearson(WAVE, WAVE) == pytest.approx(1.0)

    def test_scaled_series(self):
        assert pearson(WAVE, [p * 3 for p in WAVE]) == pytest.approx(1.0)

    def test_constant_series_is_zero(self):
        assert pearson(WAVE, [50.0] * 30) == 0.0

    def test_too_short(self):
        assert pearson([1, 2], [1, 2]) == 0.0

    def test_tail_aligned(self):
        assert pearson([999.0] * 10 + WAVE, WAVE) == pytest.approx(1.0)

    def test_bounded(self):
        value = pearson(WAVE, MIRROR)
        assert -1.0 <= value < 0


class TestBuildMatrix:
    def test_pairs_for_every_combination(self):
        histories = {"A": WAVE, "B": MIRROR, "C": WAVE}
        pairs = CorrelationMatrixBuilder().build_matrix(
            [holding("A"), holding("B"), holding("C")], histories
        )

        assert [(p.ticker_a, p.ticker_b) for p in pairs] == [
            ("A", "B"),
            ("A", "C"),
            ("B", "C"),
        ]
        assert pairs[1].significance == Significance.HIGH

    def test_excludes_errors_and_short_histories(self):
        histories = {"A": WAVE, "B": WAVE[:5], "C": WAVE, "D": WAVE}
        pairs = CorrelationMatrixBuilder().build_matrix(
            [holding("A"), holding("B"), holding("C"), holding("D", "no data")],
            histories,
        )
        assert [(p.ticker_a, p.ticker_b) for p in pairs] == [("A", "C")]

    def test_duplicate_tickers_paired_once(self):
        pairs = CorrelationMatrixBuilder().build_matrix(
            [holding("A"), holding("A"), holding("B")], {"A": WAVE, "B": WAVE}
        )
        assert len(pairs) == 1


class TestBuildMatrixAsync:
    def test_failed_fetch_excludes_only_its_pairs(self):
        calls: list[str] = []

        async def fetch(ticker):
            calls.append(ticker)
            await asyncio.sleep(0)
            if ticker == "BAD":
                raise DataUnavailableError(ticker, "HTTP 500")
            return WAVE

        builder = CorrelationMatrixBuilder()
        pairs = asyncio.run(
            builder.build_matrix_async(
                [holding("A"), holding("BAD"), holding("C")], fetch
            )
        )

        assert [(p.ticker_a, p.ticker_b) for p in pairs] == [("A", "C")]
        assert sorted(calls) == ["A", "BAD", "C"]

    def test_single_ticker_has_no_pairs(self):
        async def fetch(ticker):
            raise DataUnavailableError(ticker, "down")

        builder = CorrelationMatrixBuilder()
        assert asyncio.run(builder.build_matrix_async([holding("A")], fetch)) == []

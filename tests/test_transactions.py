from datetime import date

import pytest

from portfolio_risk.errors import FormatError
from portfolio_risk.ingestion import load_transactions
from portfolio_risk.ingestion.transactions import (
    auto_map_columns,
    normalize_type,
    parse_transactions,
    valid_transactions,
)
from portfolio_risk.models.holding import TransactionType


class TestAutoMap:
    def test_common_headers(self):
        m = auto_map_columns(["Date", "Ticker", "Type", "Qty", "Avg Price"])
        assert m == {
            "date": "Date",
            "ticker": "Ticker",
            "type": "Type",
            "quantity": "Qty",
            "price": "Avg Price",
        }

    def test_candidate_priority(self):
        m = auto_map_columns(["Name", "Symbol", "Side", "Shares", "Rate", "Brokerage"])
        assert m["ticker"] == "Symbol"
        assert m["type"] == "Side"
        assert m["price"] == "Rate"
        assert m["fees"] == "Brokerage"


class TestNormalizeType:
    def test_buy_aliases(self):
        for v in ("BUY", "b", " Purchase ", "long"):
            assert normalize_type(v) == TransactionType.BUY

    def test_sell_aliases(self):
        for v in ("SELL", "s", "sale", "Short"):
            assert normalize_type(v) == TransactionType.SELL

    def test_unknown(self):
        assert normalize_type("hold") is None
        assert normalize_type(None) is None


class TestParseTransactions:
    HEADER = ["Date", "Ticker", "Type", "Qty", "Price", "Fees"]

    def test_valid_row(self):
        rows = parse_transactions(
            [self.HEADER, ["2024-01-02", "aapl", "buy", "10", "100.5", "1.5"]]
        )
        assert len(rows) == 1
        assert rows[0].ok
        tx = rows[0].transaction
        assert tx.ticker == "AAPL"
        assert tx.type == TransactionType.BUY
        assert tx.quantity == 10
        assert tx.price == 100.5
        assert tx.fees == 1.5
        assert tx.trade_date == date(2024, 1, 2)

    def test_row_errors_collected(self):
        rows = parse_transactions(
            [self.HEADER, ["not a date", "", "hold", "-1", "x", ""]]
        )
        assert not rows[0].ok
        assert rows[0].errors == [
            "Invalid or missing date",
            "Missing ticker/name",
            "Invalid type (BUY/SELL)",
            "Invalid quantity",
            "Invalid price",
        ]
        assert rows[0].row_number == 2

    def test_missing_required_column(self):
        with pytest.raises(FormatError, match="Missing required columns"):
            parse_transactions([["Date", "Ticker"], ["2024-01-02", "A"]])

    def test_explicit_mapping(self):
        grid = [
            ["When", "What", "Dir", "N", "Px"],
            ["2024-03-01", "MSFT", "S", "2", "400"],
        ]
        mapping = {
            "date": "When",
            "ticker": "What",
            "type": "Dir",
            "quantity": "N",
            "price": "Px",
        }
        rows = parse_transactions(grid, mapping)
        assert valid_transactions(rows)[0].type == TransactionType.SELL

    def test_dayfirst(self):
        grid = [self.HEADER, ["03/02/2024", "A", "BUY", "1", "1", ""]]
        rows = parse_transactions(grid, dayfirst=True)
        assert rows[0].transaction.trade_date == date(2024, 2, 3)

    def test_load_from_disk(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_text(
            "Date,Ticker,Type,Qty,Price\n"
            "2024-01-02,TCS,BUY,10,3500\n"
            "2024-01-03,TCS,SELL,4,3600\n"
        )
        rows = load_transactions(path)
        assert [r.transaction.type for r in rows] == [
            TransactionType.BUY,
            TransactionType.SELL,
        ]

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from portfolio_risk.analysis.sectors import resolve_sector
from portfolio_risk.models.analysis import AssetValue, ValuePoint
from portfolio_risk.models.holding import Holding, Transaction, TransactionType

logger = logging.getLogger(__name__)


def _canonical_order(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(
        transactions,
        key=lambda t: (t.trade_date, t.ticker, t.type, t.quantity, t.price, t.fees),
    )


@dataclass
class _Position:
    name: str = ""
    buy_qty: float = 0.0
    buy_amount: float = 0.0
    buy_fees: float = 0.0
    sell_qty: float = 0.0
    last_price: float = 0.0

    @property
    def net_qty(self) -> float:
        return max(0.0, self.buy_qty - self.sell_qty)

    @property
    def avg_price(self) -> float:
        return self.buy_amount / self.buy_qty if self.buy_qty > 0 else 0.0

    def apply(self, t: Transaction) -> None:
        if not self.name and t.name:
            self.name = t.name
        if t.type is TransactionType.BUY:
            self.buy_qty += t.quantity
            self.buy_amount += t.quantity * t.price
            self.buy_fees += t.fees
        else:
            self.sell_qty += t.quantity
        if t.price > 0:
            self.last_price = t.price


class HoldingsAggregator:
    """Fold a transaction log into per-ticker positions.

    Every method sorts its input canonically first, so the result does not
    depend on the order in which transactions were supplied. Sells reduce
    quantity but never the cost basis, and a position never goes below zero.
    """

    def _positions(self, transactions: Iterable[Transaction]) -> dict[str, _Position]:
        positions: dict[str, _Position] = {}
        for t in _canonical_order(transactions):
            positions.setdefault(t.ticker, _Position()).apply(t)
        return positions

    def aggregate(self, transactions: Iterable[Transaction]) -> list[Holding]:
        positions = self._positions(transactions)
        holdings = []
        for ticker in sorted(positions):
            p = positions[ticker]
            name = p.name or ticker
            holdings.append(
                Holding(
                    ticker=ticker,
                    name=name,
                    quantity=p.net_qty,
                    avg_price=p.avg_price,
                    sector=resolve_sector(ticker, name),
                )
            )
        logger.debug("Aggregated %d positions", len(holdings))
        return holdings

    def daily_portfolio_value(
        self, transactions: Iterable[Transaction]
    ) -> list[ValuePoint]:
        """Portfolio value at the last traded price after each trade date."""
        ordered = _canonical_order(transactions)
        positions: dict[str, _Position] = {}
        points: list[ValuePoint] = []
        i = 0
        while i < len(ordered):
            day = ordered[i].trade_date
            while i < len(ordered) and ordered[i].trade_date == day:
                t = ordered[i]
                positions.setdefault(t.ticker, _Position()).apply(t)
                i += 1
            total = sum(p.net_qty * p.last_price for p in positions.values())
            points.append(ValuePoint(date=day.isoformat(), value=max(0.0, total)))
        return points

    def allocation(self, transactions: Iterable[Transaction]) -> list[AssetValue]:
        positions = self._positions(transactions)
        return [
            AssetValue(name=ticker, value=p.net_qty * p.last_price)
            for ticker, p in sorted(positions.items())
            if p.net_qty > 0
        ]

    def performance_by_asset(
        self, transactions: Iterable[Transaction]
    ) -> list[AssetValue]:
        """Return % of each open position, buy fees included in cost."""
        out: list[AssetValue] = []
        for ticker, p in sorted(self._positions(transactions).items()):
            if p.net_qty <= 0:
                continue
            avg_cost = (p.buy_amount + p.buy_fees) / p.buy_qty if p.buy_qty > 0 else 0.0
            invested = p.net_qty * avg_cost
            current = p.net_qty * p.last_price
            pct = (current - invested) / invested * 100 if invested > 0 else 0.0
            out.append(AssetValue(name=ticker, value=pct))
        out.sort(key=lambda a: -a.value)
        return out

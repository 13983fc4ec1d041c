from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date

from tradekernel.core.types import ClosedTrade, EquityPoint, Position

logger = logging.getLogger(__name__)


class Portfolio:
    """Cash, open positions (one per code), closed trades and the equity curve.

    Total equity is ``cash + sum(|quantity| * price)``: entries of either
    direction move their full notional out of cash, so open positions are
    carried at their absolute size.
    """

    def __init__(self, initial_capital: float) -> None:
        self.initial_capital = initial_capital
        self.cash: float = initial_capital
        self.positions: dict[str, Position] = {}
        self.closed_trades: list[ClosedTrade] = []
        self.equity_curve: list[EquityPoint] = []

    def has_position(self, code: str) -> bool:
        return code in self.positions

    def get_position(self, code: str) -> Position | None:
        return self.positions.get(code)

    @property
    def position_count(self) -> int:
        return len(self.positions)

    def add_position(self, position: Position) -> bool:
        if position.code in self.positions:
            logger.warning("Position already open for %s; ignoring add", position.code)
            return False
        self.positions[position.code] = position
        return True

    def remove_position(self, code: str) -> Position | None:
        return self.positions.pop(code, None)

    def record_trade(self, trade: ClosedTrade) -> None:
        self.closed_trades.append(trade)

    def total_equity(self, prices: Mapping[str, float]) -> float:
        """Cash plus open positions marked at ``prices`` (entry price if unpriced)."""
        market_value = sum(
            p.market_value(prices.get(code, p.entry_price))
            for code, p in self.positions.items()
        )
        return self.cash + market_value

    def record_equity(self, when: date, equity: float) -> None:
        self.equity_curve.append(EquityPoint(date=when, equity=equity))

    @property
    def realized_pnl(self) -> float:
        return sum(t.pnl for t in self.closed_trades)

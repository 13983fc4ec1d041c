"""Core value types shared by the indicator, rule and portfolio layers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

Direction = Literal["long", "short"]
ExitReason = Literal["signal", "stop_loss", "take_profit"]


@dataclass(frozen=True, slots=True)
class Bar:
    code: str
    exchange: str
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3


@dataclass(slots=True)
class Position:
    """An open position. Quantity is signed: positive long, negative short.

    stop_loss_price and take_profit_price are 0.0 when the trigger is disabled.
    """

    code: str
    exchange: str
    quantity: int
    entry_price: float
    entry_date: date
    stop_loss_price: float = 0.0
    take_profit_price: float = 0.0
    entry_commission: float = 0.0

    @property
    def direction(self) -> Direction:
        return "long" if self.quantity > 0 else "short"

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0

    def market_value(self, price: float) -> float:
        return abs(self.quantity) * price

    def unrealized_pnl(self, price: float) -> float:
        return self.quantity * (price - self.entry_price)


@dataclass(frozen=True, slots=True)
class ClosedTrade:
    code: str
    exchange: str
    quantity: int
    entry_price: float
    entry_date: date
    exit_price: float
    exit_date: date
    pnl: float
    exit_reason: ExitReason = "signal"

    @property
    def direction(self) -> Direction:
        return "long" if self.quantity > 0 else "short"

    @property
    def is_winner(self) -> bool:
        # Zero PnL is a loss, not breakeven.
        return self.pnl > 0

    @property
    def duration_days(self) -> int:
        return (self.exit_date - self.entry_date).days


@dataclass(frozen=True, slots=True)
class EquityPoint:
    date: date
    equity: float

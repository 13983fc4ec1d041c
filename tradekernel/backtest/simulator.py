from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date

from tradekernel.core.types import ClosedTrade, Direction, ExitReason, Position
from tradekernel.execution.costs import CostModel
from tradekernel.portfolio.tracker import Portfolio
from tradekernel.strategy.base import Strategy

logger = logging.getLogger(__name__)


class BacktestSimulator:
    """Applies entries, exits and stop/target triggers to a Portfolio.

    All fills happen at the supplied price shifted by slippage against the
    trader; commission is charged on each fill's notional.
    """

    def __init__(self, portfolio: Portfolio, costs: CostModel | None = None) -> None:
        self._portfolio = portfolio
        self._costs = costs or CostModel()

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    def enter_long(
        self, code: str, exchange: str, price: float, when: date, strategy: Strategy,
    ) -> Position | None:
        return self._enter("long", code, exchange, price, when, strategy)

    def enter_short(
        self, code: str, exchange: str, price: float, when: date, strategy: Strategy,
    ) -> Position | None:
        return self._enter("short", code, exchange, price, when, strategy)

    def _enter(
        self,
        direction: Direction,
        code: str,
        exchange: str,
        price: float,
        when: date,
        strategy: Strategy,
    ) -> Position | None:
        pf = self._portfolio
        if pf.has_position(code):
            return None
        if pf.position_count >= strategy.max_positions:
            logger.debug("[%s] max_positions=%d reached", code, strategy.max_positions)
            return None

        fill = self._costs.fill_price(price, "buy" if direction == "long" else "sell")
        if fill <= 0:
            return None

        available = pf.cash * strategy.position_size
        qty = min(
            math.floor(available / fill),
            self._costs.max_affordable_quantity(pf.cash, fill),
        )
        if qty <= 0:
            logger.debug("[%s] cash %.2f too small for a fill at %.4f", code, pf.cash, fill)
            return None

        notional = qty * fill
        commission = self._costs.commission(notional)
        pf.cash -= notional + commission

        sl_pct = strategy.stop_loss_pct / 100.0
        tp_pct = strategy.take_profit_pct / 100.0
        if direction == "long":
            stop_loss = fill * (1 - sl_pct) if sl_pct > 0 else 0.0
            take_profit = fill * (1 + tp_pct) if tp_pct > 0 else 0.0
        else:
            stop_loss = fill * (1 + sl_pct) if sl_pct > 0 else 0.0
            take_profit = fill * (1 - tp_pct) if tp_pct > 0 else 0.0

        position = Position(
            code=code,
            exchange=exchange,
            quantity=qty if direction == "long" else -qty,
            entry_price=fill,
            entry_date=when,
            stop_loss_price=stop_loss,
            take_profit_price=take_profit,
            entry_commission=commission,
        )
        pf.add_position(position)
        logger.info(
            "[%s] ENTER %s qty=%d @ %.4f (SL=%.4f, TP=%.4f, cash=%.2f)",
            code, direction, qty, fill, stop_loss, take_profit, pf.cash,
        )
        return position

    def exit_position(
        self, code: str, price: float, when: date, reason: ExitReason = "signal",
    ) -> ClosedTrade | None:
        pf = self._portfolio
        pos = pf.remove_position(code)
        if pos is None:
            return None

        fill = self._costs.fill_price(price, "sell" if pos.is_long else "buy")
        # Signed quantity flips the sign of the move for shorts.
        gross = pos.quantity * (fill - pos.entry_price)
        exit_commission = self._costs.commission(abs(pos.quantity) * fill)
        pf.cash += abs(pos.quantity) * pos.entry_price + gross - exit_commission

        trade = ClosedTrade(
            code=pos.code,
            exchange=pos.exchange,
            quantity=pos.quantity,
            entry_price=pos.entry_price,
            entry_date=pos.entry_date,
            exit_price=fill,
            exit_date=when,
            pnl=gross - pos.entry_commission - exit_commission,
            exit_reason=reason,
        )
        pf.record_trade(trade)
        logger.info(
            "[%s] EXIT %s qty=%d @ %.4f reason=%s pnl=%.2f cash=%.2f",
            code, pos.direction, abs(pos.quantity), fill, reason, trade.pnl, pf.cash,
        )
        return trade

    @staticmethod
    def trigger_reason(position: Position, price: float) -> ExitReason | None:
        """Stop-loss or take-profit hit at ``price``; stop-loss wins a tie."""
        sl = position.stop_loss_price
        tp = position.take_profit_price
        if position.is_long:
            if sl > 0 and price <= sl:
                return "stop_loss"
            if tp > 0 and price >= tp:
                return "take_profit"
        else:
            if sl > 0 and price >= sl:
                return "stop_loss"
            if tp > 0 and price <= tp:
                return "take_profit"
        return None

    def check_triggers(self, prices: Mapping[str, float], when: date) -> list[ClosedTrade]:
        closed: list[ClosedTrade] = []
        for code, position in list(self._portfolio.positions.items()):
            price = prices.get(code)
            if price is None:
                continue
            reason = self.trigger_reason(position, price)
            if reason is None:
                continue
            trade = self.exit_position(code, price, when, reason)
            if trade is not None:
                closed.append(trade)
        return closed

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from tradekernel.backtest.simulator import BacktestSimulator
from tradekernel.core.config import Settings
from tradekernel.core.exceptions import DataError, InvariantViolationError
from tradekernel.core.types import Bar, ClosedTrade, EquityPoint
from tradekernel.execution.costs import CostModel
from tradekernel.indicators.base import IndicatorSeries
from tradekernel.indicators.engine import IndicatorEngine
from tradekernel.portfolio.performance import PerformanceMetrics, calculate_metrics
from tradekernel.portfolio.tracker import Portfolio
from tradekernel.strategy.base import Strategy
from tradekernel.strategy.evaluator import evaluate

logger = logging.getLogger(__name__)

EQUITY_COLUMNS = ["date", "equity", "drawdown"]
TRADE_COLUMNS = [
    "code", "exchange", "direction", "quantity", "entry_date", "entry_price",
    "exit_date", "exit_price", "pnl", "exit_reason", "duration_days",
]


@dataclass
class BacktestResult:
    strategy_name: str
    code: str
    portfolio: Portfolio
    metrics: PerformanceMetrics

    @property
    def equity_curve(self) -> list[EquityPoint]:
        return self.portfolio.equity_curve

    @property
    def trades(self) -> list[ClosedTrade]:
        return self.portfolio.closed_trades

    @property
    def final_equity(self) -> float:
        if not self.equity_curve:
            return self.portfolio.initial_capital
        return self.equity_curve[-1].equity

    def to_dict(self) -> dict:
        """JSON-safe view of the run for report writers."""
        return {
            "strategy": self.strategy_name,
            "code": self.code,
            "initial_capital": self.portfolio.initial_capital,
            "final_cash": self.portfolio.cash,
            "final_equity": self.final_equity,
            "open_positions": [
                {
                    "code": p.code,
                    "direction": p.direction,
                    "quantity": p.quantity,
                    "entry_price": p.entry_price,
                    "entry_date": p.entry_date.isoformat(),
                }
                for p in self.portfolio.positions.values()
            ],
            "trades": [_trade_to_dict(t) for t in self.trades],
            "equity_curve": [
                {"date": p.date.isoformat(), "equity": p.equity}
                for p in self.equity_curve
            ],
            "metrics": _make_json_safe(self.metrics.as_dict()),
        }

    def to_json(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def equity_frame(self) -> pd.DataFrame:
        """Equity curve with the running drawdown from peak as a fraction."""
        rows = []
        peak = 0.0
        for point in self.equity_curve:
            peak = max(peak, point.equity)
            drawdown = (peak - point.equity) / peak if peak > 0 else 0.0
            rows.append({"date": point.date, "equity": point.equity, "drawdown": drawdown})
        return pd.DataFrame(rows, columns=EQUITY_COLUMNS)

    def trades_frame(self) -> pd.DataFrame:
        rows = [
            {
                "code": t.code,
                "exchange": t.exchange,
                "direction": t.direction,
                "quantity": abs(t.quantity),
                "entry_date": t.entry_date,
                "entry_price": t.entry_price,
                "exit_date": t.exit_date,
                "exit_price": t.exit_price,
                "pnl": t.pnl,
                "exit_reason": t.exit_reason,
                "duration_days": t.duration_days,
            }
            for t in self.trades
        ]
        return pd.DataFrame(rows, columns=TRADE_COLUMNS)


class BacktestEngine:
    """Runs one strategy over one instrument's bars.

    Per bar: stop-loss/take-profit triggers at the close, then the exit rule
    for the open position's direction, then entry rules when flat (long
    before short), then the equity point and the accounting check.
    """

    def __init__(self, strategy: Strategy, settings: Settings | None = None) -> None:
        self._strategy = strategy
        self._settings = settings or Settings()
        self._costs = CostModel.from_config(self._settings.costs)
        self._indicator_engine = IndicatorEngine()
        for spec in strategy.required_indicators:
            self._indicator_engine.register(spec)

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def settings(self) -> Settings:
        return self._settings

    def run(self, bars: Sequence[Bar]) -> BacktestResult | None:
        if not bars:
            logger.warning("[%s] No bars supplied; nothing to run", self._strategy.name)
            return None
        _validate_bars(bars)

        config = self._settings.backtest
        strategy = self._strategy
        code = bars[0].code
        portfolio = Portfolio(config.initial_capital)
        simulator = BacktestSimulator(portfolio, self._costs)
        indicators = self._indicator_engine.compute(bars)
        allow_short = config.allow_shorting and strategy.entry_short is not None

        logger.info(
            "[%s] Backtest %s: %d bars %s..%s, capital=%.2f, indicators=%s",
            strategy.name, code, len(bars), bars[0].date, bars[-1].date,
            config.initial_capital, self._indicator_engine.keys,
        )

        for i, bar in enumerate(bars):
            prices = {bar.code: bar.close}

            for trade in simulator.check_triggers(prices, bar.date):
                logger.debug("[%s] %s triggered at bar %d", strategy.name, trade.exit_reason, i)

            position = portfolio.get_position(bar.code)
            if position is not None:
                exit_rule = strategy.exit_long if position.is_long else strategy.exit_short
                if exit_rule is not None and evaluate(exit_rule, bars, indicators, i):
                    simulator.exit_position(bar.code, bar.close, bar.date)

            if not portfolio.has_position(bar.code):
                if evaluate(strategy.entry_long, bars, indicators, i):
                    simulator.enter_long(bar.code, bar.exchange, bar.close, bar.date, strategy)
                elif allow_short and evaluate(strategy.entry_short, bars, indicators, i):
                    simulator.enter_short(bar.code, bar.exchange, bar.close, bar.date, strategy)

            equity = portfolio.total_equity(prices)
            portfolio.record_equity(bar.date, equity)
            self._verify_invariant(i, portfolio, prices, equity)

        metrics = calculate_metrics(
            portfolio.closed_trades, portfolio.equity_curve, config.risk_free_rate,
            initial_capital=config.initial_capital,
        )
        logger.info(
            "[%s] Done: trades=%d final_equity=%.2f return=%.2f%%",
            strategy.name, metrics.total_trades, metrics.final_equity,
            metrics.total_return * 100.0,
        )
        return BacktestResult(
            strategy_name=strategy.name,
            code=code,
            portfolio=portfolio,
            metrics=metrics,
        )

    def compute_indicators(self, bars: Sequence[Bar]) -> dict[str, IndicatorSeries]:
        return self._indicator_engine.compute(bars)

    def _verify_invariant(
        self, index: int, portfolio: Portfolio, prices: dict[str, float], recorded: float,
    ) -> None:
        expected = portfolio.cash + sum(
            abs(p.quantity) * prices.get(code, p.entry_price)
            for code, p in portfolio.positions.items()
        )
        tolerance = self._settings.backtest.invariant_tolerance
        if not math.isfinite(recorded) or abs(expected - recorded) > tolerance:
            logger.error(
                "[%s] Equity invariant broken at bar %d: expected=%.4f recorded=%.4f",
                self._strategy.name, index, expected, recorded,
            )
            raise InvariantViolationError(index, expected, recorded)


def _validate_bars(bars: Sequence[Bar]) -> None:
    code = bars[0].code
    for i in range(1, len(bars)):
        if bars[i].code != code:
            raise DataError(f"Mixed instruments in bar series: {code} and {bars[i].code}")
        if bars[i].date <= bars[i - 1].date:
            raise DataError(
                f"Bars for {code} must be strictly ascending by date "
                f"(index {i}: {bars[i - 1].date} -> {bars[i].date})"
            )


def _trade_to_dict(t: ClosedTrade) -> dict:
    return {
        "code": t.code,
        "exchange": t.exchange,
        "direction": t.direction,
        "quantity": t.quantity,
        "entry_date": t.entry_date.isoformat(),
        "entry_price": t.entry_price,
        "exit_date": t.exit_date.isoformat(),
        "exit_price": t.exit_price,
        "pnl": t.pnl,
        "exit_reason": t.exit_reason,
    }


def _make_json_safe(d: dict) -> dict:
    result = {}
    for k, v in d.items():
        if isinstance(v, float) and (v == float("inf") or v == float("-inf")):
            result[k] = str(v)
        else:
            result[k] = v
    return result

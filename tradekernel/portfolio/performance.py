from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass

from tradekernel.core.types import ClosedTrade, EquityPoint

TRADING_DAYS = 252
DAYS_PER_YEAR = 365.25


@dataclass(frozen=True)
class PerformanceMetrics:
    total_return: float = 0.0
    annualized_return: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_duration: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    total_pnl: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    average_trade_duration: float = 0.0
    final_equity: float = 0.0

    def as_dict(self) -> dict:
        return asdict(self)


def _period_returns(equity: Sequence[float]) -> list[float]:
    returns: list[float] = []
    for i in range(1, len(equity)):
        if equity[i - 1] > 0:
            returns.append((equity[i] - equity[i - 1]) / equity[i - 1])
    return returns


def _sharpe(returns: Sequence[float], rf_period: float) -> float:
    if len(returns) < 2:
        return 0.0
    mean_r = sum(returns) / len(returns)
    var_r = sum((r - mean_r) ** 2 for r in returns) / len(returns)
    std_r = math.sqrt(var_r)
    if std_r <= 0:
        return 0.0
    return (mean_r - rf_period) / std_r * math.sqrt(TRADING_DAYS)


def _sortino(returns: Sequence[float], rf_period: float) -> float:
    if not returns:
        return 0.0
    excess = [r - rf_period for r in returns]
    mean_excess = sum(excess) / len(excess)
    # Downside deviation over the losing periods only
    downside_sq = [e ** 2 for e in excess if e < 0]
    if not downside_sq:
        return 0.0
    downside_std = math.sqrt(sum(downside_sq) / len(downside_sq))
    if downside_std <= 0:
        return 0.0
    return mean_excess / downside_std * math.sqrt(TRADING_DAYS)


def _drawdown(curve: Sequence[EquityPoint], start: float) -> tuple[float, float]:
    """Largest peak-to-trough fraction and longest time under water, in days."""
    max_dd = 0.0
    max_duration = 0.0
    peak = start
    peak_date = curve[0].date
    for point in curve:
        if point.equity >= peak:
            peak = point.equity
            peak_date = point.date
            continue
        dd = (peak - point.equity) / peak if peak > 0 else 0.0
        max_dd = max(max_dd, dd)
        max_duration = max(max_duration, float((point.date - peak_date).days))
    return max_dd, max_duration


def _annualized(total_return: float, curve: Sequence[EquityPoint]) -> float:
    days = (curve[-1].date - curve[0].date).days
    growth = 1.0 + total_return
    if days <= 0 or growth <= 0:
        return total_return
    return growth ** (DAYS_PER_YEAR / days) - 1.0


def calculate_metrics(
    trades: Sequence[ClosedTrade],
    equity_curve: Sequence[EquityPoint],
    risk_free_rate: float = 0.0,
    initial_capital: float | None = None,
) -> PerformanceMetrics:
    """Summary statistics over closed trades and the equity curve.

    Returns and drawdowns are measured from ``initial_capital``, so costs paid
    on the first bar count; without it the first equity point is the base.
    Sharpe and Sortino use
    per-bar returns annualised over 252 periods, with ``risk_free_rate``
    given as an annual fraction. A trade with zero PnL counts as losing.
    Neither input is modified.
    """
    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p <= 0]
    gross_wins = sum(wins)
    gross_losses = abs(sum(losses))

    if gross_losses > 0:
        profit_factor = gross_wins / gross_losses
    elif gross_wins > 0:
        profit_factor = float("inf")
    else:
        profit_factor = 0.0

    trade_stats = dict(
        total_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(pnls) if pnls else 0.0,
        profit_factor=profit_factor,
        total_pnl=sum(pnls),
        average_win=gross_wins / len(wins) if wins else 0.0,
        average_loss=sum(losses) / len(losses) if losses else 0.0,
        largest_win=max(wins) if wins else 0.0,
        largest_loss=min(losses) if losses else 0.0,
        average_trade_duration=(
            sum(t.duration_days for t in trades) / len(trades) if trades else 0.0
        ),
    )

    if not equity_curve:
        return PerformanceMetrics(**trade_stats)

    start = equity_curve[0].equity if initial_capital is None else initial_capital
    final = equity_curve[-1].equity
    total_return = (final - start) / start if start > 0 else 0.0
    annualized = _annualized(total_return, equity_curve)

    returns = _period_returns([p.equity for p in equity_curve])
    rf_period = risk_free_rate / TRADING_DAYS
    max_dd, max_dd_duration = _drawdown(equity_curve, start)

    return PerformanceMetrics(
        total_return=total_return,
        annualized_return=annualized,
        sharpe_ratio=_sharpe(returns, rf_period),
        sortino_ratio=_sortino(returns, rf_period),
        calmar_ratio=annualized / max_dd if max_dd > 0 else 0.0,
        max_drawdown=max_dd,
        max_drawdown_duration=max_dd_duration,
        final_equity=final,
        **trade_stats,
    )

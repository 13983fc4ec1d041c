from tradekernel.backtest.engine import BacktestEngine, BacktestResult
from tradekernel.backtest.simulator import BacktestSimulator

__all__ = ["BacktestEngine", "BacktestResult", "BacktestSimulator"]

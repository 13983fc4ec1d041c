"""Core exception hierarchy for tradekernel.

Validation problems in the indicator and rule layers are reported as
None/False returns; the exceptions below cover configuration, strategy
construction, input data and broken accounting.
"""


class TradeKernelError(Exception):
    """Base exception class for all tradekernel errors.

    Callers can catch every framework error with a single except clause.
    """


class ConfigError(TradeKernelError):
    """Configuration-related errors.

    Raised when a configuration file cannot be turned into valid settings.
    """


class DataError(TradeKernelError):
    """Bar data errors.

    Raised when a bar sequence is malformed, e.g. not ascending by date or
    mixing instrument codes.
    """


class StrategyError(TradeKernelError):
    """Strategy definition errors.

    Raised when a strategy is built with missing rules or out-of-range
    sizing, stop-loss or take-profit parameters.
    """


class InvariantViolationError(TradeKernelError):
    """Portfolio accounting no longer balances.

    Raised when cash plus the marked value of open positions differs from the
    recorded total equity. The run cannot continue once this happens.

    Attributes:
        bar_index: Index of the bar at which the check failed.
        expected: Equity recomputed from cash and open positions.
        actual: Equity recorded by the portfolio.
    """

    def __init__(self, bar_index: int, expected: float, actual: float):
        """Initialize InvariantViolationError with the mismatching values.

        Args:
            bar_index: Index of the bar being processed.
            expected: cash + sum(|qty| * close) for the bar.
            actual: Total equity reported by the portfolio.
        """
        super().__init__(
            f"Equity invariant broken at bar {bar_index}: "
            f"expected {expected:.4f}, recorded {actual:.4f}"
        )
        self.bar_index = bar_index
        self.expected = expected
        self.actual = actual

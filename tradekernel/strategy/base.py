from __future__ import annotations

from dataclasses import dataclass

from tradekernel.core.exceptions import StrategyError
from tradekernel.indicators.base import IndicatorSpec
from tradekernel.strategy.rules import IndicatorOperand, Rule, indicator_operands


@dataclass(frozen=True)
class Strategy:
    """A rule-based strategy definition.

    Attributes:
        name: Strategy name used in logs and reports.
        entry_long: Rule opening a long position when flat.
        exit_long: Rule closing an open long position.
        entry_short: Optional rule opening a short position when flat.
        exit_short: Optional rule closing an open short position.
        position_size: Fraction of cash committed per entry, in (0, 1].
        stop_loss_pct: Stop distance from entry in percent; 0 disables.
        take_profit_pct: Target distance from entry in percent; 0 disables.
        max_positions: Cap on simultaneously open positions.
        description: Free text.
    """

    name: str
    entry_long: Rule
    exit_long: Rule
    entry_short: Rule | None = None
    exit_short: Rule | None = None
    position_size: float = 0.25
    stop_loss_pct: float = 0.0
    take_profit_pct: float = 0.0
    max_positions: int = 1
    description: str = ""

    def __post_init__(self) -> None:
        if self.entry_long is None or self.exit_long is None:
            raise StrategyError(f"[{self.name}] entry_long and exit_long rules are required")
        if not 0 < self.position_size <= 1:
            raise StrategyError(f"[{self.name}] position_size must be in (0, 1], got {self.position_size}")
        if self.stop_loss_pct < 0 or self.take_profit_pct < 0:
            raise StrategyError(f"[{self.name}] stop_loss_pct and take_profit_pct must not be negative")
        if self.max_positions < 1:
            raise StrategyError(f"[{self.name}] max_positions must be at least 1")

    @property
    def has_short_rules(self) -> bool:
        return self.entry_short is not None

    @property
    def rules(self) -> list[Rule]:
        return [
            r for r in (self.entry_long, self.exit_long, self.entry_short, self.exit_short)
            if r is not None
        ]

    def indicator_operands(self) -> list[IndicatorOperand]:
        """Distinct indicator operands across every rule, by canonical key."""
        seen: dict[str, IndicatorOperand] = {}
        for rule in self.rules:
            for operand in indicator_operands(rule):
                seen.setdefault(operand.key, operand)
        return list(seen.values())

    @property
    def required_indicators(self) -> list[IndicatorSpec]:
        return [op.spec for op in self.indicator_operands()]

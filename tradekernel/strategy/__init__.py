from tradekernel.strategy.base import Strategy
from tradekernel.strategy.evaluator import evaluate, resolve_operand
from tradekernel.strategy.rules import Operand, Rule, RuleType, indicator_key

__all__ = [
    "Strategy",
    "evaluate",
    "resolve_operand",
    "Operand",
    "Rule",
    "RuleType",
    "indicator_key",
]

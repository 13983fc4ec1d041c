from tradekernel.execution.costs import CostModel

__all__ = ["CostModel"]

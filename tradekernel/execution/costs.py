"""Fill pricing: slippage against the trader, then commission on the notional."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from tradekernel.core.config import CostConfig

Side = Literal["buy", "sell"]


@dataclass(frozen=True)
class CostModel:
    commission_flat: float = 0.0
    commission_pct: float = 0.0
    slippage_pct: float = 0.0

    @classmethod
    def from_config(cls, config: CostConfig) -> CostModel:
        return cls(
            commission_flat=config.commission_flat,
            commission_pct=config.commission_pct,
            slippage_pct=config.slippage_pct,
        )

    def fill_price(self, price: float, side: Side) -> float:
        """Buys fill higher and sells fill lower by ``slippage_pct``."""
        slip = self.slippage_pct / 100.0
        if side == "buy":
            return price * (1.0 + slip)
        return price * (1.0 - slip)

    def commission(self, notional: float) -> float:
        return self.commission_flat + self.commission_pct / 100.0 * abs(notional)

    def max_affordable_quantity(self, cash: float, fill_price: float) -> int:
        """Largest whole quantity whose notional plus commission fits in ``cash``."""
        if fill_price <= 0:
            return 0
        per_unit = fill_price * (1.0 + self.commission_pct / 100.0)
        return max(int((cash - self.commission_flat) // per_unit), 0)

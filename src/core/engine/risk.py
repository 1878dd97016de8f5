"""
Position risk checks.

This module evaluates a position's equity against its maintenance margin.
"""

from src.core.engine.funding import FundingAccumulator
from src.core.engine.margin import maintenance_requirement, position_equity
from src.core.models.market import Market
from src.core.models.position import Position


class PositionRisk:
    """Liquidation test for a single position."""

    @staticmethod
    def equity(position: Position, market: Market, price: int) -> int:
        """Collateral + unrealized PnL - unsettled funding at price."""
        return position_equity(
            position.collateral,
            position.base_size,
            position.entry_price,
            price,
            FundingAccumulator.pending_payment(position, market),
        )

    @staticmethod
    def maintenance_requirement(position: Position, market: Market, price: int) -> int:
        """Maintenance margin of the position at price (rounded up)."""
        return maintenance_requirement(position.base_size, price, market.maintenance_margin_bps)

    @classmethod
    def health(cls, position: Position, market: Market, price: int) -> tuple[int, int]:
        """Return (equity, maintenance requirement) of the position."""
        return (
            cls.equity(position, market, price),
            cls.maintenance_requirement(position, market, price),
        )

    @classmethod
    def is_liquidatable(cls, position: Position, market: Market, price: int) -> bool:
        """Check if equity has fallen below the maintenance requirement.

        Empty positions are never liquidatable.
        """
        if position.is_empty:
            return False
        equity, requirement = cls.health(position, market, price)
        return equity < requirement

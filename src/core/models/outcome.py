"""
Result of one engine call.
"""

from dataclasses import dataclass

from src.core.models.market import Market
from src.core.models.position import Position
from src.core.models.trade_record import TradeRecord
from src.core.models.user_account import UserAccount


@dataclass(frozen=True)
class TradeOutcome:
    """New position, user and market records plus the audit record.

    The host commits the three records together; the inputs the engine was
    called with are never modified.
    """

    position: Position
    user: UserAccount
    market: Market
    record: TradeRecord

    @property
    def margin_delta(self) -> int:
        """Collateral moved from free collateral into the position (negative = released)."""
        return self.record.margin_delta

    @property
    def collateral_returned(self) -> int:
        """Collateral credited back to free collateral on a decrease."""
        return self.record.collateral_returned

    @property
    def realized_pnl(self) -> int:
        """PnL realized by the call (zero for pure increases)."""
        return self.record.realized_pnl

    @property
    def funding_payment(self) -> int:
        """Funding settled against the position (positive = paid)."""
        return self.record.funding_payment

    @property
    def bad_debt(self) -> int:
        """Loss beyond posted collateral absorbed by the protocol."""
        return self.record.bad_debt

    @property
    def liquidation_fee(self) -> int:
        """Fee owed to the liquidator by a liquidation."""
        return self.record.liquidation_fee

    @property
    def insurance_penalty(self) -> int:
        """Penalty paid into the market's insurance fund by a liquidation."""
        return self.record.insurance_penalty

    @property
    def insurance_draw(self) -> int:
        """Part of the bad debt covered by the insurance fund."""
        return self.record.insurance_draw

"""
Position trading transitions.

This module computes the same-direction (open/increase) and reducing
(decrease/close) legs of a trade. Each leg takes working copies of the
position, user and market records and returns new ones; nothing is
committed here.
"""

from dataclasses import dataclass, replace

from loguru import logger

from src.core.engine.margin import (
    closed_fraction_margin,
    liquidation_charge,
    notional_value,
    realized_pnl,
    required_margin,
    weighted_entry_price,
)
from src.core.engine.validators import TradeValidator
from src.core.models.market import Market
from src.core.models.position import Position
from src.core.models.user_account import UserAccount
from src.core.types.fixed_point import Width, checked, checked_add, checked_sub, sign


@dataclass(frozen=True)
class LegResult:
    """Records after one leg of a trade plus the amounts it moved."""

    position: Position
    user: UserAccount
    market: Market
    margin_delta: int = 0
    collateral_returned: int = 0
    realized_pnl: int = 0
    bad_debt: int = 0
    liquidation_fee: int = 0
    insurance_penalty: int = 0
    insurance_draw: int = 0


class PositionTrading:
    """Open/increase and decrease/close arithmetic."""

    @staticmethod
    def increase(
        position: Position,
        user: UserAccount,
        market: Market,
        price: int,
        signed_delta: int,
        leverage: int,
    ) -> LegResult:
        """Add exposure in the position's own direction (or open it).

        The entry price becomes the floored size-weighted average and the
        position's collateral is topped up (or released) to the initial
        margin of the whole resulting position at the execution price.

        Args:
            position: Position with funding already settled
            user: Owner's account
            market: Market the position trades in
            price: Execution price
            signed_delta: Size to add, signed in the position's direction
            leverage: Validated leverage

        Returns:
            LegResult with margin_delta = new collateral - old collateral

        Raises:
            InsufficientCollateralError: If the extra margin exceeds free collateral
            ArithmeticOverflowError: If a result does not fit its width
        """
        new_base = checked(position.base_size + signed_delta, Width.INT64, "base size")
        new_entry = weighted_entry_price(
            position.base_size, position.entry_price, signed_delta, price
        )
        required = required_margin(new_base, price, leverage)
        margin_delta = required - position.collateral

        TradeValidator.check_sufficient_collateral(
            margin_delta, user, f"adding {signed_delta} to {position.market_id} at {price}"
        )
        if margin_delta >= 0:
            new_user = user.debit(margin_delta, "margin")
        else:
            new_user = user.credit(-margin_delta)
        if position.is_empty:
            new_user = new_user.with_position_opened()

        open_interest = checked_add(
            market.open_interest,
            notional_value(signed_delta, price),
            Width.INT128,
            "open interest",
        )

        return LegResult(
            position=replace(
                position, base_size=new_base, entry_price=new_entry, collateral=required
            ),
            user=new_user,
            market=replace(market, open_interest=open_interest),
            margin_delta=margin_delta,
        )

    @staticmethod
    def reduce(
        position: Position,
        user: UserAccount,
        market: Market,
        price: int,
        close_amount: int | None,
    ) -> LegResult:
        """Remove exposure from an open position.

        `close_amount` is clamped to the position size; None closes fully.
        The returned collateral is clamped at zero and any loss beyond the
        posted share is reported as bad debt.

        Raises:
            NoOpenPositionError: If the position is empty
        """
        TradeValidator.require_open_position(position)

        size = position.size
        amount = size if close_amount is None else min(close_amount, size)

        pnl = realized_pnl(position.base_size, position.entry_price, amount, price)
        released = closed_fraction_margin(position.collateral, amount, position.base_size)
        gross = released + pnl
        returned = max(gross, 0)
        bad_debt = max(-gross, 0)

        new_base = position.base_size - sign(position.base_size) * amount
        if new_base == 0:
            new_position = replace(position, base_size=0, entry_price=0, collateral=0)
            new_user = user.credit(returned).with_position_closed()
        else:
            new_position = replace(
                position, base_size=new_base, collateral=position.collateral - released
            )
            new_user = user.credit(returned)

        open_interest = checked_sub(
            market.open_interest, notional_value(amount, price), Width.INT128, "open interest"
        )

        return LegResult(
            position=new_position,
            user=new_user,
            market=replace(market, open_interest=open_interest),
            margin_delta=-released,
            collateral_returned=returned,
            realized_pnl=pnl,
            bad_debt=bad_debt,
        )

    @staticmethod
    def liquidate(
        position: Position,
        user: UserAccount,
        market: Market,
        price: int,
    ) -> LegResult:
        """Close the whole position and charge the liquidation fee and penalty.

        Both charges are basis points of the closed notional. What is left of
        collateral + pnl after them goes back to the owner. A shortfall is
        drawn from the market's insurance fund; when the fund cannot cover it
        the fund is emptied and the market enters emergency mode. The penalty
        is added to the fund after the draw.

        Returns:
            LegResult whose liquidation_fee is owed to the liquidator

        Raises:
            NoOpenPositionError: If the position is empty
            ArithmeticOverflowError: If a result does not fit its width
        """
        TradeValidator.require_open_position(position)

        amount = position.size
        pnl = realized_pnl(position.base_size, position.entry_price, amount, price)
        fee = liquidation_charge(amount, price, market.params.liquidation_fee_bps)
        penalty = liquidation_charge(amount, price, market.params.liquidation_penalty_bps)
        remaining = position.collateral + pnl - fee - penalty

        fund = market.insurance_fund
        emergency = market.emergency
        bad_debt = draw = 0
        if remaining < 0:
            bad_debt = -remaining
            draw = min(bad_debt, fund)
            fund -= draw
            if draw < bad_debt:
                emergency = True
                logger.error(
                    f"Insurance fund of {market.market_id} exhausted: "
                    f"bad_debt={bad_debt}, covered={draw}"
                )
            remaining = 0
        fund = checked(fund + penalty, Width.UINT64, "insurance fund")

        open_interest = checked_sub(
            market.open_interest, notional_value(amount, price), Width.INT128, "open interest"
        )

        return LegResult(
            position=replace(position, base_size=0, entry_price=0, collateral=0),
            user=user.credit(remaining).with_position_closed(),
            market=replace(
                market, open_interest=open_interest, insurance_fund=fund, emergency=emergency
            ),
            margin_delta=-position.collateral,
            collateral_returned=remaining,
            realized_pnl=pnl,
            bad_debt=bad_debt,
            liquidation_fee=fee,
            insurance_penalty=penalty,
            insurance_draw=draw,
        )

"""
Funding accumulator.

Each market carries a cumulative funding index that grows by
`funding_rate` per second. Positions snapshot the index when touched and
settle the difference lazily:

    payment = base_size * (cumulative_funding - funding_index_snapshot)

A positive payment is debited from the position's collateral, so longs pay
while the index rises and shorts receive.
"""

from dataclasses import dataclass, replace

from loguru import logger

from src.core.exceptions.engine import InvalidFundingRateError, ValidationError
from src.core.models.market import Market
from src.core.models.position import Position
from src.core.types.fixed_point import Width, checked, checked_add, checked_mul
from src.core.utils.validation import validate_width


@dataclass(frozen=True)
class FundingSettlement:
    """Position after settlement plus what was paid and what was not covered."""

    position: Position
    payment: int
    bad_debt: int = 0


class FundingAccumulator:
    """Funding index bookkeeping for markets and positions."""

    @staticmethod
    def accrue(market: Market, now: int) -> Market:
        """Advance the market's cumulative index to now under the current rate.

        Args:
            market: Market to accrue
            now: Current unix timestamp in seconds

        Returns:
            Market with cumulative_funding and last_funding_timestamp advanced

        Raises:
            ValidationError: If now is earlier than the last funding timestamp
        """
        validate_width(now, Width.INT64, "now")
        elapsed = now - market.last_funding_timestamp
        if elapsed < 0:
            raise ValidationError(
                f"Funding timestamp went backwards for market {market.market_id}: "
                f"now={now}, last={market.last_funding_timestamp}"
            )
        if elapsed == 0:
            return market

        accrued = checked_mul(market.funding_rate, elapsed, Width.INT128, "funding accrual")
        cumulative = checked_add(
            market.cumulative_funding, accrued, Width.INT128, "cumulative funding"
        )
        return replace(market, cumulative_funding=cumulative, last_funding_timestamp=now)

    @classmethod
    def update_funding_rate(cls, market: Market, rate: int, now: int) -> Market:
        """Accrue under the old rate up to now, then install the new rate.

        Raises:
            InvalidFundingRateError: If |rate| exceeds the market's max_funding_rate
        """
        validate_width(rate, Width.INT64, "funding_rate")
        if not market.params.is_valid_funding_rate(rate):
            raise InvalidFundingRateError(rate, market.params.max_funding_rate)

        accrued = cls.accrue(market, now)
        logger.debug(
            f"Funding rate for {market.market_id}: {market.funding_rate} -> {rate} "
            f"(index {accrued.cumulative_funding})"
        )
        return replace(accrued, funding_rate=rate)

    @staticmethod
    def pending_payment(position: Position, market: Market) -> int:
        """Funding owed by the position since its last settlement."""
        return position.pending_funding(market.cumulative_funding)

    @classmethod
    def settle(cls, position: Position, market: Market) -> FundingSettlement:
        """Apply unsettled funding to the position's collateral.

        Collateral is clamped at zero; the uncovered part of a payment is
        reported as bad debt. The snapshot always moves to the market index,
        so a second settlement against the same index pays nothing.
        """
        payment = cls.pending_payment(position, market)
        if position.is_empty or payment == 0:
            return FundingSettlement(
                position=position.with_funding_snapshot(market.cumulative_funding), payment=0
            )

        remaining = position.collateral - payment
        bad_debt = 0
        if remaining < 0:
            bad_debt = -remaining
            remaining = 0
            logger.warning(
                f"Funding payment {payment} exceeds collateral {position.collateral} "
                f"for {position.user_id}/{position.market_id}, bad debt {bad_debt}"
            )

        settled = replace(
            position,
            collateral=checked(remaining, Width.UINT64, "funding settlement"),
            funding_index_snapshot=market.cumulative_funding,
        )
        return FundingSettlement(position=settled, payment=payment, bad_debt=bad_debt)

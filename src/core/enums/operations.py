"""
Operation and rounding enumerations.

This module defines the kinds of state transitions recorded in the audit
journal and the rounding modes used by fixed-point division.
"""

from enum import StrEnum


class OperationKind(StrEnum):
    """
    Kinds of engine and host operations.

    Every successful call emits one audit record tagged with one of these.
    """

    OPEN = "open"
    INCREASE = "increase"
    DECREASE = "decrease"
    CLOSE = "close"
    FLIP = "flip"
    LIQUIDATION = "liquidation"
    FUNDING_SETTLEMENT = "funding_settlement"
    FUNDING_RATE_UPDATE = "funding_rate_update"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    INSURANCE_DEPOSIT = "insurance_deposit"

    @property
    def is_trade(self) -> bool:
        """Check if operation changes position size."""
        return self in [
            self.OPEN,
            self.INCREASE,
            self.DECREASE,
            self.CLOSE,
            self.FLIP,
            self.LIQUIDATION,
        ]

    @property
    def is_forced(self) -> bool:
        """Check if operation is forced (liquidation)."""
        return self == self.LIQUIDATION

    @property
    def reduces_exposure(self) -> bool:
        """Check if operation only ever removes exposure."""
        return self in [self.DECREASE, self.CLOSE, self.LIQUIDATION]


class RoundingMode(StrEnum):
    """
    Rounding applied when an integer division leaves a remainder.

    CEILING is used for margin requirements, FLOOR for weighted entry
    prices, EXACT where the quotient must be an integer already.
    """

    FLOOR = "floor"  # toward -inf
    CEILING = "ceiling"  # toward +inf
    TRUNCATE = "truncate"  # toward zero
    EXACT = "exact"  # remainder is an error

"""
Margin and PnL formulas.

Pure functions over signed integer sizes. The sign of `base_size` carries
the side, so none of these branch on long versus short.
"""

from src.core.constants import BPS_SCALE
from src.core.enums import RoundingMode
from src.core.types.fixed_point import (
    Width,
    checked,
    checked_mul,
    floor_div,
    mul_div,
    sign,
)


def notional_value(base_size: int, price: int) -> int:
    """Notional `|base_size| * price` (exact)."""
    return checked_mul(abs(base_size), price, Width.INT128, "notional")


def required_margin(base_size: int, price: int, leverage: int) -> int:
    """Initial margin for a position, rounded up.

    Args:
        base_size: Signed position size
        price: Execution price
        leverage: Leverage in [1, max_leverage]

    Returns:
        `ceil(|base_size| * price / leverage)` as a uint64
    """
    return mul_div(
        abs(base_size), price, leverage, RoundingMode.CEILING, Width.UINT64, "required margin"
    )


def weighted_entry_price(base_size: int, entry_price: int, size_delta: int, price: int) -> int:
    """Size-weighted average entry price after adding size_delta at price.

    `size_delta` must have the same sign as `base_size` (or base_size is 0).
    The average is floored.

    Examples:
        >>> weighted_entry_price(10, 100_000, 5, 110_000)
        103333
    """
    if base_size == 0:
        return price
    old_size = abs(base_size)
    added = abs(size_delta)
    total_cost = old_size * entry_price + added * price
    return checked(floor_div(total_cost, old_size + added), Width.INT64, "weighted entry price")


def realized_pnl(base_size: int, entry_price: int, close_amount: int, price: int) -> int:
    """PnL realized by closing close_amount of the position at price.

    `sign(base_size) * close_amount * (price - entry_price)`
    """
    return checked(
        sign(base_size) * close_amount * (price - entry_price), Width.INT128, "realized pnl"
    )


def closed_fraction_margin(collateral: int, close_amount: int, base_size: int) -> int:
    """Share of posted collateral attributable to the closed size (floored)."""
    return mul_div(
        collateral,
        close_amount,
        abs(base_size),
        RoundingMode.FLOOR,
        Width.UINT64,
        "closed fraction margin",
    )


def maintenance_requirement(base_size: int, price: int, maintenance_margin_bps: int) -> int:
    """Maintenance margin `ceil(|base_size| * price * bps / 10000)`."""
    return mul_div(
        notional_value(base_size, price),
        maintenance_margin_bps,
        BPS_SCALE,
        RoundingMode.CEILING,
        Width.INT128,
        "maintenance requirement",
    )


def liquidation_charge(base_size: int, price: int, bps: int) -> int:
    """Fee or penalty on the closed notional, `floor(|base_size| * price * bps / 10000)`."""
    return mul_div(
        notional_value(base_size, price),
        bps,
        BPS_SCALE,
        RoundingMode.FLOOR,
        Width.UINT64,
        "liquidation charge",
    )


def position_equity(
    collateral: int, base_size: int, entry_price: int, price: int, pending_funding: int = 0
) -> int:
    """Collateral plus unrealized PnL minus unsettled funding."""
    unrealized = realized_pnl(base_size, entry_price, abs(base_size), price)
    return checked(collateral + unrealized - pending_funding, Width.INT128, "equity")

"""
Position domain model.

A position is the exposure of one user in one market. Its side is the sign
of `base_size`, so a single signed formula covers longs and shorts.
"""

from dataclasses import dataclass, replace

from src.core.enums import Side
from src.core.exceptions.engine import ValidationError
from src.core.types.fixed_point import Width, checked, checked_mul, sign
from src.core.utils.validation import validate_identifier, validate_width


@dataclass(frozen=True)
class Position:
    """Per user-per-market exposure record.

    `base_size` is signed: positive = long, negative = short, zero = empty.
    Records are immutable; the engine returns new instances instead of
    mutating the ones it was given.
    """

    user_id: str
    market_id: str
    base_size: int = 0
    entry_price: int = 0
    collateral: int = 0
    funding_index_snapshot: int = 0

    def __post_init__(self) -> None:
        """Validate position data after initialization."""
        validate_identifier(self.user_id, "user_id")
        validate_identifier(self.market_id, "market_id")
        validate_width(self.base_size, Width.INT64, "base_size")
        validate_width(self.entry_price, Width.INT64, "entry_price")
        validate_width(self.collateral, Width.UINT64, "collateral")
        validate_width(self.funding_index_snapshot, Width.INT128, "funding_index_snapshot")

        if self.base_size == 0:
            if self.entry_price != 0 or self.collateral != 0:
                raise ValidationError(
                    "Empty position must have zero entry price and collateral, "
                    f"got entry_price={self.entry_price}, collateral={self.collateral}"
                )
        elif self.entry_price <= 0:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")

    @classmethod
    def empty(cls, user_id: str, market_id: str, funding_index: int = 0) -> "Position":
        """Factory method for a position that holds no exposure.

        Args:
            user_id: Owner of the position
            market_id: Market the position belongs to
            funding_index: Funding index to snapshot

        Returns:
            New empty Position
        """
        return cls(user_id=user_id, market_id=market_id, funding_index_snapshot=funding_index)

    @property
    def side(self) -> Side | None:
        """Side derived from the sign of base_size (None when empty)."""
        return Side.from_base_size(self.base_size)

    @property
    def is_empty(self) -> bool:
        """Check if position holds no exposure."""
        return self.base_size == 0

    @property
    def size(self) -> int:
        """Unsigned magnitude of the position."""
        return abs(self.base_size)

    @property
    def direction(self) -> int:
        """+1 for long, -1 for short, 0 for empty."""
        return sign(self.base_size)

    def notional(self, price: int) -> int:
        """Notional value `|base_size| * price`."""
        return checked_mul(self.size, price, Width.INT128, "notional")

    def unrealized_pnl(self, price: int) -> int:
        """Signed PnL of the whole position at price.

        `base_size * (price - entry_price)`; positive for longs when the price
        rises above entry and for shorts when it falls below.
        """
        if self.is_empty:
            return 0
        return checked_mul(self.base_size, price - self.entry_price, Width.INT128, "unrealized_pnl")

    def pending_funding(self, cumulative_funding: int) -> int:
        """Funding owed since the last settlement (positive = position pays)."""
        if self.is_empty:
            return 0
        return checked_mul(
            self.base_size,
            cumulative_funding - self.funding_index_snapshot,
            Width.INT128,
            "pending_funding",
        )

    def equity(self, price: int, cumulative_funding: int | None = None) -> int:
        """Collateral plus unrealized PnL, less any unsettled funding."""
        pending = 0 if cumulative_funding is None else self.pending_funding(cumulative_funding)
        return checked(
            self.collateral - pending + self.unrealized_pnl(price), Width.INT128, "equity"
        )

    def with_funding_snapshot(self, funding_index: int) -> "Position":
        """Copy of the position with its funding snapshot advanced."""
        return replace(self, funding_index_snapshot=funding_index)

    def to_dict(self) -> dict:
        """Convert position to dictionary."""
        side = self.side
        return {
            "user_id": self.user_id,
            "market_id": self.market_id,
            "side": side.value if side else None,
            "base_size": self.base_size,
            "entry_price": self.entry_price,
            "collateral": self.collateral,
            "funding_index_snapshot": self.funding_index_snapshot,
        }

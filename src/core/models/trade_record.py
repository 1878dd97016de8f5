"""
Audit record domain model.

One record is emitted per successful engine or host call for event
consumption by the host.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from src.core.enums import OperationKind
from src.core.exceptions.engine import ValidationError


@dataclass(frozen=True)
class TradeRecord:
    """Structured result of a committed state transition."""

    kind: OperationKind
    user_id: str | None
    market_id: str | None
    size_delta: int
    price: int
    margin_delta: int
    realized_pnl: int
    open_interest: int
    collateral_returned: int = 0
    funding_payment: int = 0
    bad_debt: int = 0
    liquidation_fee: int = 0
    insurance_penalty: int = 0
    insurance_draw: int = 0
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not isinstance(self.kind, OperationKind):
            raise ValidationError(f"kind must be OperationKind, got {type(self.kind).__name__}")
        if self.price < 0:
            raise ValidationError(f"Price must be non-negative, got {self.price}")
        if self.collateral_returned < 0:
            raise ValidationError(
                f"Collateral returned must be non-negative, got {self.collateral_returned}"
            )
        if self.bad_debt < 0:
            raise ValidationError(f"Bad debt must be non-negative, got {self.bad_debt}")
        for name in ["liquidation_fee", "insurance_penalty", "insurance_draw"]:
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", datetime.now(UTC))

    def notional_value(self) -> int:
        """Notional value of the size delta at the execution price."""
        return abs(self.size_delta) * self.price

    def to_dict(self) -> dict:
        """Convert record to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "kind": self.kind.value,
            "user_id": self.user_id,
            "market_id": self.market_id,
            "size_delta": self.size_delta,
            "price": self.price,
            "margin_delta": self.margin_delta,
            "collateral_returned": self.collateral_returned,
            "realized_pnl": self.realized_pnl,
            "funding_payment": self.funding_payment,
            "bad_debt": self.bad_debt,
            "liquidation_fee": self.liquidation_fee,
            "insurance_penalty": self.insurance_penalty,
            "insurance_draw": self.insurance_draw,
            "open_interest": self.open_interest,
        }

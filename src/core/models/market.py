"""
Market parameters and market state.

`MarketParams` is the static risk configuration set once by an
administrator. `Market` carries the parameters together with the state the
engine updates on every trade and funding tick.
"""

from dataclasses import dataclass, replace

from src.core.constants import (
    DEFAULT_LIQUIDATION_FEE_BPS,
    DEFAULT_LIQUIDATION_PENALTY_BPS,
    DEFAULT_MAINTENANCE_MARGIN_BPS,
    DEFAULT_MAX_FUNDING_RATE,
    DEFAULT_MAX_LEVERAGE,
)
from src.core.exceptions.engine import ConfigurationError, InvalidAmountError, ValidationError
from src.core.types.fixed_point import Width, checked
from src.core.utils.validation import validate_bps, validate_identifier, validate_width


@dataclass(frozen=True)
class MarketParams:
    """Static per-market risk configuration."""

    max_leverage: int = DEFAULT_MAX_LEVERAGE
    maintenance_margin_bps: int = DEFAULT_MAINTENANCE_MARGIN_BPS
    max_funding_rate: int = DEFAULT_MAX_FUNDING_RATE
    liquidation_fee_bps: int = DEFAULT_LIQUIDATION_FEE_BPS
    liquidation_penalty_bps: int = DEFAULT_LIQUIDATION_PENALTY_BPS

    def __post_init__(self) -> None:
        """Validate risk parameters after initialization."""
        try:
            validate_width(self.max_leverage, Width.UINT16, "max_leverage")
            validate_bps(self.maintenance_margin_bps, "maintenance_margin_bps")
            validate_width(self.max_funding_rate, Width.INT64, "max_funding_rate")
            validate_bps(self.liquidation_fee_bps, "liquidation_fee_bps")
            validate_bps(self.liquidation_penalty_bps, "liquidation_penalty_bps")
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

        if self.max_leverage < 1:
            raise ConfigurationError(f"max_leverage must be at least 1, got {self.max_leverage}")
        if self.max_funding_rate < 0:
            raise ConfigurationError(
                f"max_funding_rate must be non-negative, got {self.max_funding_rate}"
            )

    def is_valid_leverage(self, leverage: int) -> bool:
        """Check if leverage is within [1, max_leverage]."""
        return 1 <= leverage <= self.max_leverage

    def is_valid_funding_rate(self, rate: int) -> bool:
        """Check if a funding rate is within the market bound."""
        return abs(rate) <= self.max_funding_rate


@dataclass(frozen=True)
class Market:
    """Market state: risk parameters, funding accumulator, open interest and insurance.

    `open_interest` is the running sum of notional added at execution
    prices minus notional removed at execution prices, so it is signed.
    `insurance_fund` absorbs liquidation bad debt; once a shortfall exceeds
    it, `emergency` is raised and the market only accepts reductions.
    """

    market_id: str
    params: MarketParams
    funding_rate: int = 0
    cumulative_funding: int = 0
    last_funding_timestamp: int = 0
    open_interest: int = 0
    insurance_fund: int = 0
    emergency: bool = False

    def __post_init__(self) -> None:
        """Validate market state after initialization."""
        validate_identifier(self.market_id, "market_id")
        if not isinstance(self.params, MarketParams):
            raise ValidationError("params must be a MarketParams instance")
        validate_width(self.funding_rate, Width.INT64, "funding_rate")
        validate_width(self.cumulative_funding, Width.INT128, "cumulative_funding")
        validate_width(self.last_funding_timestamp, Width.INT64, "last_funding_timestamp")
        validate_width(self.open_interest, Width.INT128, "open_interest")
        validate_width(self.insurance_fund, Width.UINT64, "insurance_fund")

    @property
    def max_leverage(self) -> int:
        """Maximum leverage accepted by the market."""
        return self.params.max_leverage

    @property
    def maintenance_margin_bps(self) -> int:
        """Maintenance margin ratio in basis points."""
        return self.params.maintenance_margin_bps

    @classmethod
    def create(cls, market_id: str, params: MarketParams, timestamp: int = 0) -> "Market":
        """Factory method for a freshly listed market with zeroed state."""
        return cls(market_id=market_id, params=params, last_funding_timestamp=timestamp)

    def fund_insurance(self, amount: int) -> "Market":
        """Return a copy with amount added to the insurance fund.

        Raises:
            InvalidAmountError: If amount is zero or negative
            ArithmeticOverflowError: If the fund would exceed uint64
        """
        if amount <= 0:
            raise InvalidAmountError(amount, "insurance deposit")
        fund = checked(self.insurance_fund + amount, Width.UINT64, "insurance fund")
        return replace(self, insurance_fund=fund)

    def to_dict(self) -> dict:
        """Convert market to dictionary."""
        return {
            "market_id": self.market_id,
            "max_leverage": self.max_leverage,
            "maintenance_margin_bps": self.maintenance_margin_bps,
            "max_funding_rate": self.params.max_funding_rate,
            "funding_rate": self.funding_rate,
            "cumulative_funding": self.cumulative_funding,
            "last_funding_timestamp": self.last_funding_timestamp,
            "open_interest": self.open_interest,
            "liquidation_fee_bps": self.params.liquidation_fee_bps,
            "liquidation_penalty_bps": self.params.liquidation_penalty_bps,
            "insurance_fund": self.insurance_fund,
            "emergency": self.emergency,
        }

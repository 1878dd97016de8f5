"""
Custom exception hierarchy for the margin engine.

Every rejection is raised before any record is produced, so callers can
surface these verbatim without rolling anything back.
"""


class EngineException(Exception):
    """Base exception for all engine-related errors."""

    pass


class ValidationError(EngineException):
    """Raised when input validation fails."""

    pass


class ConfigurationError(EngineException):
    """Raised when configuration is invalid."""

    pass


class EnginePausedError(EngineException):
    """Raised when trading is paused by configuration."""

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(f"Engine is paused, rejected {operation}")


class InvalidAmountError(ValidationError):
    """Raised when a size or amount is zero or negative."""

    def __init__(self, amount: int, name: str = "amount"):
        self.amount = amount
        self.name = name
        super().__init__(f"Invalid {name}: must be greater than zero, got {amount}")


class InvalidLeverageError(ValidationError):
    """Raised when leverage is outside [1, max_leverage]."""

    def __init__(self, leverage: int, max_leverage: int):
        self.leverage = leverage
        self.max_leverage = max_leverage
        super().__init__(f"Invalid leverage {leverage} (allowed: 1..{max_leverage})")


class InvalidFundingRateError(ValidationError):
    """Raised when a funding rate exceeds the market bound."""

    def __init__(self, rate: int, max_rate: int):
        self.rate = rate
        self.max_rate = max_rate
        super().__init__(f"Invalid funding rate {rate} (bound: +/-{max_rate})")


class PositionError(EngineException):
    """Raised when position operations fail."""

    pass


class InsufficientCollateralError(PositionError):
    """Raised when there is not enough free collateral for an operation."""

    def __init__(self, required: int, available: int, operation: str = "operation"):
        self.required = required
        self.available = available
        self.operation = operation
        super().__init__(
            f"Insufficient collateral for {operation}: required={required}, available={available}"
        )


class NoOpenPositionError(PositionError):
    """Raised when trying to reduce or close an empty position."""

    def __init__(self, user_id: str, market_id: str):
        self.user_id = user_id
        self.market_id = market_id
        super().__init__(f"No open position for user {user_id} in market {market_id}")


class NotLiquidatableError(PositionError):
    """Raised when a liquidation is requested for a healthy position."""

    def __init__(self, user_id: str, market_id: str, equity: int, requirement: int):
        self.user_id = user_id
        self.market_id = market_id
        self.equity = equity
        self.requirement = requirement
        super().__init__(
            f"Position {user_id}/{market_id} is not liquidatable: "
            f"equity={equity}, maintenance={requirement}"
        )


class SelfLiquidationError(PositionError):
    """Raised when a user tries to liquidate their own position."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} cannot liquidate their own position")


class MarketEmergencyError(PositionError):
    """Raised when exposure is added to a market in emergency mode."""

    def __init__(self, market_id: str):
        self.market_id = market_id
        super().__init__(
            f"Market {market_id} is in emergency mode; only reductions are accepted"
        )


class PositionLimitError(PositionError):
    """Raised when a user already holds the maximum number of positions."""

    def __init__(self, user_id: str, limit: int):
        self.user_id = user_id
        self.limit = limit
        super().__init__(f"User {user_id} reached the open position limit ({limit})")


class OpenPositionsError(PositionError):
    """Raised when collateral is withdrawn while positions are still open."""

    def __init__(self, user_id: str, open_positions: int):
        self.user_id = user_id
        self.open_positions = open_positions
        super().__init__(
            f"User {user_id} has {open_positions} open position(s); close them before withdrawing"
        )


class CalculationError(EngineException):
    """Raised when mathematical calculations fail."""

    pass


class ArithmeticOverflowError(CalculationError):
    """Raised when a result does not fit its target integer width."""

    def __init__(self, value: int, width: str, operation: str = "calculation"):
        self.value = value
        self.width = width
        self.operation = operation
        super().__init__(f"Arithmetic overflow in {operation}: {value} does not fit {width}")


class InexactDivisionError(CalculationError):
    """Raised when an exact division leaves a remainder."""

    def __init__(self, dividend: int, divisor: int):
        self.dividend = dividend
        self.divisor = divisor
        super().__init__(f"{dividend} is not divisible by {divisor}")


class PriceError(EngineException):
    """Raised when an oracle price cannot be used."""

    pass


class PriceUnavailableError(PriceError):
    """Raised when no price is known for a market."""

    def __init__(self, market_id: str):
        self.market_id = market_id
        super().__init__(f"No oracle price available for market {market_id}")


class StalePriceError(PriceError):
    """Raised when an oracle reading is older than the allowed age."""

    def __init__(self, market_id: str, age: int | None, max_age: int):
        self.market_id = market_id
        self.age = age
        self.max_age = max_age
        super().__init__(f"Stale price for market {market_id}: age={age}s, max={max_age}s")


class MarketNotFoundError(EngineException):
    """Raised when a market does not exist."""

    def __init__(self, market_id: str):
        self.market_id = market_id
        super().__init__(f"Market not found: {market_id}")


class AccountNotFoundError(EngineException):
    """Raised when a user account does not exist."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Account not found: {user_id}")

"""
In-memory collateral custody.

All deposits land in one shared pool. Realized PnL, funding and liquidation
fees move claims between ledgers without touching custody, so a user may
withdraw more than they deposited as long as the pool covers it.
"""

from threading import RLock

from loguru import logger

from src.core.exceptions.engine import InsufficientCollateralError, InvalidAmountError
from src.core.interfaces.collaborators import ICollateralVault
from src.core.types.fixed_point import Width, checked


class InMemoryCollateralVault(ICollateralVault):
    """Single custody pool shared by every user and insurance fund."""

    def __init__(self) -> None:
        self._balance = 0
        self._lock = RLock()

    def deposit(self, source: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmountError(amount, "deposit")
        with self._lock:
            self._balance = checked(self._balance + amount, Width.UINT64, "vault deposit")
        logger.info(f"Vault received {amount} from {source}")

    def withdraw(self, destination: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmountError(amount, "withdraw")
        with self._lock:
            if amount > self._balance:
                raise InsufficientCollateralError(
                    required=amount, available=self._balance, operation="vault withdrawal"
                )
            self._balance -= amount
        logger.info(f"Vault released {amount} to {destination}")

    def balance(self) -> int:
        with self._lock:
            return self._balance

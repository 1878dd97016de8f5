"""
Collateral custody infrastructure.
"""

from .memory_vault import InMemoryCollateralVault

__all__ = ["InMemoryCollateralVault"]

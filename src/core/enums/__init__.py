"""
Core enumerations for the margin engine.

This module provides centralized enumerations for domain concepts
like trade sides, operation kinds and rounding modes.
"""

from .operations import OperationKind, RoundingMode
from .sides import Side

__all__ = ["Side", "OperationKind", "RoundingMode"]

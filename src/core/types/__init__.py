"""
Core type definitions and utilities.
"""

# Re-export fixed-point utilities for easy access
from .fixed_point import (
    Width,
    ceil_div,
    checked,
    checked_add,
    checked_mul,
    checked_sub,
    divide,
    floor_div,
    mul_div,
    sign,
    trunc_div,
)

__all__ = [
    # Utility functions
    "checked",
    "checked_add",
    "checked_mul",
    "checked_sub",
    "ceil_div",
    "divide",
    "floor_div",
    "mul_div",
    "sign",
    "trunc_div",
    # Types
    "Width",
]

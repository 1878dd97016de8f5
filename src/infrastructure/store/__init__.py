"""
Record storage infrastructure.
"""

from .memory_store import InMemoryAccountStore

__all__ = ["InMemoryAccountStore"]

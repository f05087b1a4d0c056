"""
Shortcode registry module.
Implements Strategy Pattern so the in-memory store can be swapped out.
"""

from .strategies import RegistryStrategy, InMemoryRegistry, ShortcodeConflictError
from .factory import RegistryFactory, RegistryBackend
from .sweeper import ExpirySweeper

__all__ = [
    "RegistryStrategy",
    "InMemoryRegistry",
    "ShortcodeConflictError",
    "RegistryFactory",
    "RegistryBackend",
    "ExpirySweeper",
]

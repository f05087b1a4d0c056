"""
Factory for creating registry instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum

from .strategies import RegistryStrategy, InMemoryRegistry
from shortlink_app.logging_config import get_logger

logger = get_logger(__name__)


class RegistryBackend(Enum):
    """Available registry backends"""
    MEMORY = "memory"


class RegistryFactory:
    """
    Simple factory for creating registry instances.

    Uses Singleton Pattern - the whole process shares one registry.
    """

    _instance: RegistryStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: RegistryBackend) -> RegistryStrategy:
        """
        Create or return cached registry instance.

        Args:
            backend: Type of registry backend (from enum)

        Returns:
            Singleton registry instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == RegistryBackend.MEMORY:
            cls._instance = InMemoryRegistry()
            logger.info("In-memory registry initialized")
        else:
            raise ValueError(f"Unknown registry backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None

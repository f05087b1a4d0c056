"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the registry, click queue and
URL service that are injected into routes. Tests override them through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from shortlink_app.config import settings
from shortlink_app.queue.factory import QueueFactory, QueueBackend
from shortlink_app.queue.strategies import QueueStrategy
from shortlink_app.registry.factory import RegistryFactory, RegistryBackend
from shortlink_app.registry.strategies import RegistryStrategy

# queue_backend value that disables the queue; clicks are appended inline
INLINE_CLICKS = "inline"


@lru_cache()
def get_registry() -> RegistryStrategy:
    """
    Get registry instance (singleton).

    Returns:
        RegistryStrategy instance based on settings
    """
    backend = RegistryBackend(settings.registry_backend)
    return RegistryFactory.create(backend)


@lru_cache()
def get_queue() -> Optional[QueueStrategy]:
    """
    Get click queue instance (singleton), or None for inline recording.

    Returns:
        QueueStrategy instance based on settings
    """
    if settings.queue_backend == INLINE_CLICKS:
        return None
    backend = QueueBackend(settings.queue_backend)
    return QueueFactory.create(backend)


def get_url_service(
    registry: RegistryStrategy = Depends(get_registry),
    queue: Optional[QueueStrategy] = Depends(get_queue)
):
    """
    Get URLService with its dependencies injected.

    Controller depends on service; service depends on registry and queue.
    """
    from shortlink_app.services.url_service import URLService
    return URLService(registry=registry, queue=queue)

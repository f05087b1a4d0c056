"""
Periodic expiry sweep.

Runs as a background task inside the application lifespan and removes
expired entries so the registry does not keep them forever. Reads never
depend on it: the service checks expiry on every lookup.
"""

import asyncio
from datetime import datetime
from typing import Callable

from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import utc_now
from shortlink_app.registry.strategies import RegistryStrategy

logger = get_logger(__name__)


class ExpirySweeper:
    """Calls registry.sweep_expired() every ``interval`` seconds."""

    def __init__(
        self,
        registry: RegistryStrategy,
        interval: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.interval = interval
        self.clock = clock
        self.running = False
        self.total_swept = 0

    async def sweep_once(self) -> int:
        removed = await self.registry.sweep_expired(self.clock())
        self.total_swept += removed
        return removed

    async def start(self):
        """Sweep until stopped or cancelled"""
        self.running = True
        logger.info("Expiry sweeper started (interval %ss)", self.interval)

        while self.running:
            try:
                await asyncio.sleep(self.interval)
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Expiry sweep failed")

        self.running = False
        logger.info("Expiry sweeper stopped")

    def stop(self):
        self.running = False

"""
Click Processor Worker

Drains click messages from the queue and appends them to the registry.
Runs as a background task inside the application lifespan.

Architecture:
- Redirect publishes a ClickMessage and returns immediately
- Worker consumes messages in batches
- Each message becomes one registry.append_click() call
- Messages are acknowledged only after the whole batch was applied
"""

import asyncio
from typing import List

from shortlink_app.config import settings
from shortlink_app.logging_config import get_logger
from shortlink_app.queue.models import ClickMessage
from shortlink_app.queue.strategies import QueueStrategy
from shortlink_app.registry.strategies import RegistryStrategy

logger = get_logger(__name__)


class ClickWorker:
    """
    Click worker with batch processing.

    Clicks for codes that were swept (or never existed) are dropped
    with a debug log: there is nothing left to attach them to.
    """

    def __init__(
        self,
        queue: QueueStrategy,
        registry: RegistryStrategy,
        queue_name: str = None,
        batch_size: int = None,
        poll_interval: float = None,
    ):
        """
        Initialize worker with dependencies.

        Args:
            queue: Queue strategy for consuming messages
            registry: Registry receiving the clicks
            queue_name: Queue to drain (defaults to settings)
            batch_size: Messages per batch (defaults to settings)
            poll_interval: Sleep between empty polls in seconds (defaults to settings)
        """
        self.queue = queue
        self.registry = registry
        self.queue_name = queue_name or settings.queue_name
        self.batch_size = batch_size or settings.queue_batch_size
        self.poll_interval = poll_interval if poll_interval is not None else settings.queue_worker_interval
        self.running = False
        self.processed_count = 0
        self.dropped_count = 0

    async def process_once(self) -> int:
        """
        Consume and apply one batch.

        Returns:
            Number of messages consumed
        """
        messages = await self.queue.consume(
            queue_name=self.queue_name,
            batch_size=self.batch_size,
            block_time=1000
        )

        if not messages:
            return 0

        await self._process_batch(messages)

        message_ids = [msg.message_id for msg in messages if msg.message_id]
        if message_ids:
            await self.queue.ack(self.queue_name, message_ids)

        self.processed_count += len(messages)
        logger.debug("Processed %d clicks. Total: %d", len(messages), self.processed_count)
        return len(messages)

    async def drain(self) -> int:
        """Process batches until the queue is empty"""
        total = 0
        while True:
            processed = await self.process_once()
            if not processed:
                return total
            total += processed

    async def _process_batch(self, messages: List[ClickMessage]):
        for message in messages:
            recorded = await self.registry.append_click(message.short_code, message.click)
            if not recorded:
                self.dropped_count += 1
                logger.debug("Dropped click for unknown short code: %s", message.short_code)

    async def start(self):
        """Process batches until stopped or cancelled"""
        self.running = True
        logger.info("Click worker started (queue %s, batch size %d)", self.queue_name, self.batch_size)

        while self.running:
            try:
                processed = await self.process_once()
                if not processed:
                    await asyncio.sleep(self.poll_interval)

            except asyncio.CancelledError:
                break
            except Exception:
                # Unacknowledged messages stay in the queue for retry
                logger.exception("Error processing click batch")
                await asyncio.sleep(1)

        self.running = False
        logger.info("Click worker stopped")

    def stop(self):
        """Stop the worker"""
        self.running = False

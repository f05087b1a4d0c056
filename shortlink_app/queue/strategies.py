"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import socket
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List

from pydantic import ValidationError

from shortlink_app.logging_config import get_logger
from .models import ClickMessage

logger = get_logger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    Publishing must never raise: the redirect path treats a False return
    as "click lost" and carries on.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        """
        Publish a message to the queue.

        Args:
            queue_name: Name of the queue
            message: ClickMessage to publish

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)

        Returns:
            List of ClickMessage messages
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """
        Acknowledge messages (mark as processed).

        Args:
            queue_name: Name of the queue
            message_ids: List of message IDs to acknowledge

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """
        Get the number of pending messages in queue.

        Args:
            queue_name: Name of the queue

        Returns:
            Number of pending messages
        """
        pass

    async def close(self) -> None:
        """Release backend resources"""
        pass


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for the click queue.

    How it works:
    1. Redirect publishes messages using XADD
    2. Worker reads messages using XREADGROUP
    3. Worker acknowledges messages using XACK

    Clicks published while the worker is down stay in the stream
    and are delivered once it comes back.
    """

    def __init__(self, redis_client, consumer_group: str = "click_workers"):
        """
        Initialize Redis Streams queue.

        Args:
            redis_client: redis.asyncio.Redis client instance
            consumer_group: Name of consumer group for workers
        """
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = f"worker-{socket.gethostname()}-{id(self)}"
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str):
        """
        Ensure stream and consumer group exist.
        Creates them if they don't exist.
        """
        if queue_name in self._initialized_streams:
            return

        try:
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("Created Redis stream: %s", queue_name)
        except Exception as e:
            # Group might already exist, that's OK
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        try:
            await self._ensure_stream_exists(queue_name)
            await self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True

        except Exception as e:
            logger.error("Redis publish error: %s", e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """
        Consume messages from Redis Stream.

        '>' means "messages never delivered to other consumers".
        Messages stay pending until acknowledged.
        """
        try:
            await self._ensure_stream_exists(queue_name)

            messages = await self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: '>'},
                count=batch_size,
                block=block_time
            )

        except Exception as e:
            logger.error("Redis consume error: %s", e)
            return []

        if not messages:
            return []

        events = []
        for _stream_name, stream_messages in messages:
            for message_id, message_data in stream_messages:
                try:
                    event = ClickMessage.model_validate_json(message_data[b'data'])
                except (KeyError, ValidationError) as e:
                    logger.warning("Failed to parse message %s: %s", message_id, e)
                    continue
                event.message_id = message_id.decode('utf-8')
                events.append(event)

        return events

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        try:
            if not message_ids:
                return True

            await self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True

        except Exception as e:
            logger.error("Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        """Get approximate queue length"""
        try:
            info = await self.redis.xinfo_stream(queue_name)
            return info['length']
        except Exception:
            return 0

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using Python deque.

    Pros:
    - Simple (no external dependencies)
    - Fast (no network overhead)

    Cons:
    - Not persistent (lost on restart)
    - Not distributed (each process has its own queue)

    Default backend; the worker runs in the same process.
    """

    def __init__(self):
        self._queues: Dict[str, deque] = {}
        self._lock = threading.Lock()

    def _get_queue(self, queue_name: str) -> deque:
        """Get or create queue"""
        with self._lock:
            return self._queues.setdefault(queue_name, deque())

    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        self._get_queue(queue_name).append(message)
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """
        Consume messages from in-memory queue.

        Note: block_time is ignored (no blocking in this simple implementation)
        """
        queue = self._get_queue(queue_name)
        messages = []

        while queue and len(messages) < batch_size:
            try:
                messages.append(queue.popleft())
            except IndexError:
                break

        return messages

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """
        Acknowledge messages.

        Note: In-memory queue doesn't need acknowledgment
        (messages are removed on consume)
        """
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))

"""
Registry strategies using Strategy Pattern.
The service layer depends only on RegistryStrategy, never on a concrete store.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import ClickEvent, UrlEntry

logger = get_logger(__name__)


class ShortcodeConflictError(Exception):
    """Raised by insert() when the shortcode is already registered."""

    def __init__(self, shortcode: str):
        super().__init__(f"Shortcode '{shortcode}' already exists")
        self.shortcode = shortcode


class RegistryStrategy(ABC):
    """
    Abstract base class for shortcode registries.

    Every operation must be atomic with respect to every other one:
    concurrent inserts of the same code admit exactly one winner, and
    concurrent click appends are never lost.

    Methods are async so that a networked store can implement the same
    interface without changing the service layer.
    """

    @abstractmethod
    async def exists(self, shortcode: str) -> bool:
        """
        Check whether a shortcode is registered.

        Expired entries that have not been swept yet still count.
        """
        pass

    @abstractmethod
    async def insert(self, entry: UrlEntry) -> None:
        """
        Register a new entry as a single check-and-set.

        Args:
            entry: Entry to store

        Raises:
            ShortcodeConflictError: If entry.shortcode is already present
        """
        pass

    @abstractmethod
    async def lookup(self, shortcode: str) -> Optional[UrlEntry]:
        """
        Get a snapshot of the entry for a shortcode.

        Returns:
            A copy of the entry, or None if the code is unknown
        """
        pass

    @abstractmethod
    async def append_click(self, shortcode: str, click: ClickEvent) -> bool:
        """
        Append a click to an entry.

        Returns:
            True if recorded, False if the code is unknown
        """
        pass

    @abstractmethod
    async def sweep_expired(self, now: datetime) -> int:
        """
        Remove every entry whose expires_at is before ``now``.

        Returns:
            Number of entries removed
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of entries currently held (expired-but-unswept included)"""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove all entries"""
        pass


class InMemoryRegistry(RegistryStrategy):
    """
    In-memory registry backed by a dict and one re-entrant lock.

    The lock is a threading lock, so the registry is safe both for
    coroutines on one event loop and for callers on worker threads.
    No code path awaits while holding it.

    Not persistent: everything is lost when the process exits.
    """

    def __init__(self):
        self._entries: Dict[str, UrlEntry] = {}
        self._lock = threading.RLock()

    async def exists(self, shortcode: str) -> bool:
        with self._lock:
            return shortcode in self._entries

    async def insert(self, entry: UrlEntry) -> None:
        with self._lock:
            if entry.shortcode in self._entries:
                raise ShortcodeConflictError(entry.shortcode)
            self._entries[entry.shortcode] = entry.snapshot()

    async def lookup(self, shortcode: str) -> Optional[UrlEntry]:
        with self._lock:
            entry = self._entries.get(shortcode)
            return entry.snapshot() if entry is not None else None

    async def append_click(self, shortcode: str, click: ClickEvent) -> bool:
        with self._lock:
            entry = self._entries.get(shortcode)
            if entry is None:
                return False
            entry.clicks.append(click)
            return True

    async def sweep_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [code for code, entry in self._entries.items() if entry.is_expired(now)]
            for code in expired:
                del self._entries[code]

        if expired:
            logger.info("Swept %d expired short URLs", len(expired))
        return len(expired)

    async def count(self) -> int:
        with self._lock:
            return len(self._entries)

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

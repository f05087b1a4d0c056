"""
Short code generation strategies for the shortlink service.
Uses Strategy Pattern to allow different generation algorithms.
"""

import itertools
import random
import string
import threading
from abc import ABC, abstractmethod

from shortlink_app.logging_config import get_logger
from shortlink_app.registry.strategies import RegistryStrategy
from shortlink_app.services.validation import is_reserved_shortcode

logger = get_logger(__name__)


class ShortCodeExhaustedError(Exception):
    """Raised when no free short code could be produced."""
    pass


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    async def generate(self, registry: RegistryStrategy) -> str:
        """
        Generate a short code that is currently absent from the registry.

        The registry is only probed, never written: the caller still has to
        insert the code, and that insert may lose a race to another request.

        Args:
            registry: Registry to check uniqueness against

        Returns:
            A free short code

        Raises:
            ShortCodeExhaustedError: If no free code could be found
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random generation strategy.
    Draws Base62 strings and probes the registry until one is free.

    With 62^6 possible 6-character codes the retry budget is only ever
    reached under pathological load; it exists so that the loop is bounded.
    """

    def __init__(self, length: int = 6, max_retries: int = 10):
        self.length = length
        self.max_retries = max_retries
        self.characters = string.ascii_letters + string.digits
        self._random = random.SystemRandom()

    async def generate(self, registry: RegistryStrategy) -> str:
        """Generate random short code with collision checking"""
        for attempt in range(self.max_retries):
            short_code = self._generate_random_string()

            if is_reserved_shortcode(short_code):
                continue

            if not await registry.exists(short_code):
                if attempt:
                    logger.debug("Generated code after %d attempts: %s", attempt + 1, short_code)
                return short_code

            logger.warning("Short code collision detected: %s", short_code)

        raise ShortCodeExhaustedError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )

    def _generate_random_string(self) -> str:
        """Generate a random string of specified length"""
        return ''.join(self._random.choice(self.characters) for _ in range(self.length))


class Base62ShortCodeStrategy(ShortCodeStrategy):
    """
    Base62 encoding of an in-process counter with a salt offset.

    Pros: No random collisions, predictable growth
    Cons: Sequential codes are guessable; the counter restarts with the process,
          so codes are still checked against the registry
    """

    BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

    def __init__(self, salt: int = 1000, min_length: int = 4, max_length: int = 10, max_retries: int = 10):
        self.salt = salt
        self.min_length = min_length
        self.max_length = max_length
        self.max_retries = max_retries
        self._counter = itertools.count(1)
        self._counter_lock = threading.Lock()

    def encode(self, sequence_number: int) -> str:
        """
        Encode a sequence number to a Base62 code.

        Process:
        1. Add salt to the number for obfuscation
        2. Encode to Base62
        3. Left-pad with '0' up to min_length

        Raises:
            ShortCodeExhaustedError: If the encoding exceeds max_length
        """
        encoded = self._base62_encode(sequence_number + self.salt)

        if len(encoded) > self.max_length:
            raise ShortCodeExhaustedError(
                f"Generated code '{encoded}' exceeds max length {self.max_length}. "
                f"Consider increasing max_length to handle higher volume."
            )

        return encoded.rjust(self.min_length, "0")

    async def generate(self, registry: RegistryStrategy) -> str:
        for _ in range(self.max_retries):
            with self._counter_lock:
                sequence_number = next(self._counter)
            short_code = self.encode(sequence_number)

            if is_reserved_shortcode(short_code):
                continue

            # A custom code may already occupy this slot
            if not await registry.exists(short_code):
                return short_code

            logger.warning("Short code collision detected: %s", short_code)

        raise ShortCodeExhaustedError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )

    def _base62_encode(self, number: int) -> str:
        """
        Convert integer to Base62 string.

        Base62 uses: 0-9 (10) + a-z (26) + A-Z (26) = 62 characters
        """
        if number == 0:
            return self.BASE62_CHARS[0]

        base = len(self.BASE62_CHARS)
        encoded = []

        while number > 0:
            number, remainder = divmod(number, base)
            encoded.append(self.BASE62_CHARS[remainder])

        return ''.join(reversed(encoded))

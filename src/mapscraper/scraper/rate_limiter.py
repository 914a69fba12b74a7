"""
Pacing for browser interactions.

Provides the randomized pause taken after each card click and the
growing wait used between feed scroll rounds.

Example:
    >>> limiter = RateLimiter(min_delay=3.0, max_delay=6.0)
    >>> await limiter.wait()  # Waits 3-6 seconds randomly
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Optional

from mapscraper.utils.config import ScraperConfig
from mapscraper.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiterConfig:
    """
    Configuration for the rate limiter.

    Attributes:
        min_delay: Minimum pause in seconds.
        max_delay: Maximum pause in seconds.
    """
    min_delay: float = 3.0
    max_delay: float = 6.0


class RateLimiter:
    """
    Random pause between page interactions.

    Every call to ``wait`` sleeps a fresh delay drawn uniformly from
    [min_delay, max_delay], so consecutive clicks never share a rhythm.

    Attributes:
        config: Rate limiter configuration.
        waits: Number of pauses taken so far.
    """

    def __init__(
        self,
        min_delay: float = 3.0,
        max_delay: float = 6.0,
        config: Optional[RateLimiterConfig] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            min_delay: Minimum delay in seconds.
            max_delay: Maximum delay in seconds.
            config: Full configuration object (overrides min/max_delay).
        """
        self.config = config or RateLimiterConfig(min_delay=min_delay, max_delay=max_delay)
        if self.config.max_delay < self.config.min_delay:
            raise ValueError("max_delay must not be lower than min_delay")

        self.waits: int = 0
        logger.debug(
            f"RateLimiter initialized: {self.config.min_delay}-{self.config.max_delay}s delay"
        )

    def _get_random_delay(self) -> float:
        """Generate a random delay between min and max."""
        return random.uniform(self.config.min_delay, self.config.max_delay)

    async def wait(self) -> float:
        """
        Sleep for a random delay.

        Returns:
            The delay in seconds.
        """
        delay = self._get_random_delay()
        logger.debug(f"Pacing: waiting {delay:.2f}s")
        await asyncio.sleep(delay)
        self.waits += 1
        return delay


def backoff_delay(attempt: int, base_delay: float, factor: float, max_delay: float) -> float:
    """
    Wait after scroll round ``attempt`` (0-based).

    Grows geometrically with the attempt count and is capped at max_delay.

    Example:
        >>> backoff_delay(2, base_delay=1.0, factor=2.0, max_delay=10.0)
        4.0
    """
    return min(base_delay * factor ** attempt, max_delay)


def create_rate_limiter_from_config(config: ScraperConfig) -> RateLimiter:
    """
    Create the click rate limiter from the scraper config.

    Returns:
        RateLimiter using ``click_delay_range``.
    """
    min_delay, max_delay = config.click_delay_range
    return RateLimiter(min_delay=min_delay, max_delay=max_delay)

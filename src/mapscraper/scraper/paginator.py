"""Feed pagination by simulated scrolling.

The result feed loads more entries only when it is scrolled near its
bottom edge. ``FeedPaginator`` scrolls it in steps, waits, and measures
its height until two consecutive measurements match or the round budget
runs out.
"""

import asyncio
from typing import Optional

from mapscraper.utils.logger import get_logger

from .browser import BrowserSession
from .rate_limiter import backoff_delay

logger = get_logger(__name__)


# Scrolls the container down to the bottom edge it had when the round
# started, one step at a time, and stops early if the position stops moving.
STEPPED_SCROLL_SCRIPT = """
async ({selector, step, pause}) => {
    const el = document.querySelector(selector);
    if (!el) return 0;
    const target = el.scrollHeight;
    while (el.scrollTop + el.clientHeight < target) {
        const before = el.scrollTop;
        el.scrollBy(0, step);
        await new Promise((resolve) => setTimeout(resolve, pause));
        if (el.scrollTop === before) break;
    }
    return el.scrollHeight;
}
"""


class FeedPaginator:
    """Reveal every entry of a lazily-loaded feed by scrolling it.

    Attributes:
        session: Browser session holding the feed.
        scroll_delay: Wait after the first round in seconds.
        scroll_backoff: Growth factor of the wait per round.
        max_scroll_delay: Cap on the wait.
        scroll_step: Pixels per scroll step.
        step_pause_ms: Pause between scroll steps.
        measurements: Height measurements taken by the last ``paginate`` call.
    """

    def __init__(
        self,
        session: BrowserSession,
        scroll_delay: float = 1.5,
        scroll_backoff: float = 1.5,
        max_scroll_delay: float = 15.0,
        scroll_step: int = 400,
        step_pause_ms: int = 120,
    ):
        self.session = session
        self.scroll_delay = scroll_delay
        self.scroll_backoff = scroll_backoff
        self.max_scroll_delay = max_scroll_delay
        self.scroll_step = scroll_step
        self.step_pause_ms = step_pause_ms
        self.measurements: list[float] = []

    async def _scroll_round(self, feed_selector: str) -> None:
        await self.session.evaluate(
            STEPPED_SCROLL_SCRIPT,
            {
                "selector": feed_selector,
                "step": self.scroll_step,
                "pause": self.step_pause_ms,
            },
        )

    async def paginate(self, feed_selector: str, max_attempts: int = 5) -> int:
        """Scroll the feed until its height stops growing.

        Hitting ``max_attempts`` is a normal way out, not an error: some
        feeds keep growing with placeholder content forever.

        Args:
            feed_selector: CSS selector of the scrollable feed container
            max_attempts: Upper bound on scroll rounds

        Returns:
            Number of scroll rounds performed
        """
        previous_height: Optional[float] = None
        current_height: float = 0
        attempts = 0
        self.measurements = []

        while previous_height != current_height and attempts < max_attempts:
            previous_height = current_height

            await self._scroll_round(feed_selector)

            delay = backoff_delay(
                attempts, self.scroll_delay, self.scroll_backoff, self.max_scroll_delay
            )
            await asyncio.sleep(delay)

            current_height = await self.session.evaluate_height(feed_selector)
            self.measurements.append(current_height)
            attempts += 1

            logger.debug(
                f"Scroll round {attempts}/{max_attempts}: height {previous_height} -> {current_height}"
            )

        if previous_height == current_height:
            logger.info(f"Feed stable at {current_height}px after {attempts} rounds")
        else:
            logger.info(f"Scroll budget of {max_attempts} rounds reached at {current_height}px")

        return attempts

"""Per-card extraction state machine.

Each card goes Clicked -> AwaitingPanel -> Parsing and ends in one of
RECORDED, DUPLICATE or FAILED. A failure is confined to its card: it is
logged and the caller moves on to the next card.
"""

from typing import Any, Iterable, Optional

from mapscraper.utils.config import ScraperConfig, SelectorConfig
from mapscraper.utils.exceptions import PageParsingError
from mapscraper.utils.logger import get_logger, log_exception

from .aggregator import ResultAggregator
from .browser import BrowserSession
from .models import CardOutcome, ExtractedRecord
from .parsers import parse_address, parse_phone, parse_title
from .rate_limiter import RateLimiter, create_rate_limiter_from_config

logger = get_logger(__name__)


class CardExtractor:
    """
    Extract one ``ExtractedRecord`` per distinct title from feed cards.

    The dedup index lives as long as the extractor, so one extractor must
    be created per query point.

    Attributes:
        session: Browser session showing the feed.
        aggregator: Result set receiving recorded cards.
        selectors: Panel, title and item button selectors.
        rate_limiter: Pause taken after each click.
        panel_timeout_ms: Wait for the detail panel to attach.
        seen_titles: Titles already handled in this run.
    """

    def __init__(
        self,
        session: BrowserSession,
        aggregator: ResultAggregator,
        selectors: Optional[SelectorConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        panel_timeout_ms: int = 5000,
    ):
        self.session = session
        self.aggregator = aggregator
        self.selectors = selectors or SelectorConfig()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.panel_timeout_ms = panel_timeout_ms
        self.seen_titles: set[str] = set()

    @classmethod
    def from_config(
        cls,
        session: BrowserSession,
        aggregator: ResultAggregator,
        selectors: SelectorConfig,
        scraper_config: ScraperConfig,
    ) -> "CardExtractor":
        return cls(
            session,
            aggregator,
            selectors=selectors,
            rate_limiter=create_rate_limiter_from_config(scraper_config),
            panel_timeout_ms=scraper_config.panel_timeout_ms,
        )

    async def _read_attributes(self, buttons: list[Any], name: str) -> list[Optional[str]]:
        return [await self.session.get_attribute(button, name) for button in buttons]

    async def _process(self, card: Any, position: int) -> CardOutcome:
        # Clicked
        logger.debug(f"Card {position}: clicking")
        await self.session.click(card)
        await self.rate_limiter.wait()

        # AwaitingPanel
        attached = await self.session.wait_for_selector(
            self.selectors.panel, timeout_ms=self.panel_timeout_ms, state="attached"
        )
        if not attached:
            logger.warning(
                f"Card {position}: detail panel did not appear within {self.panel_timeout_ms}ms, skipping"
            )
            return CardOutcome.FAILED

        panel = await self.session.query_selector(self.selectors.panel)
        if panel is None:
            raise PageParsingError("Detail panel detached before it could be read", selector=self.selectors.panel)

        # Parsing
        title_element = await self.session.query_selector(self.selectors.title, root=panel)
        raw_title = await self.session.get_text(title_element) if title_element is not None else None
        title = parse_title(raw_title)

        if title in self.seen_titles:
            logger.debug(f"Card {position}: '{title}' already recorded, skipping duplicate")
            return CardOutcome.DUPLICATE
        self.seen_titles.add(title)

        buttons = await self.session.query_all(self.selectors.item_button, root=panel)
        labels = await self._read_attributes(buttons, self.selectors.item_label_attribute)
        identifiers = await self._read_attributes(buttons, self.selectors.item_id_attribute)

        record = ExtractedRecord(
            title=title,
            address=parse_address(labels),
            phone=parse_phone(identifiers),
        )

        # Recorded
        self.aggregator.add(record)
        logger.info(f"Card {position}: recorded '{record.title}' ({record.phone or 'no phone'})")
        return CardOutcome.RECORDED

    async def extract(self, card: Any, position: int = 0) -> CardOutcome:
        """Run one card through the state machine.

        Never raises: any error while handling the card is logged and
        reported as ``CardOutcome.FAILED``.

        Args:
            card: Card handle from the current feed
            position: 1-based index of the card, for log messages

        Returns:
            Terminal outcome of the card
        """
        try:
            return await self._process(card, position)
        except Exception as e:
            log_exception(logger, f"extract card {position}", e)
            return CardOutcome.FAILED

    async def extract_all(self, cards: Iterable[Any]) -> list[CardOutcome]:
        """Process cards one after another in feed order."""
        outcomes = []
        for position, card in enumerate(cards, 1):
            outcomes.append(await self.extract(card, position))
        return outcomes

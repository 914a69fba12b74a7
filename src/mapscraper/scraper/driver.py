"""
Batch driver for map feed extraction.

Runs the full pipeline for each query point in order:

1. Build the search URL for the point
2. Open a fresh browser session
3. Navigate and wait for the result feed
4. Scroll the feed until it stops growing
5. Click through every card and parse its detail panel
6. Flush the point's records to JSON (and CSV)
7. Close the session

Each point runs inside its own failure boundary: an error while
processing one point is logged and the batch moves on to the next.

Example:
    >>> driver = BatchDriver(get_config())
    >>> stats = await driver.run_batch("kedai kopi", get_position("data/positions.json"))
    >>> print(stats)
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Optional

from tqdm import tqdm

from mapscraper.utils.config import AppConfig
from mapscraper.utils.exceptions import FeedNotFoundError, StorageError
from mapscraper.utils.logger import get_logger, log_exception, log_execution_time

from .aggregator import ResultAggregator
from .browser import BrowserSession, PlaywrightSession
from .extractor import CardExtractor
from .models import BatchStats, CardOutcome, ExtractedRecord, LocationQuery
from .paginator import FeedPaginator
from .positions import get_position
from .storage import export_records_to_csv, load_records, save_records
from .utils import area_qualifier, build_url, coordinate_token_slug, sanitize_filename

logger = get_logger(__name__)

# Returns an async context manager yielding a BrowserSession
SessionFactory = Callable[[], object]


class BatchDriver:
    """
    Sequence the extraction pipeline over many query points.

    Attributes:
        config: Application configuration.
        session_factory: Creates one scoped browser session per point.
        output_dir: Directory receiving one result file per point.
        stats: Statistics of the last run.
    """

    def __init__(
        self,
        config: AppConfig,
        session_factory: Optional[SessionFactory] = None,
        output_dir: Optional[Path] = None,
    ):
        """
        Initialize the driver.

        Args:
            config: Application configuration.
            session_factory: Zero-argument callable returning an async
                context manager that yields a BrowserSession. Defaults to
                a PlaywrightSession built from ``config.browser``.
            output_dir: Result directory. Defaults to ``config.storage.output_dir``.
        """
        self.config = config
        self.session_factory = session_factory or partial(PlaywrightSession, config.browser)
        self.output_dir = Path(output_dir or config.storage.output_dir)
        self.stats = BatchStats()

    # =========================================
    # Output
    # =========================================

    def output_path(
        self, search_term: str, point_name: str, coordinate_zoom_token: str, suffix: str = ".json"
    ) -> Path:
        """Result file of one query point.

        The coordinate token is part of the name, so points sharing a name
        (or having none) never write to the same file.
        """
        stem = sanitize_filename(
            f"{search_term} {point_name} {coordinate_token_slug(coordinate_zoom_token)}".strip()
        )
        return self.output_dir / f"{stem}{suffix}"

    def _writers(self, search_term: str, point_name: str, coordinate_zoom_token: str) -> list:
        json_file = self.output_path(search_term, point_name, coordinate_zoom_token)
        writers = [partial(save_records, output_file=json_file)]
        if self.config.storage.export_csv:
            writers.append(
                partial(export_records_to_csv, output_file=json_file.with_suffix(".csv"))
            )
        return writers

    # =========================================
    # Page steps
    # =========================================

    async def _accept_consent(self, session: BrowserSession) -> bool:
        """Click the first consent button present, if any."""
        for selector in self.config.selectors.consent_buttons:
            button = await session.query_selector(selector)
            if button is not None:
                logger.info(f"Consent dialog found with selector: {selector}")
                await session.click(button)
                await session.wait_for_load_state(
                    "domcontentloaded", timeout_ms=self.config.scraper.load_timeout_ms
                )
                return True
        return False

    async def _load_feed(self, session: BrowserSession, url: str) -> None:
        scraper = self.config.scraper
        feed = self.config.selectors.feed

        await session.navigate(url)
        await session.wait_for_load_state("networkidle", timeout_ms=scraper.load_timeout_ms)

        if not await session.wait_for_selector(feed, timeout_ms=scraper.feed_timeout_ms):
            if await self._accept_consent(session):
                await session.wait_for_load_state("networkidle", timeout_ms=scraper.load_timeout_ms)
            if not await session.wait_for_selector(feed, timeout_ms=scraper.feed_timeout_ms):
                raise FeedNotFoundError(selector=feed, url=url)

    async def _scrape_feed(self, session: BrowserSession, aggregator: ResultAggregator) -> list[CardOutcome]:
        scraper = self.config.scraper
        selectors = self.config.selectors

        paginator = FeedPaginator(
            session,
            scroll_delay=scraper.scroll_delay,
            scroll_backoff=scraper.scroll_backoff,
            max_scroll_delay=scraper.max_scroll_delay,
            scroll_step=scraper.scroll_step,
            step_pause_ms=scraper.scroll_step_pause_ms,
        )
        await paginator.paginate(selectors.feed, scraper.max_scroll_attempts)

        feed = await session.query_selector(selectors.feed)
        if feed is None:
            raise FeedNotFoundError("Result feed disappeared after scrolling", selector=selectors.feed)
        cards = await session.query_all(selectors.card, root=feed)
        logger.info(f"Found {len(cards)} cards in feed")

        extractor = CardExtractor.from_config(session, aggregator, selectors, scraper)
        return await extractor.extract_all(cards)

    # =========================================
    # Query points
    # =========================================

    async def run_point(
        self, search_term: str, area: str, coordinate_zoom_token: str, point_name: str = ""
    ) -> list[ExtractedRecord]:
        """
        Run the pipeline for one query point.

        Errors propagate; ``run_batch`` is the failure boundary.

        Returns:
            Records flushed for the point
        """
        url = build_url(search_term, area, coordinate_zoom_token, self.config.scraper.base_url)
        aggregator = ResultAggregator(
            writers=self._writers(search_term, point_name, coordinate_zoom_token),
            label=point_name or coordinate_zoom_token,
        )

        logger.info(f"Query point {point_name or coordinate_zoom_token}: {url}")

        async with self.session_factory() as session:
            await self._load_feed(session, url)
            outcomes = await self._scrape_feed(session, aggregator)

            for outcome in outcomes:
                self.stats.count(outcome)
            return aggregator.flush()

    def _already_done(self, search_term: str, query: LocationQuery) -> bool:
        """Whether stored results for ``query`` can be reused.

        An unreadable result file does not count: the point runs again and
        its output replaces the file.
        """
        if not self.config.storage.skip_existing:
            return False
        path = self.output_path(search_term, query.search_term, query.coordinate_zoom_token)
        try:
            return load_records(path) is not None
        except StorageError as e:
            logger.warning(f"Stored results unreadable, running point again: {e}")
            return False

    async def run_batch(self, search_term: str, queries: Iterable[LocationQuery]) -> BatchStats:
        """
        Run the pipeline for every query point in order.

        A point that raises is logged, counted as failed, and skipped; the
        remaining points still run.

        Args:
            search_term: Search phrase shared by all points
            queries: Query points, processed in order

        Returns:
            Statistics of the run
        """
        queries = list(queries)
        self.stats = BatchStats(points_total=len(queries))
        self.stats.start()

        logger.info(f"Starting batch: '{search_term}' over {len(queries)} points")

        for query in tqdm(queries, desc="Query points", unit="point"):
            name = query.search_term
            try:
                if self._already_done(search_term, query):
                    logger.info(f"Skipping {name or query.coordinate_zoom_token}: results already stored")
                    self.stats.points_skipped += 1
                    continue

                with log_execution_time(logger, f"query point {name}"):
                    await self.run_point(
                        search_term,
                        area_qualifier(name),
                        query.coordinate_zoom_token,
                        point_name=name,
                    )
                self.stats.points_completed += 1
            except Exception as e:
                log_exception(logger, f"query point {name} ({query.coordinate_zoom_token})", e)
                self.stats.points_failed += 1

        self.stats.stop()
        logger.info(f"Batch complete. {self.stats}")
        return self.stats

    async def run_single(self, search_term: str, coordinate_zoom_token: str, area: str = "") -> BatchStats:
        """Run the pipeline for one literal coordinate."""
        self.stats = BatchStats(points_total=1)
        self.stats.start()

        try:
            await self.run_point(search_term, area, coordinate_zoom_token)
            self.stats.points_completed += 1
        except Exception as e:
            log_exception(logger, f"query point {coordinate_zoom_token}", e)
            self.stats.points_failed += 1

        self.stats.stop()
        logger.info(f"Run complete. {self.stats}")
        return self.stats

    async def run(self) -> BatchStats:
        """Run in batch or single mode as configured."""
        scraper = self.config.scraper
        if scraper.batch_mode:
            queries = get_position(scraper.positions_file)
            return await self.run_batch(scraper.search_term, queries)
        return await self.run_single(scraper.search_term, scraper.single_coordinate, scraper.area)


"""Map search feed extraction.

This module provides the pipeline that turns a map-search result feed
into location records:
- FeedPaginator: Scrolls the feed until it stops growing
- CardExtractor: Clicks each card and parses its detail panel
- ResultAggregator: Holds one query point's records until flushed
- BatchDriver: Runs the pipeline over many query points
- PlaywrightSession: Scoped Playwright browser session
- Storage utilities: Save/load records as JSON, export CSV

Usage:
    from mapscraper.scraper import BatchDriver, get_position
    from mapscraper.utils import get_config

    driver = BatchDriver(get_config())
    stats = await driver.run_batch("kedai kopi", get_position("data/positions.json"))
"""

from .aggregator import ResultAggregator
from .browser import BrowserSession, PlaywrightSession
from .driver import BatchDriver
from .extractor import CardExtractor
from .models import BatchStats, CardOutcome, ExtractedRecord, LocationQuery
from .paginator import FeedPaginator
from .parsers import parse_address, parse_phone, parse_title
from .positions import get_position
from .storage import export_records_to_csv, load_records, save_records
from .utils import build_url

__all__ = [
    "LocationQuery",
    "ExtractedRecord",
    "CardOutcome",
    "BatchStats",
    "BrowserSession",
    "PlaywrightSession",
    "FeedPaginator",
    "CardExtractor",
    "ResultAggregator",
    "BatchDriver",
    "build_url",
    "parse_title",
    "parse_address",
    "parse_phone",
    "get_position",
    "save_records",
    "export_records_to_csv",
    "load_records",
]

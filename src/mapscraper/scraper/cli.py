"""Command-line interface for the map feed scraper.

Usage:
    mapscraper --search "kedai kopi" --positions data/positions.json
    python -m mapscraper.scraper.cli --single --coordinate "@-6.8890102,106.873541,13z"
"""

import argparse
import asyncio
import sys
from pathlib import Path

from mapscraper.utils import get_config, get_logger, log_execution_time, set_package_log_level

from .driver import BatchDriver

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Extract place names, addresses and phone numbers from map search feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Batch mode over the configured positions file
  mapscraper --search "kedai kopi"

  # One coordinate, visible browser, debug logging
  mapscraper --single --coordinate "@-6.8890102,106.873541,13z" --no-headless --log-level DEBUG

  # Resume a batch, skipping points that already have results
  mapscraper --positions data/positions.json --skip-existing
        """
    )

    parser.add_argument('--search', type=str, default=None,
                        help='Search phrase (default: config / MAPSCRAPER_SEARCH, "Toko")')
    parser.add_argument('--area', type=str, default=None,
                        help='Area qualifier appended to the phrase in single mode, e.g. ", Cikole, Sukabumi"')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--single', dest='batch', action='store_false', default=None,
                      help='Scrape one coordinate instead of the positions file')
    mode.add_argument('--batch', dest='batch', action='store_true', default=None,
                      help='Scrape every point of the positions file (default)')

    parser.add_argument('--coordinate', type=str, default=None,
                        help='Coordinate token for single mode, e.g. "@-6.88,106.87,13z"')
    parser.add_argument('--positions', type=Path, default=None,
                        help='Positions JSON file for batch mode')
    parser.add_argument('--max-scrolls', type=int, default=None,
                        help='Scroll rounds per feed (overrides config)')
    parser.add_argument('--output-dir', type=Path, default=None,
                        help='Output directory for result files')
    parser.add_argument('--no-headless', action='store_true',
                        help='Show the browser window')
    parser.add_argument('--no-csv', action='store_true',
                        help='Write JSON only')
    parser.add_argument('--skip-existing', action='store_true',
                        help='Skip points whose results are already stored')
    parser.add_argument('--config', type=Path, default=None,
                        help='Path to configuration file (default: auto-detect)')
    parser.add_argument('--log-level', type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default=None,
                        help='Override log level')

    return parser.parse_args(argv)


def apply_args(config, args: argparse.Namespace):
    """Return a copy of ``config`` with command-line overrides applied."""
    config = config.model_copy(deep=True)
    scraper = config.scraper

    if args.search is not None:
        scraper.search_term = args.search
    if args.area is not None:
        scraper.area = args.area
    if args.batch is not None:
        scraper.batch_mode = args.batch
    if args.coordinate is not None:
        scraper.single_coordinate = args.coordinate
    if args.positions is not None:
        scraper.positions_file = str(args.positions)
    if args.max_scrolls is not None:
        scraper.max_scroll_attempts = args.max_scrolls
    if args.output_dir is not None:
        config.storage.output_dir = str(args.output_dir)
    if args.no_headless:
        config.browser.headless = False
    if args.no_csv:
        config.storage.export_csv = False
    if args.skip_existing:
        config.storage.skip_existing = True
    if args.log_level:
        config.log_level = args.log_level

    # Re-validate so bad overrides fail like bad config values
    return type(config).model_validate(config.model_dump())


async def main(argv=None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error, 130 when interrupted)
    """
    args = parse_args(argv)

    try:
        config = apply_args(get_config(args.config), args)
        set_package_log_level(config.log_level)

        scraper = config.scraper
        logger.info("=" * 60)
        logger.info("Map Feed Scraper")
        logger.info("=" * 60)
        logger.info(f"Search: {scraper.search_term}")
        logger.info(f"Mode: {'batch' if scraper.batch_mode else 'single'}")
        if scraper.batch_mode:
            logger.info(f"Positions: {scraper.positions_file}")
        else:
            logger.info(f"Coordinate: {scraper.single_coordinate}")
        logger.info(f"Max scroll rounds: {scraper.max_scroll_attempts}")
        logger.info(f"Output directory: {config.storage.output_dir}")
        logger.info("=" * 60)

        driver = BatchDriver(config)

        with log_execution_time(logger, "entire scraping operation"):
            stats = await driver.run()

        print("\n" + "=" * 60)
        print("SCRAPING SUMMARY")
        print("=" * 60)
        print(f"Points completed: {stats.points_completed}/{stats.points_total}")
        print(f"Points failed:    {stats.points_failed}")
        print(f"Points skipped:   {stats.points_skipped}")
        print(f"Records saved:    {stats.records}")
        print(f"Duplicates:       {stats.duplicates}")
        print(f"Cards failed:     {stats.cards_failed}")
        print(f"Output path:      {driver.output_dir}")
        print("=" * 60)

        return 0 if stats.points_failed < stats.points_total or stats.points_total == 0 else 1

    except KeyboardInterrupt:
        logger.warning("Scraping interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Scraping failed: {e}", exc_info=True)
        print(f"\nScraping failed: {e}")
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()

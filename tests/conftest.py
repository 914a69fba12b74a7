"""Pytest fixtures and configuration for mapscraper tests."""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Keep test log files out of the working tree
os.environ.setdefault("MAPSCRAPER_LOG_DIR", tempfile.mkdtemp(prefix="mapscraper-logs-"))

from mapscraper.scraper.models import ExtractedRecord, LocationQuery
from mapscraper.utils.config import (
    AppConfig,
    BrowserConfig,
    ScraperConfig,
    StorageConfig,
    reset_config,
)

from fakes import FakeCard, FakePanel


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        temp_path = Path(tmpdir)
        (temp_path / "results").mkdir()
        yield temp_path


@pytest.fixture
def test_config(temp_data_dir) -> AppConfig:
    """Provide a configuration with all waits disabled."""
    return AppConfig(
        browser=BrowserConfig(headless=True),
        scraper=ScraperConfig(
            search_term="kedai kopi",
            max_scroll_attempts=3,
            scroll_delay=0.0,
            max_scroll_delay=0.0,
            click_delay_range=[0.0, 0.0],
            panel_timeout_ms=0,
            load_timeout_ms=0,
            feed_timeout_ms=0,
        ),
        storage=StorageConfig(output_dir=str(temp_data_dir / "results")),
        log_level="DEBUG",
    )


@pytest.fixture
def sample_queries() -> list[LocationQuery]:
    """Two named query points."""
    return [
        LocationQuery(search_term="Cisaat", coordinate_zoom_token="@-6.902101,106.8871728,13z"),
        LocationQuery(search_term="Cikole", coordinate_zoom_token="@-6.8890102,106.873541,13z"),
    ]


@pytest.fixture
def sample_records() -> list[ExtractedRecord]:
    """Records as extracted from three detail panels."""
    return [
        ExtractedRecord(title="Kopi Kenangan", address="Jl. Contoh No. 1", phone="0812345"),
        ExtractedRecord(title="Warung Kopi Sukabumi", address="Jl. Raya Cisaat No. 8", phone=""),
        ExtractedRecord(title="Toko Été", address="No address", phone="0266-221"),
    ]


def make_card(title, address="Address: Jl. Contoh No. 1", phone_id="phone:tel:0812345"):
    """Card whose panel has an address button and a phone button."""
    buttons = []
    if address is not None:
        buttons.append(("address", address))
    if phone_id is not None:
        buttons.append((phone_id, "Phone: 0812345"))
    return FakeCard(panel=FakePanel(title=title, buttons=buttons))


@pytest.fixture
def card_factory():
    return make_card


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached configuration between tests."""
    reset_config()
    yield
    reset_config()

"""Unit tests for the batch driver and URL building."""

import asyncio
import json

import pytest

from mapscraper.scraper.driver import BatchDriver
from mapscraper.scraper.models import LocationQuery
from mapscraper.scraper.storage import load_records, save_records
from mapscraper.scraper.utils import area_qualifier, build_url, coordinate_token_slug, sanitize_filename
from mapscraper.utils.exceptions import NavigationError

from fakes import FakeSession

BASE = "https://www.google.com/maps/search"
CISAAT = "@-6.902101,106.8871728,13z"
CIKOLE = "@-6.8890102,106.873541,13z"


class TestBuildUrl:
    """Test search URL construction."""

    def test_phrase_encoded_token_verbatim(self):
        url = build_url("kopi", ", Area", "@-6.8,106.8,13z")
        assert url == BASE + "/kopi,%20Area/@-6.8,106.8,13z"

    def test_no_area(self):
        assert build_url("kedai kopi", "", "@-6.8890102,106.873541,13z") == (
            BASE + "/kedai%20kopi/@-6.8890102,106.873541,13z"
        )

    def test_non_ascii_phrase(self):
        url = build_url("kafé", "", "@1,2,3z")
        assert url == BASE + "/kaf%C3%A9/@1,2,3z"

    def test_custom_base_url(self):
        url = build_url("Toko", "", "@1,2,3z", base_url="https://maps.example.test/search/")
        assert url == "https://maps.example.test/search/Toko/@1,2,3z"

    def test_area_qualifier(self):
        assert area_qualifier("Cisaat") == ", Cisaat"
        assert area_qualifier("  ") == ""


class TestSanitizeFilename:

    def test_strips_separators(self):
        assert sanitize_filename("kedai kopi Cisaat, Sukabumi") == "kedai_kopi_Cisaat_Sukabumi"

    def test_empty(self):
        assert sanitize_filename("///") == "unnamed"

    def test_coordinate_token_slug(self):
        assert coordinate_token_slug("@-6.902101,106.8871728,13z") == "-6.902101_106.8871728_13z"
        assert coordinate_token_slug("@1,2,3z") != coordinate_token_slug("@12,3z")


class SessionQueue:
    """Session factory handing out prepared sessions in order."""

    def __init__(self, sessions):
        self.sessions = list(sessions)
        self.used = []

    def __call__(self):
        session = self.sessions.pop(0)
        self.used.append(session)
        return session


class TestBatchDriver:
    """Test per-point sequencing and failure isolation."""

    def test_each_point_gets_fresh_session_and_file(self, test_config, sample_queries, card_factory):
        factory = SessionQueue([
            FakeSession(cards=[card_factory("Kopi A")], heights=[800, 800]),
            FakeSession(cards=[card_factory("Kopi A"), card_factory("Kopi B")], heights=[900, 900]),
        ])
        driver = BatchDriver(test_config, session_factory=factory)

        stats = asyncio.run(driver.run_batch("kedai kopi", sample_queries))

        assert stats.points_completed == 2
        assert stats.records == 3
        assert all(session.entered and session.closed for session in factory.used)

        # Dedup does not cross query points
        first = load_records(driver.output_path("kedai kopi", "Cisaat", CISAAT))
        second = load_records(driver.output_path("kedai kopi", "Cikole", CIKOLE))
        assert [r.title for r in first] == ["Kopi A"]
        assert [r.title for r in second] == ["Kopi A", "Kopi B"]

        assert factory.used[0].visited == [
            BASE + "/kedai%20kopi,%20Cisaat/@-6.902101,106.8871728,13z"
        ]

    def test_failing_point_does_not_abort_batch(self, test_config, sample_queries, card_factory):
        factory = SessionQueue([
            FakeSession(navigate_error=NavigationError("HTTP 500 error", status_code=500)),
            FakeSession(cards=[card_factory("Kopi B")], heights=[500, 500]),
        ])
        driver = BatchDriver(test_config, session_factory=factory)

        stats = asyncio.run(driver.run_batch("kedai kopi", sample_queries))

        assert stats.points_failed == 1
        assert stats.points_completed == 1
        assert factory.used[0].closed
        assert load_records(driver.output_path("kedai kopi", "Cisaat", CISAAT)) is None
        assert [r.title for r in load_records(driver.output_path("kedai kopi", "Cikole", CIKOLE))] == ["Kopi B"]

    def test_missing_feed_fails_point(self, test_config, sample_queries, card_factory):
        factory = SessionQueue([
            FakeSession(feed_present=False),
            FakeSession(cards=[card_factory("Kopi B")]),
        ])
        driver = BatchDriver(test_config, session_factory=factory)

        stats = asyncio.run(driver.run_batch("kedai kopi", sample_queries))

        assert stats.points_failed == 1
        assert stats.points_completed == 1

    def test_csv_written_when_enabled(self, test_config, sample_queries, card_factory):
        factory = SessionQueue([FakeSession(cards=[card_factory("Kopi A")])])
        driver = BatchDriver(test_config, session_factory=factory)

        asyncio.run(driver.run_batch("kedai kopi", sample_queries[:1]))

        csv_path = driver.output_path("kedai kopi", "Cisaat", CISAAT, ".csv")
        assert csv_path.read_text(encoding="utf-8").splitlines()[0] == "title,address,phone"

    def test_csv_disabled(self, test_config, sample_queries, card_factory):
        test_config.storage.export_csv = False
        factory = SessionQueue([FakeSession(cards=[card_factory("Kopi A")])])
        driver = BatchDriver(test_config, session_factory=factory)

        asyncio.run(driver.run_batch("kedai kopi", sample_queries[:1]))

        assert not driver.output_path("kedai kopi", "Cisaat", CISAAT, ".csv").exists()

    def test_skip_existing(self, test_config, sample_queries, sample_records, card_factory):
        test_config.storage.skip_existing = True
        factory = SessionQueue([FakeSession(cards=[card_factory("Kopi B")])])
        driver = BatchDriver(test_config, session_factory=factory)
        save_records(sample_records, driver.output_path("kedai kopi", "Cisaat", CISAAT))

        stats = asyncio.run(driver.run_batch("kedai kopi", sample_queries))

        assert stats.points_skipped == 1
        assert stats.points_completed == 1
        assert len(factory.used) == 1
        assert len(load_records(driver.output_path("kedai kopi", "Cisaat", CISAAT))) == 3

    def test_unreadable_stored_results_rerun_point(self, test_config, sample_queries, card_factory):
        test_config.storage.skip_existing = True
        factory = SessionQueue([
            FakeSession(cards=[card_factory("Kopi A")]),
            FakeSession(cards=[card_factory("Kopi B")]),
        ])
        driver = BatchDriver(test_config, session_factory=factory)
        truncated = driver.output_path("kedai kopi", "Cisaat", CISAAT)
        truncated.write_text('[{"title": "trunc', encoding="utf-8")

        stats = asyncio.run(driver.run_batch("kedai kopi", sample_queries))

        assert stats.points_completed == 2
        assert stats.points_skipped == 0
        assert stats.points_failed == 0
        assert [r.title for r in load_records(truncated)] == ["Kopi A"]
        assert [r.title for r in load_records(driver.output_path("kedai kopi", "Cikole", CIKOLE))] == ["Kopi B"]

    @pytest.mark.parametrize("names", [("", ""), ("Cisaat", "Cisaat"), ("Cisaat,", "Cisaat@")])
    def test_points_with_colliding_names_keep_separate_files(self, test_config, card_factory, names):
        queries = [
            LocationQuery(search_term=names[0], coordinate_zoom_token=CISAAT),
            LocationQuery(search_term=names[1], coordinate_zoom_token=CIKOLE),
        ]
        factory = SessionQueue([
            FakeSession(cards=[card_factory("Kopi A")]),
            FakeSession(cards=[card_factory("Kopi B")]),
        ])
        driver = BatchDriver(test_config, session_factory=factory)

        stats = asyncio.run(driver.run_batch("kedai kopi", queries))

        assert stats.points_completed == 2
        first = load_records(driver.output_path("kedai kopi", names[0], CISAAT))
        second = load_records(driver.output_path("kedai kopi", names[1], CIKOLE))
        assert [r.title for r in first] == ["Kopi A"]
        assert [r.title for r in second] == ["Kopi B"]
        assert len(list(driver.output_dir.glob("*.json"))) == 2

    def test_skip_existing_matches_point_coordinate(self, test_config, sample_records, card_factory):
        test_config.storage.skip_existing = True
        queries = [
            LocationQuery(search_term="", coordinate_zoom_token=CISAAT),
            LocationQuery(search_term="", coordinate_zoom_token=CIKOLE),
        ]
        factory = SessionQueue([FakeSession(cards=[card_factory("Kopi B")])])
        driver = BatchDriver(test_config, session_factory=factory)
        save_records(sample_records, driver.output_path("kedai kopi", "", CISAAT))

        stats = asyncio.run(driver.run_batch("kedai kopi", queries))

        assert stats.points_skipped == 1
        assert stats.points_completed == 1
        assert factory.used[0].visited == [BASE + "/kedai%20kopi/" + CIKOLE]

    def test_run_single_mode(self, test_config, card_factory):
        test_config.scraper.batch_mode = False
        test_config.scraper.area = ", Cikole, Sukabumi"
        session = FakeSession(cards=[card_factory("Kopi A")])
        driver = BatchDriver(test_config, session_factory=lambda: session)

        stats = asyncio.run(driver.run())

        assert stats.points_total == 1
        assert stats.records == 1
        assert session.visited == [
            BASE + "/kedai%20kopi,%20Cikole,%20Sukabumi/@-6.8890102,106.873541,13z"
        ]
        assert load_records(driver.output_path("kedai kopi", "", CIKOLE)) is not None

    def test_run_batch_mode_reads_positions(self, test_config, temp_data_dir, card_factory):
        positions = temp_data_dir / "positions.json"
        positions.write_text(json.dumps([
            {"name": "Cisaat", "position": "@-6.902101,106.8871728,13z"},
        ]), encoding="utf-8")
        test_config.scraper.positions_file = str(positions)
        session = FakeSession(cards=[card_factory("Kopi A")])
        driver = BatchDriver(test_config, session_factory=lambda: session)

        stats = asyncio.run(driver.run())

        assert stats.points_completed == 1

    def test_empty_batch(self, test_config):
        driver = BatchDriver(test_config, session_factory=lambda: pytest.fail("no session expected"))

        stats = asyncio.run(driver.run_batch("kedai kopi", []))

        assert stats.points_total == 0
        assert stats.points_completed == 0

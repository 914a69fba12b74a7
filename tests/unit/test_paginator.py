"""Unit tests for feed pagination."""

import asyncio

import pytest

from mapscraper.scraper.paginator import STEPPED_SCROLL_SCRIPT, FeedPaginator

from fakes import FakeSession

FEED = "[role='feed']"


def run_paginate(heights, max_attempts, **kwargs):
    session = FakeSession(heights=heights)
    paginator = FeedPaginator(session, scroll_delay=0.0, max_scroll_delay=0.0, **kwargs)
    rounds = asyncio.run(paginator.paginate(FEED, max_attempts))
    return session, paginator, rounds


class TestFeedPaginator:
    """Test scroll termination."""

    @pytest.mark.parametrize("k", [0, 1, 2, 4])
    def test_stabilizing_feed_measures_k_plus_one_times(self, k):
        # Heights grow for k rounds, then repeat
        heights = [1000 * (i + 1) for i in range(k)] or [0]

        session, paginator, rounds = run_paginate(heights, max_attempts=10)

        assert session.height_calls == k + 1
        assert rounds == k + 1
        assert len(paginator.measurements) == k + 1

    def test_never_stabilizing_feed_stops_at_bound(self):
        heights = [1000 * (i + 1) for i in range(50)]

        session, paginator, rounds = run_paginate(heights, max_attempts=5)

        assert rounds == 5
        assert session.height_calls == 5
        assert len(session.scroll_calls) == 5
        assert paginator.measurements == [1000, 2000, 3000, 4000, 5000]

    def test_bound_of_one(self):
        session, _, rounds = run_paginate([500, 900], max_attempts=1)

        assert rounds == 1
        assert session.height_calls == 1

    def test_scroll_is_stepped_on_the_feed(self):
        session, _, _ = run_paginate([700, 700], max_attempts=3, scroll_step=250, step_pause_ms=40)

        assert session.scroll_calls[0] == {"selector": FEED, "step": 250, "pause": 40}
        assert "scrollBy" in STEPPED_SCROLL_SCRIPT

    def test_wait_grows_with_attempts(self, monkeypatch):
        from mapscraper.scraper import paginator as paginator_module

        delays = []
        real_backoff = paginator_module.backoff_delay

        def recording_backoff(attempt, base_delay, factor, max_delay):
            delays.append(real_backoff(attempt, base_delay, factor, max_delay))
            return 0.0

        monkeypatch.setattr(paginator_module, "backoff_delay", recording_backoff)

        session = FakeSession(heights=[100, 200, 300, 400])
        paginator = FeedPaginator(session, scroll_delay=1.0, scroll_backoff=2.0, max_scroll_delay=5.0)
        asyncio.run(paginator.paginate(FEED, max_attempts=4))

        assert delays == [1.0, 2.0, 4.0, 5.0]

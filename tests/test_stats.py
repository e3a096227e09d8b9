"""Tests for click analytics aggregation."""

from datetime import datetime, timedelta, timezone

from shorturl.database.models import URLMapping, Visit
from shorturl.stats import aggregate_visits, build_url_stats

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

CHROME = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/124.0 Safari/537.36"
IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"


def visits_at(*ages: timedelta, **kwargs):
    return [Visit(timestamp=NOW - age, **kwargs) for age in ages]


class TestAggregateVisits:
    """Test window counts and groupings."""

    def test_window_counts(self):
        visits = visits_at(
            timedelta(0),
            timedelta(hours=2),
            timedelta(hours=25),
            timedelta(days=8),
        )

        stats = aggregate_visits(visits, NOW)

        assert stats["last_day_clicks"] == 2
        assert stats["last_week_clicks"] == 3

    def test_window_boundary_is_exclusive(self):
        stats = aggregate_visits(visits_at(timedelta(days=1), timedelta(days=7)), NOW)

        assert stats["last_day_clicks"] == 0
        assert stats["last_week_clicks"] == 1

    def test_empty(self):
        stats = aggregate_visits([], NOW)

        assert stats["last_day_clicks"] == 0
        assert stats["by_referrer"] == []
        assert stats["by_user_agent"] == []

    def test_groupings_ordered_by_count(self):
        visits = (
            visits_at(timedelta(0), timedelta(0), user_agent=IPHONE, referrer="https://news.example.com")
            + visits_at(timedelta(0), user_agent=CHROME)
            + visits_at(timedelta(0))
        )

        stats = aggregate_visits(visits, NOW)

        # Ties keep first-seen order
        assert stats["by_referrer"] == [
            {"value": "https://news.example.com", "count": 2},
            {"value": "direct", "count": 2},
        ]
        assert stats["by_user_agent"][0] == {"value": IPHONE, "count": 2}
        assert {"value": "unknown", "count": 1} in stats["by_user_agent"]
        assert stats["by_device"][0] == {"value": "mobile", "count": 2}
        assert {"value": "desktop", "count": 1} in stats["by_device"]


class TestBuildURLStats:
    """Test the stats document."""

    def test_total_clicks_comes_from_counter(self):
        mapping = URLMapping(
            short_code="abc123",
            original_url="https://example.com",
            created_at=NOW - timedelta(days=30),
            clicks=12,
            analytics=visits_at(timedelta(hours=1), timedelta(days=3)),
        )

        stats = build_url_stats(mapping, NOW)

        assert stats["total_clicks"] == 12
        assert stats["last_day_clicks"] == 1
        assert stats["last_week_clicks"] == 2
        assert stats["mapping"]["short_code"] == "abc123"
        assert "analytics" not in stats["mapping"]
        assert stats["generated_at"] == NOW.isoformat()

    def test_consistent_mapping(self):
        analytics = visits_at(timedelta(0), timedelta(hours=2), timedelta(hours=25), timedelta(days=8))
        mapping = URLMapping(
            short_code="abc123",
            original_url="https://example.com",
            created_at=NOW - timedelta(days=30),
            clicks=len(analytics),
            analytics=analytics,
        )

        stats = build_url_stats(mapping, NOW)

        assert (stats["total_clicks"], stats["last_day_clicks"], stats["last_week_clicks"]) == (4, 2, 3)

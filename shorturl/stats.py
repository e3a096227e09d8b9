"""Click analytics aggregation."""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .common.headers import get_device_type
from .database.models import URLMapping, Visit

DIRECT_REFERRER = "direct"
UNKNOWN_USER_AGENT = "unknown"

LAST_DAY = timedelta(days=1)
LAST_WEEK = timedelta(days=7)


def _ranked(counter: Counter) -> List[Dict[str, Any]]:
    return [{"value": value, "count": count} for value, count in counter.most_common()]


def aggregate_visits(visits: Iterable[Visit], now: datetime) -> Dict[str, Any]:
    """Summarize a visit log.

    Window counts include a visit only if its timestamp is strictly after
    ``now - window``. Grouped counts are ordered by descending count.
    """
    by_user_agent: Counter = Counter()
    by_referrer: Counter = Counter()
    by_device: Counter = Counter()
    last_day = last_week = 0
    day_start = now - LAST_DAY
    week_start = now - LAST_WEEK

    for visit in visits:
        by_user_agent[visit.user_agent or UNKNOWN_USER_AGENT] += 1
        by_referrer[visit.referrer or DIRECT_REFERRER] += 1
        by_device[get_device_type(visit.user_agent)] += 1
        if visit.timestamp > day_start:
            last_day += 1
        if visit.timestamp > week_start:
            last_week += 1

    return {
        "by_user_agent": _ranked(by_user_agent),
        "by_referrer": _ranked(by_referrer),
        "by_device": _ranked(by_device),
        "last_day_clicks": last_day,
        "last_week_clicks": last_week,
    }


def build_url_stats(mapping: URLMapping, now: datetime, generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Stats document for one mapping; JSON-safe so it can be cached as is."""
    stats = aggregate_visits(mapping.analytics, now)
    stats["total_clicks"] = mapping.clicks
    stats["mapping"] = mapping.to_dict(include_analytics=False)
    stats["generated_at"] = (generated_at or now).isoformat()
    return stats

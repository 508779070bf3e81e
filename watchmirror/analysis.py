"""Aggregated views over a record set, and the time windows the views are taken over."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from . import utils
from .metrics import diversity_from_counts
from .models import AggregatedView, DateRange, Record

TOP_CHANNELS = 20

PERIODS = ("all", "month", "year", "5years")


def aggregate(records: Sequence[Record]) -> AggregatedView:
    """Single pass over the records; a fresh view every call."""
    if not records:
        return AggregatedView()

    channel_counts: Dict[str, int] = {}
    category_counts: Dict[str, int] = {}
    hour_counts = [0] * 24
    day_of_week_counts = [0] * 7
    year_counts: Dict[int, int] = {}

    for r in records:
        channel_counts[r.channel] = channel_counts.get(r.channel, 0) + 1
        category_counts[r.category] = category_counts.get(r.category, 0) + 1
        hour_counts[r.timestamp.hour] += 1
        day_of_week_counts[utils.day_of_week(r.timestamp)] += 1
        year_counts[r.timestamp.year] = year_counts.get(r.timestamp.year, 0) + 1

    top_channels = sorted(channel_counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_CHANNELS]

    first = min(r.timestamp for r in records)
    last = max(r.timestamp for r in records)

    return AggregatedView(
        total_videos=len(records),
        unique_channels=len(channel_counts),
        top_channels=top_channels,
        channel_counts=channel_counts,
        category_counts=category_counts,
        hour_counts=hour_counts,
        day_of_week_counts=day_of_week_counts,
        year_counts=year_counts,
        date_range=DateRange(first=first, last=last, days=utils.day_span(first, last)),
    )


def filter_by_time_period(records: Sequence[Record], period: str) -> List[Record]:
    """
    Records inside a window ending at the most recent record. An empty
    window falls back to the whole set.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}. Options: {list(PERIODS)}")
    if not records:
        return []

    end = records[-1].timestamp
    if period == "month":
        start = end - timedelta(days=30)
    elif period == "year":
        start = end - timedelta(days=365)
    elif period == "5years":
        start = end - relativedelta(years=5)
    else:
        start = records[0].timestamp

    window = [r for r in records if start <= r.timestamp <= end]
    return window or list(records)


def available_time_periods(records: Sequence[Record]) -> List[Dict[str, str]]:
    if not records:
        return []

    total_days = abs(records[-1].timestamp - records[0].timestamp) // timedelta(days=1)
    periods = [{"id": "all", "label": "All Time", "description": f"{total_days} days"}]
    if total_days >= 30:
        periods.append({"id": "month", "label": "Last Month", "description": "Last 30 days"})
    if total_days >= 365:
        periods.append({"id": "year", "label": "Last Year", "description": "Last 365 days"})
    if total_days >= 365 * 5:
        periods.append({"id": "5years", "label": "Last 5 Years", "description": "Last 5 years"})
    return periods


def yearly_comparison(records: Sequence[Record]) -> Dict[int, Dict[str, Any]]:
    by_year: Dict[int, List[Record]] = defaultdict(list)
    for r in records:
        by_year[r.timestamp.year].append(r)

    result: Dict[int, Dict[str, Any]] = {}
    for year in sorted(by_year):
        year_records = by_year[year]
        channels = Counter(r.channel for r in year_records)
        categories = Counter(r.category for r in year_records)
        result[year] = {
            "count": len(year_records),
            "unique_channels": len(channels),
            "categories": dict(categories),
            "diversity": diversity_from_counts(channels.values()),
            "dominant_category": categories.most_common(1)[0][0] if categories else "Unknown",
        }
    return result


def category_statistics(records: Sequence[Record]) -> Dict[str, Dict[str, Any]]:
    """Per-category breakdown, most watched category first."""
    total = len(records)
    stats: Dict[str, Dict[str, Any]] = {}
    channels: Dict[str, Counter] = defaultdict(Counter)

    for r in records:
        entry = stats.setdefault(r.category, {
            "count": 0,
            "first_watched": r.timestamp,
            "last_watched": r.timestamp,
        })
        entry["count"] += 1
        entry["first_watched"] = min(entry["first_watched"], r.timestamp)
        entry["last_watched"] = max(entry["last_watched"], r.timestamp)
        channels[r.category][r.channel] += 1

    for category, entry in stats.items():
        entry["unique_channels"] = len(channels[category])
        entry["top_channels"] = [
            {"channel": channel, "count": count}
            for channel, count in channels[category].most_common(5)
        ]
        entry["percentage"] = f"{entry['count'] / total * 100:.2f}"

    ordered: List[Tuple[str, Dict[str, Any]]] = sorted(stats.items(), key=lambda kv: kv[1]["count"], reverse=True)
    return dict(ordered)

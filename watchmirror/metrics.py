"""
Behavioural metrics over an aggregated view and its ordered record set.

Metrics:
- Diversity: normalised Shannon entropy of the channel distribution
- Echo-chamber strength: share of viewing from the top 5 channels
- Binge score: binge-session ratio scaled by daily volume
- Peak hour / night-owl score: when the viewing happens
- Drift, pivotal moments, learning curve: how diversity moves over time

Every function is pure; callers re-run them for any window of records.
"""

from __future__ import annotations

import math
from collections import Counter, OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import utils
from .models import SESSION_GAP_SECONDS, AggregatedView, Metrics, PivotalMoment, Record

TOP_ECHO_CHANNELS = 5
BINGE_SESSION_MIN = 3
NIGHT_HOURS = (23, 0, 1, 2, 3, 4, 5)
DRIFT_THRESHOLD = 0.2
PIVOT_THRESHOLD = 0.3
MAX_PIVOTAL_MOMENTS = 5
LEARNING_MIN_RECORDS = 100

METRIC_EXPLANATIONS: Dict[str, Dict[str, str]] = {
    "Echo Chamber Strength": {
        "term": "Echo Chamber Strength",
        "text": "Percentage of your viewing from your top 5 channels. Above 70% indicates a strong "
                "filter bubble where the algorithm has narrowed your content exposure.",
        "formula": "(Views from top 5 channels / Total views) × 100",
    },
    "Content Diversity": {
        "term": "Content Diversity (Shannon Entropy)",
        "text": "How varied your viewing is. 1.0 means perfectly diverse, 0 means you watch only one channel.",
        "formula": "H = -Σ p(x) log₂(p(x))",
    },
    "Binge Score": {
        "term": "Binge Score",
        "text": "Your tendency to watch multiple videos in one session.",
        "formula": "Sessions with 3+ videos / Total sessions × Average daily videos / 10",
    },
    "Peak Hour": {
        "term": "Peak Viewing Hour",
        "text": "The hour when you watch the most videos.",
        "formula": "Hour with maximum video count",
    },
    "Night Owl Score": {
        "term": "Night Owl Score",
        "text": "Percentage of viewing between 11 PM and 5 AM.",
        "formula": "(Videos 11PM-5AM / Total videos) × 100",
    },
}


# -----------------------------
# Diversity
# -----------------------------

def shannon_entropy(counts: Iterable[int], total: int) -> float:
    entropy = 0.0
    for count in counts:
        if count > 0:
            p = count / total
            entropy -= p * math.log2(p)
    return entropy


def diversity_from_counts(counts: Iterable[int]) -> float:
    """Entropy divided by its maximum for the number of distinct keys; 0 for 0 or 1 keys."""
    counts = [c for c in counts if c > 0]
    max_entropy = math.log2(len(counts)) if counts else 0.0
    if max_entropy <= 0:
        return 0.0
    # clamp float noise from near-uniform distributions
    return min(1.0, shannon_entropy(counts, sum(counts)) / max_entropy)


def channel_diversity(records: Sequence[Record]) -> float:
    return diversity_from_counts(Counter(r.channel for r in records).values())


def diversity_score(view: AggregatedView) -> float:
    return diversity_from_counts(view.channel_counts.values())


def echo_chamber_strength(view: AggregatedView) -> float:
    if not view.top_channels or view.total_videos == 0:
        return 0.0
    top = sum(count for _, count in view.top_channels[:TOP_ECHO_CHANNELS])
    return top / view.total_videos * 100


# -----------------------------
# Sessions
# -----------------------------

def identify_sessions(records: Sequence[Record]) -> List[List[Record]]:
    """Split records into runs whose consecutive gaps stay under two hours."""
    sessions: List[List[Record]] = []
    current: List[Record] = []
    for record in sorted(records, key=lambda r: r.timestamp):
        if current and (record.timestamp - current[-1].timestamp).total_seconds() >= SESSION_GAP_SECONDS:
            sessions.append(current)
            current = []
        current.append(record)
    if current:
        sessions.append(current)
    return sessions


def binge_score(records: Sequence[Record]) -> float:
    if not records:
        return 0.0
    sessions = identify_sessions(records)
    binge_sessions = sum(1 for s in sessions if len(s) >= BINGE_SESSION_MIN)
    binge_ratio = binge_sessions / len(sessions) if sessions else 0.0

    first = min(r.timestamp for r in records)
    last = max(r.timestamp for r in records)
    daily_average = len(records) / utils.day_span(first, last)

    return min(1.0, binge_ratio * (daily_average / 10))


# -----------------------------
# Time of day
# -----------------------------

def peak_hour(view: AggregatedView) -> int:
    best_count = 0
    best_hour = 0
    for hour, count in enumerate(view.hour_counts):
        if count > best_count:
            best_count = count
            best_hour = hour
    return best_hour


def night_owl_score(view: AggregatedView) -> float:
    if view.total_videos == 0:
        return 0.0
    night = sum(view.hour_counts[h] for h in NIGHT_HOURS)
    return night / view.total_videos * 100


# -----------------------------
# Longitudinal
# -----------------------------

def yearly_diversity(records: Sequence[Record]) -> Dict[int, float]:
    by_year: Dict[int, Counter] = {}
    for r in records:
        by_year.setdefault(r.timestamp.year, Counter())[r.channel] += 1
    return {year: diversity_from_counts(by_year[year].values()) for year in sorted(by_year)}


def diversity_trend(drift: float) -> str:
    if drift > DRIFT_THRESHOLD:
        return "narrowing"
    if drift < -DRIFT_THRESHOLD:
        return "expanding"
    return "stable"


def pivotal_moments(records: Sequence[Record]) -> List[PivotalMoment]:
    """Months whose channels-per-video ratio jumps by more than 0.3 from the month before."""
    months: "OrderedDict[Tuple[int, int], Tuple[set, int]]" = OrderedDict()
    for r in sorted(records, key=lambda rec: rec.timestamp):
        key = (r.timestamp.year, r.timestamp.month)
        channels, count = months.get(key, (set(), 0))
        channels.add(r.channel)
        months[key] = (channels, count + 1)

    ratios = [(key, len(channels) / count) for key, (channels, count) in months.items()]

    moments: List[PivotalMoment] = []
    for (_, prev_ratio), (key, ratio) in zip(ratios, ratios[1:]):
        if abs(prev_ratio - ratio) > PIVOT_THRESHOLD:
            narrowing = ratio < prev_ratio
            moments.append(PivotalMoment(
                date=f"{key[0]:04d}-{key[1]:02d}",
                type="narrowing" if narrowing else "expanding",
                description=f"Viewing diversity {'decreased' if narrowing else 'increased'} significantly",
            ))
            if len(moments) == MAX_PIVOTAL_MOMENTS:
                break
    return moments


def quarters(records: Sequence[Record]) -> List[Sequence[Record]]:
    size = len(records) // 4
    return [records[:size], records[size:size * 2], records[size * 2:size * 3], records[size * 3:]]


def learning_curve(records: Sequence[Record]) -> Tuple[Optional[int], List[float], str, float]:
    """(learning point, quarterly diversity, current phase, largest drop)."""
    if len(records) < LEARNING_MIN_RECORDS:
        return None, [], "exploring", 0.0

    ordered = sorted(records, key=lambda r: r.timestamp)
    quarterly = [channel_diversity(q) for q in quarters(ordered)]

    max_drop = 0.0
    learning_point: Optional[int] = None
    for i in range(1, len(quarterly)):
        drop = quarterly[i - 1] - quarterly[i]
        if drop > max_drop:
            max_drop = drop
            learning_point = i

    current = quarterly[-1]
    if current < 0.3:
        phase = "echo_chamber"
    elif current < 0.6:
        phase = "narrowing"
    else:
        phase = "diverse"
    return learning_point, quarterly, phase, max_drop


def calculate_all_metrics(view: AggregatedView, records: Sequence[Record]) -> Metrics:
    if view.total_videos == 0 or not records:
        return Metrics()

    metrics = Metrics(
        diversity_score=diversity_score(view),
        echo_strength=echo_chamber_strength(view),
        binge_score=binge_score(records),
        peak_hour=peak_hour(view),
        night_owl_score=night_owl_score(view),
        diversity_trend="stable",
    )

    if len(records) >= 2:
        per_year = yearly_diversity(records)
        years = list(per_year)
        metrics.yearly_diversity = per_year
        metrics.algorithmic_drift = per_year[years[0]] - per_year[years[-1]]
        metrics.diversity_trend = diversity_trend(metrics.algorithmic_drift)
        metrics.pivotal_moments = pivotal_moments(records)

    (metrics.learning_point, metrics.quarterly_diversity,
     metrics.current_phase, metrics.max_drop) = learning_curve(records)
    return metrics

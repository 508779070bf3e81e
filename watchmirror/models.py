"""Record, session and view types shared by the pipeline and the metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

UNCATEGORIZED = "Uncategorized"
ENTERTAINMENT = "Entertainment"
FALLBACK_CATEGORIES = (ENTERTAINMENT, UNCATEGORIZED)

CATEGORIES: Tuple[str, ...] = (
    "Gaming", "Music", "Education", "Tech", "Comedy", "News", "Cooking", "Sports",
    "Science", "Documentary", "Podcast", "Tutorial", "Fitness", "Art", "Travel",
    "Vlog", "Politics", "Fashion", "Beauty", "Finance", "Business", "Health", "DIY",
    "Lifestyle", "Review", "Reaction", "Animation", "History", "Nature", "Language",
    "Religion", "ASMR", "Kids", "Automotive", "Photography", ENTERTAINMENT,
)

UNKNOWN_CHANNEL = "Unknown Channel"

# Sessions break on gaps of this many seconds or more
SESSION_GAP_SECONDS = 2 * 60 * 60


def is_fallback(category: str) -> bool:
    return category in FALLBACK_CATEGORIES


def category_rank(category: str) -> int:
    """Position in the Uncategorized -> Entertainment -> resolved lattice."""
    if category == UNCATEGORIZED:
        return 0
    if category == ENTERTAINMENT:
        return 1
    return 2


@dataclass
class Record:
    title: str
    channel: str
    timestamp: datetime
    category: str = UNCATEGORIZED
    url: str = ""
    index: int = 0

    @property
    def is_fallback(self) -> bool:
        return is_fallback(self.category)

    def refine(self, category: str) -> bool:
        """Move the record rightward in the category lattice.

        Returns True when the category changed. Moves that keep or lower the
        rank are refused, so a resolved label is never overwritten.
        """
        if category_rank(category) <= category_rank(self.category):
            return False
        self.category = category
        return True


@dataclass
class DateRange:
    first: Optional[datetime] = None
    last: Optional[datetime] = None
    days: int = 0


@dataclass
class AggregatedView:
    total_videos: int = 0
    unique_channels: int = 0
    top_channels: List[Tuple[str, int]] = field(default_factory=list)
    channel_counts: Dict[str, int] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)
    hour_counts: List[int] = field(default_factory=lambda: [0] * 24)
    day_of_week_counts: List[int] = field(default_factory=lambda: [0] * 7)
    year_counts: Dict[int, int] = field(default_factory=dict)
    date_range: DateRange = field(default_factory=DateRange)


@dataclass
class PivotalMoment:
    date: str
    type: str
    description: str


@dataclass
class Metrics:
    diversity_score: float = 0.0
    echo_strength: float = 0.0
    binge_score: float = 0.0
    peak_hour: int = 0
    night_owl_score: float = 0.0
    algorithmic_drift: float = 0.0
    diversity_trend: str = "unknown"
    yearly_diversity: Dict[int, float] = field(default_factory=dict)
    pivotal_moments: List[PivotalMoment] = field(default_factory=list)
    learning_point: Optional[int] = None
    quarterly_diversity: List[float] = field(default_factory=list)
    max_drop: float = 0.0
    current_phase: str = "unknown"


@dataclass
class CategorizationStats:
    total: int = 0
    ai_categorized: int = 0
    keyword_categorized: int = 0
    context_categorized: int = 0
    uncategorized: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "aiCategorized": self.ai_categorized,
            "keywordCategorized": self.keyword_categorized,
            "contextCategorized": self.context_categorized,
            "uncategorized": list(self.uncategorized),
        }

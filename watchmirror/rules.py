"""Lexical categorisation rules: priority overrides, weighted keywords, bonus detectors."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Pattern, Tuple

from .models import ENTERTAINMENT, Record
from .rules_config import ClassifierConfig, default_classifier_config

CHANNEL_MATCH_WEIGHT = 10
TITLE_MATCH_WEIGHT = 5
PHRASE_MATCH_WEIGHT = 3
MIN_CONFIDENT_SCORE = 10

MUSIC_TOPIC_MARKER = "- topic"
VLOG_MARKERS = ["mukbang", "vlog", "day in my life"]
TUTORIAL_MARKERS = ["how to", "tutorial", "learn"]
SOFTWARE_MARKERS = ["photoshop", "illustrator", "after effects", "excel", "coding", "programming"]

TITLE = "title"
COMBINED = "combined"

# (category, points, where the pattern is searched, pattern, extra pattern that
# must also match "title | channel"). Each row is an independent additive check,
# applied in this order; the order decides which new category keys appear first.
BONUS_DETECTORS: List[Tuple[str, int, str, str, Optional[str]]] = [
    ("Gaming", 15, TITLE, r"\b(ep|episode|part)\s*\d+", r"game|play|stream"),
    ("Music", 20, TITLE, r"\(official\s+(video|audio|music\s+video|lyric\s+video)\)", None),
    ("Music", 10, TITLE, r"\bft\.|feat\.|featuring|prod\.|produced\sby", None),
    ("Tutorial", 15, TITLE, r"\bhow\s+to\b|\btutorial\b|\bguide\b|\blearn\b", None),
    ("Education", 15, TITLE, r"\bexplained\b|\bunderstanding\b|\blesson\b", None),
    ("Tech", 10, TITLE, r"\breview\b|\bunboxing\b|\bvs\b|\bcomparison\b", None),
    ("News", 15, TITLE, r"\bbreaking\b|\blive\b|\btoday\b|\bupdate\b|\blive\s+stream\b", r"news|report|press"),
    ("Podcast", 15, TITLE, r"#\d+|ep\s*\d+|\bepisode\s+\d+", r"podcast|interview|talk|discussion"),
    ("Comedy", 12, COMBINED, r"\bfunny\b|\bcomedy\b|\bstandup\b|\bsketch\b|\bparody\b|\broast\b", None),
    ("Vlog", 15, TITLE, r"\bvlog\b|\bday\s+in\b|\bmy\s+life\b|\broutine\b|\bgrwm\b", None),
    ("ASMR", 20, COMBINED, r"\basmr\b", None),
]

BRACKETED_TITLE = re.compile(r"^\[.+\]")
FOUR_DIGITS = re.compile(r"\d{4}")
MOVIE_TERMS = re.compile(r"movie|film|trailer", re.IGNORECASE)
CAPS_DASH_TITLE = re.compile(r"^[A-Z\s]+-")
PERSON_NAME = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$")


def contains_any(markers: List[str], text: str) -> bool:
    return any(m in text for m in markers)


def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


class LexicalClassifier:
    """Deterministic title/channel scorer.

    The rule tables come from an immutable ClassifierConfig; the classifier
    keeps no other state, so one instance can be shared freely.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or default_classifier_config()
        self._keyword_patterns: List[Tuple[str, List[Tuple[str, Pattern[str]]]]] = [
            (category, [(kw, _compile(r"\b" + re.escape(kw) + r"\b")) for kw in keywords])
            for category, keywords in self.config.channel_patterns.items()
        ]
        self._bonus = [
            (category, points, where, _compile(pattern), _compile(extra) if extra else None)
            for category, points, where, pattern, extra in BONUS_DETECTORS
        ]

    def classify(self, title: str, channel: str) -> str:
        title_lc = (title or "").lower()
        channel_lc = (channel or "").lower()

        override = self.priority_override(title_lc, channel_lc)
        if override:
            return override

        best_category = ENTERTAINMENT
        max_score = 0
        # strict comparison: the first category to reach the maximum keeps it
        for category, value in self.score(title_lc, channel_lc).items():
            if value > max_score:
                max_score = value
                best_category = category

        if max_score >= MIN_CONFIDENT_SCORE:
            return best_category

        return self.last_resort(title or "", channel or "")

    def classify_record(self, record: Record) -> str:
        return self.classify(record.title, record.channel)

    def priority_override(self, title: str, channel: str) -> Optional[str]:
        if MUSIC_TOPIC_MARKER in channel:
            return "Music"
        if contains_any(VLOG_MARKERS, title):
            return "Vlog"
        if contains_any(TUTORIAL_MARKERS, title) and contains_any(SOFTWARE_MARKERS, title):
            return "Tutorial"
        return None

    def score(self, title: str, channel: str) -> Dict[str, int]:
        """Weighted score per category for already lower-cased text."""
        combined = f"{title} | {channel}"
        scores: Dict[str, int] = {}

        for category, patterns in self._keyword_patterns:
            total = 0
            for keyword, rx in patterns:
                if rx.search(channel):
                    total += CHANNEL_MATCH_WEIGHT
                if rx.search(title):
                    total += TITLE_MATCH_WEIGHT
                if keyword in combined:
                    total += PHRASE_MATCH_WEIGHT
            scores[category] = total

        for category, points, where, rx, extra in self._bonus:
            text = title if where == TITLE else combined
            if rx.search(text) and (extra is None or extra.search(combined)):
                scores[category] = scores.get(category, 0) + points

        return scores

    def last_resort(self, title: str, channel: str) -> str:
        """Structural guesses on the original-case strings."""
        if BRACKETED_TITLE.search(title):
            return "Gaming"
        title_lc = title.lower()
        if FOUR_DIGITS.search(title_lc) and MOVIE_TERMS.search(title_lc):
            return ENTERTAINMENT
        if CAPS_DASH_TITLE.search(title):
            return "Music"
        if len(channel.split(" ")) == 2 and PERSON_NAME.search(channel):
            return "Vlog"
        return ENTERTAINMENT

"""
Configurable rules system for content categorisation.
Allows keyword patterns and category aliases to be loaded from JSON files
without code changes.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import CATEGORIES

logger = logging.getLogger(__name__)

# Keyword patterns per category. Order matters: it is the scoring order, and
# the first category to reach the top score wins ties. Duplicates count twice.
DEFAULT_CHANNEL_PATTERNS: Dict[str, List[str]] = {
    "Gaming": [
        "gaming", "games", "gameplay", "twitch", "streamer", "plays", "speedrun",
        "ign", "gamespot", "polygon", "kotaku", "game theory", "dunkey",
        "markiplier", "jacksepticeye", "pewdiepie", "ninja", "pokimane",
        "esports", "competitive", "walkthrough", "let's play",
        "laro", "naglalaro",
        "juego", "jugando",
        "jeu", "joueur",
        "spiel", "spielen",
    ],
    "Music": [
        "music", "vevo", "records", "audio", "official video", "official audio",
        "rapper", "singer", "band", "artist", "musician", "dj",
        "spotify", "soundcloud", "mv", "lyrics", "topic", "-topic", "official music",
        "musika", "kanta", "awit",
        "música", "canción",
        "musique", "chanson",
        "musik", "lied",
    ],
    "Education": [
        "academy", "university", "college", "school", "edu", "course",
        "lecture", "lesson", "class", "tutorial", "learn", "teach",
        "khan", "crash course", "ted-ed", "professor",
        "paaralan", "eskwela",
        "escuela", "universidad",
        "école", "université",
        "schule", "universität",
    ],
    "Tech": [
        "tech", "technology", "review", "unbox", "gadget", "device",
        "mkbhd", "linus", "verge", "cnet", "engadget", "wired",
        "phone", "laptop", "computer", "android", "apple", "samsung",
        "teknolohiya", "cellphone",
    ],
    "News": [
        "news", "network", "press", "media", "journalism", "reporter",
        "cnn", "bbc", "fox", "nbc", "abc", "cbs", "msnbc",
        "breaking", "live", "today", "tonight", "headlines",
        "balita", "ulat",
        "noticias", "informes",
        "nouvelles", "actualités",
        "nachrichten", "aktuell",
        "berita",
        "خبر", "أخبار",
    ],
    "Science": [
        "science", "vsauce", "veritasium", "kurzgesagt", "asap",
        "physics", "chemistry", "biology", "space", "nasa",
        "research", "lab", "experiment", "scientific",
        "agham", "siyensya",
        "ciencia",
        "wissenschaft",
    ],
    "Documentary": [
        "documentary", "national geographic", "discovery", "nature",
        "history channel", "bbc earth", "smithsonian", "vice",
        "frontline", "nova", "planet earth",
        "dokumentaryo", "docu",
    ],
    "Sports": [
        "sport", "espn", "nfl", "nba", "mlb", "nhl", "fifa",
        "football", "basketball", "soccer", "baseball", "hockey",
        "athlete", "olympics", "championship", "tournament",
        "palakasan",
        "deporte", "fútbol",
        "sport", "football",
    ],
    "Cooking": [
        "cooking", "recipe", "food", "chef", "kitchen", "tasty",
        "binging", "babish", "gordon ramsay", "bon appetit",
        "cuisine", "baking", "meal prep",
        "lutuin", "kusina", "pagluluto", "ulam",
        "cocina", "receta",
        "cuisine", "recette",
        "kochen", "rezept",
    ],
    "Fitness": [
        "fitness", "workout", "gym", "training", "exercise",
        "yoga", "crossfit", "bodybuilding", "cardio", "hiit",
        "athlete", "nutrition", "muscle",
        "ehersisyo",
    ],
    "Vlog": [
        "vlog", "daily", "day in", "life", "routine", "diary",
        "casey neistat", "david dobrik", "emma chamberlain",
        "araw ko", "buhay ko", "kwentuhan", "chika",
        "mi vida", "mi día",
        "ma vie", "mon jour",
        "mein leben",
    ],
    "Podcast": [
        "podcast", "joe rogan", "interview", "talk show", "discussion",
        "conversation", "episode", "h3", "tiny meat gang",
        "usapan", "panayam",
    ],
}

# Oracle answers -> canonical category (matched case-insensitively)
DEFAULT_CATEGORY_ALIASES: Dict[str, str] = {
    "Gaming": "Gaming",
    "Music": "Music",
    "Education": "Education",
    "Educational": "Education",
    "Tech": "Tech",
    "Technology": "Tech",
    "Comedy": "Comedy",
    "News": "News",
    "Cooking": "Cooking",
    "Food": "Cooking",
    "Sports": "Sports",
    "Sport": "Sports",
    "Science": "Science",
    "Documentary": "Documentary",
    "Podcast": "Podcast",
    "Tutorial": "Tutorial",
    "Tutorials": "Tutorial",
    "Fitness": "Fitness",
    "Workout": "Fitness",
    "Art": "Art",
    "Travel": "Travel",
    "Vlog": "Vlog",
    "Vlogs": "Vlog",
    "Politics": "Politics",
    "Political": "Politics",
    "Fashion": "Fashion",
    "Beauty": "Beauty",
    "Finance": "Finance",
    "Business": "Business",
    "Health": "Health",
    "DIY": "DIY",
    "Entertainment": "Entertainment",
    "Lifestyle": "Lifestyle",
    "Review": "Review",
    "Reviews": "Review",
    "Reaction": "Reaction",
    "Reactions": "Reaction",
    "Animation": "Animation",
    "Animated": "Animation",
    "History": "History",
    "Historical": "History",
    "Nature": "Nature",
    "Language": "Language",
    "Religion": "Religion",
    "Religious": "Religion",
    "ASMR": "ASMR",
    "Kids": "Kids",
    "Children": "Kids",
    "Automotive": "Automotive",
    "Cars": "Automotive",
    "Photography": "Photography",
    "Photo": "Photography",
}

CATEGORY_COLORS: Dict[str, str] = {
    "Gaming": "#9333ea", "Music": "#3b82f6", "Education": "#10b981", "Tech": "#06b6d4",
    "Comedy": "#f59e0b", "News": "#ef4444", "Cooking": "#ec4899", "Sports": "#84cc16",
    "Science": "#6366f1", "Travel": "#14b8a6", "Entertainment": "#f97316",
    "Documentary": "#8b5cf6", "Podcast": "#64748b", "Tutorial": "#a855f7",
    "Vlog": "#fb923c", "Art": "#f472b6", "Fitness": "#22c55e", "Fashion": "#c084fc",
    "Beauty": "#f9a8d4", "Finance": "#fbbf24", "Business": "#059669", "Health": "#7dd3c0",
    "DIY": "#c2410c", "Politics": "#dc2626", "Lifestyle": "#e879f9", "Review": "#0ea5e9",
    "Reaction": "#8b5cf6", "Animation": "#f59e0b", "History": "#92400e", "Nature": "#16a34a",
    "Language": "#7c3aed", "Religion": "#be123c", "ASMR": "#db2777", "Kids": "#fde047",
    "Automotive": "#475569", "Photography": "#0891b2", "Other": "#6b7280",
    "Uncategorized": "#6b7280",
}


@dataclass(frozen=True)
class ClassifierConfig:
    """Read-only rule tables handed to the classifier and the oracle stage."""

    channel_patterns: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    category_aliases: Mapping[str, str] = field(default_factory=dict)
    category_colors: Mapping[str, str] = field(default_factory=dict)
    categories: Tuple[str, ...] = CATEGORIES

    @classmethod
    def build(cls, channel_patterns: Mapping[str, List[str]],
              category_aliases: Mapping[str, str],
              category_colors: Optional[Mapping[str, str]] = None) -> "ClassifierConfig":
        return cls(
            channel_patterns=MappingProxyType({k: tuple(v) for k, v in channel_patterns.items()}),
            category_aliases=MappingProxyType(dict(category_aliases)),
            category_colors=MappingProxyType(dict(category_colors or CATEGORY_COLORS)),
        )


def load_rules_from_file(file_path: str) -> Optional[Dict[str, Any]]:
    """Load rules from a JSON file. Returns None if file doesn't exist or is invalid."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, IOError):
        return None


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    override = os.environ.get("WATCHMIRROR_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(__file__).parent.parent / "config"


def load_channel_patterns() -> Dict[str, List[str]]:
    """Load keyword patterns from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "channel_patterns.json"))
    if config and isinstance(config, dict):
        validated = {}
        for key, value in config.items():
            if key in CATEGORIES and isinstance(value, list) and all(isinstance(item, str) for item in value):
                validated[key] = [item.lower() for item in value]
            else:
                logger.warning("Invalid channel pattern rule for '%s', ignoring", key)
        if validated:
            return validated

    return {category: list(keywords) for category, keywords in DEFAULT_CHANNEL_PATTERNS.items()}


def load_category_aliases() -> Dict[str, str]:
    """Load oracle category aliases from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "category_aliases.json"))
    if config and isinstance(config, dict):
        validated = {}
        for key, value in config.items():
            if isinstance(value, str) and value in CATEGORIES:
                validated[key] = value
            else:
                logger.warning("Invalid category alias '%s', ignoring", key)
        if validated:
            # configured aliases extend the defaults rather than replace them
            return {**DEFAULT_CATEGORY_ALIASES, **validated}

    return dict(DEFAULT_CATEGORY_ALIASES)


def load_classifier_config() -> ClassifierConfig:
    return ClassifierConfig.build(load_channel_patterns(), load_category_aliases())


def default_classifier_config() -> ClassifierConfig:
    return ClassifierConfig.build(DEFAULT_CHANNEL_PATTERNS, DEFAULT_CATEGORY_ALIASES)


def create_example_configs() -> Path:
    """Create example configuration files for reference."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    example_patterns = {
        "Gaming": ["gaming", "let's play", "speedrun"],
        "Cooking": ["recipe", "kitchen", "receta"],
    }

    with open(config_dir / "channel_patterns_example.json", 'w', encoding='utf-8') as f:
        json.dump(example_patterns, f, indent=2, ensure_ascii=False)

    example_aliases = {
        "Gameplay": "Gaming",
        "Recipes": "Cooking",
    }

    with open(config_dir / "category_aliases_example.json", 'w', encoding='utf-8') as f:
        json.dump(example_aliases, f, indent=2)

    logger.info("Created example config files in %s", config_dir)
    logger.info("Rename _example.json files to .json to use them")
    return config_dir

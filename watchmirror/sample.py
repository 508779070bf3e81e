"""Synthetic watch history for demos and tests."""

from __future__ import annotations

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

SAMPLE_CHANNELS: Dict[str, List[str]] = {
    "Gaming": ["GameSpot", "IGN", "Markiplier", "PewDiePie", "GameTheory", "Dunkey"],
    "Music": ["Vevo", "Spotify", "NPR Music", "Tiny Desk", "COLORS", "Boiler Room"],
    "Education": ["Khan Academy", "CrashCourse", "TED-Ed", "Veritasium", "3Blue1Brown"],
    "Tech": ["MKBHD", "Unbox Therapy", "LinusTechTips", "The Verge", "CNET"],
    "Comedy": ["SNL", "Comedy Central", "CollegeHumor", "The Onion", "Key & Peele"],
    "News": ["CNN", "BBC", "Vox", "Vice", "The Guardian", "Reuters"],
    "Cooking": ["Bon Appétit", "Binging with Babish", "Gordon Ramsay", "Tasty"],
    "Science": ["Vsauce", "Kurzgesagt", "SmarterEveryDay", "Mark Rober", "NileRed"],
}


def generate_sample_history(count: Optional[int] = None, seed: int = 42,
                            start: Optional[datetime] = None,
                            end: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Raw export-shaped entries whose channel mix narrows as time goes on,
    with most viewing in the evening.
    """
    rng = random.Random(seed)
    start = start or datetime(2019, 1, 1, tzinfo=timezone.utc)
    end = end or datetime(2024, 12, 31, tzinfo=timezone.utc)
    total_days = (end - start).days
    count = count if count is not None else 500 + rng.randrange(1500)

    categories = list(SAMPLE_CHANNELS)
    entries = []
    for i in range(count):
        progress = i / count
        diversity_factor = 1 if progress < 0.3 else 0.7 if progress < 0.6 else 0.4
        available = max(3, int(len(categories) * diversity_factor))
        category = categories[rng.randrange(available)]
        channel = rng.choice(SAMPLE_CHANNELS[category])

        hour = 19 + rng.randrange(5) if rng.random() < 0.7 else rng.randrange(24)
        day = start + timedelta(days=int(progress * total_days))
        watched = day.replace(hour=hour, minute=rng.randrange(60))
        video_id = "".join(rng.choice(string.ascii_letters + string.digits) for _ in range(11))

        entries.append({
            "title": f"Watched {category} Video - {channel} Content {i + 1}",
            "time": watched.isoformat(),
            "subtitles": [{"name": channel}],
            "titleUrl": f"https://www.youtube.com/watch?v={video_id}",
        })
    return entries

"""Watch-history ingestion: raw export entries -> chronologically sorted records."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from . import utils
from .models import UNKNOWN_CHANNEL, Record

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """No usable records could be extracted from the input."""


def extract_channel(entry: Dict[str, Any]) -> str:
    """Resolve the channel name from the shapes a history export uses."""
    subtitles = entry.get("subtitles")
    if isinstance(subtitles, list) and subtitles:
        first = subtitles[0]
        if isinstance(first, dict) and first.get("name"):
            return str(first["name"])
    channel = entry.get("channel")
    if isinstance(channel, dict):
        if channel.get("name"):
            return str(channel["name"])
    elif channel:
        return str(channel)
    return UNKNOWN_CHANNEL


def extract_url(entry: Dict[str, Any]) -> str:
    for key in ("titleUrl", "url"):
        value = entry.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def normalize_entry(entry: Any) -> Optional[Record]:
    if not isinstance(entry, dict):
        return None
    title = entry.get("title")
    if not title or not isinstance(title, str):
        return None
    timestamp = utils.parse_timestamp(entry.get("time"))
    if timestamp is None:
        return None
    return Record(
        title=utils.clean_title(title),
        channel=extract_channel(entry),
        timestamp=timestamp,
        url=extract_url(entry),
    )


def normalize_entries(entries: Iterable[Any]) -> List[Record]:
    """
    Build records from raw entries, dropping any without a title or a
    parseable timestamp. Raises IngestionError when nothing survives.
    """
    seen = 0
    records: List[Record] = []
    for entry in entries:
        seen += 1
        record = normalize_entry(entry)
        if record is not None:
            records.append(record)

    logger.info("Processed %d valid videos out of %d entries", len(records), seen)

    if not records:
        raise IngestionError("No valid video data found in the input")

    records.sort(key=lambda r: r.timestamp)
    for position, record in enumerate(records):
        record.index = position
    return records


def load_history_file(path: str) -> List[Dict[str, Any]]:
    """Read a watch-history JSON export (a list of entries)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as ex:
        raise IngestionError(f"Could not read history file {path}: {ex}") from ex

    if not isinstance(data, list):
        raise IngestionError(f"History file {path} does not contain a list of entries")
    return data

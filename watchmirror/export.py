"""JSON / CSV export of a categorised record set, and re-import of the JSON form."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from . import utils
from .models import CategorizationStats, Record

CSV_HEADER = ["Title", "Channel", "Category", "Date", "Time", "Day of Week", "Hour", "Year", "URL"]


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def video_row(record: Record) -> Dict[str, Any]:
    ts = record.timestamp
    return {
        "title": record.title,
        "channel": record.channel,
        "category": record.category,
        "date": ts.strftime("%Y-%m-%d"),
        "time": ts.strftime("%H:%M:%S"),
        "dayOfWeek": utils.DAY_NAMES[utils.day_of_week(ts)],
        "hour": ts.hour,
        "year": ts.year,
        "url": record.url or "",
    }


def build_export(records: Sequence[Record], stats: Optional[CategorizationStats] = None,
                 export_date: Optional[datetime] = None) -> Dict[str, Any]:
    stats = stats or CategorizationStats(total=len(records))
    export_date = export_date or utils.utcnow()
    total = len(records)

    summary: Dict[str, Dict[str, Any]] = {}
    channels: Dict[str, set] = {}
    for r in records:
        summary.setdefault(r.category, {"count": 0, "percentage": "0.00%"})
        summary[r.category]["count"] += 1
        channels.setdefault(r.category, set()).add(r.channel)

    for category, entry in summary.items():
        entry["percentage"] = f"{entry['count'] / total * 100:.2f}%"
        entry["uniqueChannels"] = len(channels[category])

    return {
        "metadata": {
            "totalVideos": total,
            "exportDate": utils.iso_utc_millis(export_date),
            "categorizationStats": stats.to_dict(),
            "uniqueChannels": len({r.channel for r in records}),
            "dateRange": {
                "first": utils.iso_utc_millis(records[0].timestamp) if records else None,
                "last": utils.iso_utc_millis(records[-1].timestamp) if records else None,
            },
        },
        "categorySummary": summary,
        "videos": [video_row(r) for r in records],
    }


def to_json(records: Sequence[Record], stats: Optional[CategorizationStats] = None,
            export_date: Optional[datetime] = None) -> str:
    return json.dumps(build_export(records, stats, export_date), indent=2, ensure_ascii=False)


def to_csv(records: Sequence[Record]) -> str:
    rows = [",".join(CSV_HEADER)]
    for r in records:
        v = video_row(r)
        rows.append(",".join([
            _quote(v["title"]),
            _quote(v["channel"]),
            v["category"],
            v["date"],
            v["time"],
            v["dayOfWeek"],
            str(v["hour"]),
            str(v["year"]),
            v["url"],
        ]))
    return "\n".join(rows)


def records_from_export(data: Dict[str, Any]) -> List[Record]:
    """Rebuild records from an exported document (or its bare ``videos`` list)."""
    videos = data.get("videos", []) if isinstance(data, dict) else data
    tzinfo = utils.display_tz()
    records: List[Record] = []
    for position, v in enumerate(videos):
        ts = datetime.strptime(f"{v['date']} {v['time']}", "%Y-%m-%d %H:%M:%S").replace(tzinfo=tzinfo)
        records.append(Record(
            title=v.get("title", ""),
            channel=v.get("channel", ""),
            timestamp=ts,
            category=v.get("category", ""),
            url=v.get("url", ""),
            index=position,
        ))
    return records

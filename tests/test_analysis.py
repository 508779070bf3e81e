"""Tests for aggregated views and time windows."""

import unittest
from datetime import datetime, timedelta, timezone

from watchmirror import analysis
from watchmirror.models import Record

UTC = timezone.utc


def rec(channel, when, category="Gaming"):
    return Record(title=f"{channel} video", channel=channel, timestamp=when, category=category)


class TestAggregate(unittest.TestCase):
    """Test the single-pass aggregated view."""

    def setUp(self):
        # 2024-01-07 is a Sunday
        self.records = [
            rec("A", datetime(2023, 12, 31, 22, 0, tzinfo=UTC), "Music"),
            rec("A", datetime(2024, 1, 7, 10, 0, tzinfo=UTC), "Music"),
            rec("B", datetime(2024, 1, 8, 10, 30, tzinfo=UTC), "Gaming"),
            rec("A", datetime(2024, 1, 9, 23, 0, tzinfo=UTC), "Music"),
        ]

    def test_counts(self):
        view = analysis.aggregate(self.records)
        self.assertEqual(view.total_videos, 4)
        self.assertEqual(view.unique_channels, 2)
        self.assertEqual(view.top_channels, [("A", 3), ("B", 1)])
        self.assertEqual(view.category_counts, {"Music": 3, "Gaming": 1})
        self.assertEqual(view.year_counts, {2023: 1, 2024: 3})
        self.assertEqual(view.hour_counts[10], 2)
        self.assertEqual(view.hour_counts[22], 1)
        self.assertEqual(sum(view.hour_counts), 4)
        self.assertEqual(view.day_of_week_counts[0], 2)
        self.assertEqual(view.day_of_week_counts[1], 1)
        self.assertEqual(view.day_of_week_counts[2], 1)

    def test_date_range(self):
        view = analysis.aggregate(self.records)
        self.assertEqual(view.date_range.first, self.records[0].timestamp)
        self.assertEqual(view.date_range.last, self.records[-1].timestamp)
        self.assertEqual(view.date_range.days, 9)

    def test_same_day_range_is_one_day(self):
        view = analysis.aggregate(self.records[1:2])
        self.assertEqual(view.date_range.days, 1)

    def test_top_channels_limit(self):
        records = [rec(f"c{i}", datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=i)) for i in range(30)]
        self.assertEqual(len(analysis.aggregate(records).top_channels), analysis.TOP_CHANNELS)

    def test_empty(self):
        view = analysis.aggregate([])
        self.assertEqual(view.total_videos, 0)
        self.assertIsNone(view.date_range.first)
        self.assertEqual(view.hour_counts, [0] * 24)


class TestTimePeriods(unittest.TestCase):
    """Test windowing relative to the most recent record."""

    def setUp(self):
        end = datetime(2024, 6, 30, 12, 0, tzinfo=UTC)
        self.records = [
            rec("old", end - timedelta(days=2000)),
            rec("year", end - timedelta(days=200)),
            rec("month", end - timedelta(days=10)),
            rec("now", end),
        ]

    def test_filter(self):
        test_cases = [
            ("all", ["old", "year", "month", "now"]),
            ("5years", ["year", "month", "now"]),
            ("year", ["year", "month", "now"]),
            ("month", ["month", "now"]),
        ]
        for period, expected in test_cases:
            with self.subTest(period=period):
                window = analysis.filter_by_time_period(self.records, period)
                self.assertEqual([r.channel for r in window], expected)

    def test_unknown_period(self):
        with self.assertRaises(ValueError):
            analysis.filter_by_time_period(self.records, "decade")

    def test_available_periods(self):
        ids = [p["id"] for p in analysis.available_time_periods(self.records)]
        self.assertEqual(ids, ["all", "month", "year", "5years"])
        short = analysis.available_time_periods(self.records[2:])
        self.assertEqual([p["id"] for p in short], ["all"])
        self.assertEqual(short[0]["description"], "10 days")
        self.assertEqual(analysis.available_time_periods([]), [])


class TestBreakdowns(unittest.TestCase):

    def setUp(self):
        self.records = [
            rec("A", datetime(2023, 5, 1, tzinfo=UTC), "Music"),
            rec("B", datetime(2023, 6, 1, tzinfo=UTC), "Music"),
            rec("C", datetime(2024, 1, 1, tzinfo=UTC), "Gaming"),
            rec("C", datetime(2024, 2, 1, tzinfo=UTC), "Gaming"),
            rec("D", datetime(2024, 3, 1, tzinfo=UTC), "Cooking"),
        ]

    def test_yearly_comparison(self):
        result = analysis.yearly_comparison(self.records)
        self.assertEqual(list(result), [2023, 2024])
        self.assertEqual(result[2023]["count"], 2)
        self.assertEqual(result[2023]["dominant_category"], "Music")
        self.assertAlmostEqual(result[2023]["diversity"], 1.0)
        self.assertEqual(result[2024]["unique_channels"], 2)
        self.assertEqual(result[2024]["categories"], {"Gaming": 2, "Cooking": 1})

    def test_category_statistics(self):
        result = analysis.category_statistics(self.records)
        self.assertEqual(list(result)[2], "Cooking")
        music = result["Music"]
        self.assertEqual(music["count"], 2)
        self.assertEqual(music["percentage"], "40.00")
        self.assertEqual(music["unique_channels"], 2)
        self.assertEqual(music["first_watched"], self.records[0].timestamp)
        self.assertEqual(music["last_watched"], self.records[1].timestamp)
        self.assertEqual(result["Gaming"]["top_channels"], [{"channel": "C", "count": 2}])


if __name__ == "__main__":
    unittest.main()

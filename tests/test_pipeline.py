"""Tests for the categorisation pipeline stages."""

import unittest
from datetime import datetime, timedelta, timezone

from watchmirror import pipeline
from watchmirror.models import ENTERTAINMENT, UNCATEGORIZED, Record
from watchmirror.oracle import OracleClassifier, OracleError
from watchmirror.rules import LexicalClassifier

BASE = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def make_record(title, channel, minutes=0, category=UNCATEGORIZED):
    return Record(title=title, channel=channel, timestamp=BASE + timedelta(minutes=minutes), category=category)


class TestCategoryLattice(unittest.TestCase):
    """Test that categories only ever move towards more specific labels."""

    def test_refine_moves_rightward_only(self):
        record = make_record("t", "c")
        self.assertTrue(record.refine(ENTERTAINMENT))
        self.assertFalse(record.refine(UNCATEGORIZED))
        self.assertTrue(record.refine("Gaming"))
        self.assertFalse(record.refine("Music"))
        self.assertFalse(record.refine(ENTERTAINMENT))
        self.assertEqual(record.category, "Gaming")

    def test_uncategorized_can_resolve_directly(self):
        record = make_record("t", "c")
        self.assertTrue(record.refine("News"))
        self.assertEqual(record.category, "News")


class TestChannelConsensus(unittest.TestCase):
    """Test per-channel propagation of a dominant category."""

    def test_dominant_category_fills_fallbacks(self):
        records = [
            make_record("a", "Chef", 0, "Cooking"),
            make_record("b", "Chef", 1, "Cooking"),
            make_record("c", "Chef", 2, "Cooking"),
            make_record("d", "Chef", 3, ENTERTAINMENT),
            make_record("e", "Chef", 4, UNCATEGORIZED),
        ]
        self.assertEqual(pipeline.channel_consensus(records), 2)
        self.assertEqual({r.category for r in records}, {"Cooking"})

    def test_split_channel_is_left_alone(self):
        records = [
            make_record("a", "Mixed", 0, "Cooking"),
            make_record("b", "Mixed", 1, "Gaming"),
            make_record("c", "Mixed", 2, ENTERTAINMENT),
        ]
        self.assertEqual(pipeline.channel_consensus(records), 0)
        self.assertEqual(records[2].category, ENTERTAINMENT)

    def test_resolved_records_never_downgraded(self):
        records = [
            make_record("a", "Chan", 0, "Gaming"),
            make_record("b", "Chan", 1, "Gaming"),
            make_record("c", "Chan", 2, "Gaming"),
            make_record("d", "Chan", 3, "Music"),
        ]
        pipeline.channel_consensus(records)
        self.assertEqual([r.category for r in records], ["Gaming", "Gaming", "Gaming", "Music"])

    def test_no_cross_channel_effects(self):
        records = [
            make_record("a", "One", 0, "Gaming"),
            make_record("b", "Two", 1, ENTERTAINMENT),
        ]
        pipeline.channel_consensus(records)
        self.assertEqual(records[1].category, ENTERTAINMENT)


class TestContextualSmoothing(unittest.TestCase):
    """Test forward propagation within same-channel runs."""

    def test_propagates_forward_through_run(self):
        records = [
            make_record("a", "Chan", 0, "Gaming"),
            make_record("b", "Chan", 5, ENTERTAINMENT),
            make_record("c", "Chan", 9, ENTERTAINMENT),
        ]
        self.assertEqual(pipeline.contextual_smoothing(records), 2)
        self.assertEqual([r.category for r in records], ["Gaming"] * 3)

    def test_gap_and_channel_limits(self):
        records = [
            make_record("a", "Chan", 0, "Gaming"),
            make_record("b", "Chan", 10, ENTERTAINMENT),
            make_record("c", "Other", 11, ENTERTAINMENT),
        ]
        self.assertEqual(pipeline.contextual_smoothing(records), 0)

    def test_no_backtracking(self):
        records = [
            make_record("a", "Chan", 0, ENTERTAINMENT),
            make_record("b", "Chan", 2, "Gaming"),
        ]
        pipeline.contextual_smoothing(records)
        self.assertEqual(records[0].category, ENTERTAINMENT)


class TestFinalValidation(unittest.TestCase):

    def test_recheck_refines_entertainment(self):
        classifier = LexicalClassifier()
        records = [
            make_record("Easy pasta recipe", "Kitchen Stories", 0, ENTERTAINMENT),
            make_record("Something", "xyz123", 1, ENTERTAINMENT),
        ]
        self.assertEqual(pipeline.final_validation(records, classifier), 1)
        self.assertEqual(records[0].category, "Cooking")
        self.assertEqual(records[1].category, ENTERTAINMENT)


class TestClassifyRecords(unittest.TestCase):
    """Test the full stage sequence."""

    def setUp(self):
        self.records = [
            make_record("Easy pasta recipe", "Kitchen Stories", 0),
            make_record("Something", "qqq1", 100),
            make_record("Nothing much", "qqq2", 200),
        ]

    def test_without_oracle(self):
        stats = pipeline.classify_records(self.records)
        self.assertEqual(stats.total, 3)
        self.assertEqual(stats.keyword_categorized, 1)
        self.assertEqual(stats.ai_categorized, 0)
        self.assertEqual(stats.uncategorized, ["Something", "Nothing much"])
        self.assertNotIn(UNCATEGORIZED, [r.category for r in self.records])

    def test_oracle_labels_only_unresolved(self):
        prompts = []

        def fake_oracle(prompt):
            prompts.append(prompt)
            return "1. Cooking\n2. Gaming"

        stats = pipeline.classify_records(self.records, oracle=OracleClassifier(fake_oracle, delay=0))
        self.assertEqual(len(prompts), 1)
        self.assertNotIn("Easy pasta recipe", prompts[0])
        self.assertEqual([r.category for r in self.records], ["Cooking", "Cooking", "Gaming"])
        self.assertEqual(stats.ai_categorized, 2)
        self.assertEqual(stats.uncategorized, [])

    def test_oracle_failure_is_not_fatal(self):
        def broken_oracle(prompt):
            raise OracleError("service unavailable")

        with self.assertLogs("watchmirror.oracle", level="WARNING"):
            stats = pipeline.classify_records(self.records, oracle=OracleClassifier(broken_oracle, delay=0))
        self.assertEqual(stats.ai_categorized, 0)
        self.assertEqual([r.category for r in self.records], ["Cooking", ENTERTAINMENT, ENTERTAINMENT])

    def test_process_history(self):
        entries = [
            {"title": "Watched Let's Play Minecraft Part 5", "time": "2024-01-01T10:00:00Z",
             "subtitles": [{"name": "GameChannel"}]},
            {"title": "Watched Song", "time": "2024-01-01T09:00:00Z", "subtitles": [{"name": "Band - Topic"}]},
        ]
        records, stats = pipeline.process_history(entries)
        self.assertEqual([r.category for r in records], ["Music", "Gaming"])
        self.assertEqual(stats.keyword_categorized, 2)


if __name__ == "__main__":
    unittest.main()

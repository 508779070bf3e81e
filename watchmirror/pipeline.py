"""Multi-stage categorisation of a record set."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import ingest
from .models import ENTERTAINMENT, CategorizationStats, Record, is_fallback
from .oracle import OracleClassifier
from .rules import LexicalClassifier

logger = logging.getLogger(__name__)

CONSENSUS_THRESHOLD = 0.6
# Adjacent records closer than this (seconds) share context
CONTEXT_GAP_SECONDS = 10 * 60


def lexical_pass(records: List[Record], classifier: LexicalClassifier) -> int:
    resolved = 0
    for record in records:
        record.refine(classifier.classify_record(record))
        if not record.is_fallback:
            resolved += 1
    return resolved


def channel_consensus(records: List[Record]) -> int:
    """Give fallback records their channel's dominant category (>60% of resolved)."""
    by_channel: Dict[str, List[Record]] = defaultdict(list)
    for record in records:
        by_channel[record.channel].append(record)

    refined = 0
    for channel_records in by_channel.values():
        counts = Counter(r.category for r in channel_records if not r.is_fallback)
        if not counts:
            continue
        dominant, count = counts.most_common(1)[0]
        if count / sum(counts.values()) <= CONSENSUS_THRESHOLD:
            continue
        for record in channel_records:
            if record.is_fallback and record.refine(dominant):
                refined += 1
    return refined


def contextual_smoothing(records: List[Record]) -> int:
    """Single forward pass: copy a resolved label onto the next same-channel record."""
    refined = 0
    for prev, curr in zip(records, records[1:]):
        gap = (curr.timestamp - prev.timestamp).total_seconds()
        if gap >= CONTEXT_GAP_SECONDS:
            continue
        if curr.category == ENTERTAINMENT and not is_fallback(prev.category) and prev.channel == curr.channel:
            if curr.refine(prev.category):
                refined += 1
    return refined


def final_validation(records: List[Record], classifier: LexicalClassifier) -> int:
    refined = 0
    for record in records:
        if record.category == ENTERTAINMENT and record.refine(classifier.classify_record(record)):
            refined += 1
    return refined


def classify_records(records: List[Record], classifier: Optional[LexicalClassifier] = None,
                     oracle: Optional[OracleClassifier] = None) -> CategorizationStats:
    """Run every stage over the records, in order, mutating their categories."""
    classifier = classifier or LexicalClassifier()
    stats = CategorizationStats(total=len(records))

    logger.info("Phase 1: keyword categorisation of %d videos", len(records))
    stats.keyword_categorized = lexical_pass(records, classifier)

    logger.info("Phase 2: channel pattern analysis")
    stats.context_categorized += channel_consensus(records)

    unresolved = [r for r in records if r.is_fallback]
    if oracle is not None and unresolved:
        logger.info("Phase 3: oracle categorising %d remaining videos", len(unresolved))
        stats.ai_categorized = oracle.classify(unresolved)
    else:
        logger.info("Phase 3: skipped (%s)", "no oracle" if oracle is None else "nothing unresolved")

    logger.info("Phase 4: context-based refinement")
    stats.context_categorized += contextual_smoothing(records)

    logger.info("Phase 5: final validation")
    final_validation(records, classifier)

    stats.uncategorized = [r.title for r in records if r.is_fallback]
    logger.info(
        "Categorisation complete: total=%d ai=%d keyword=%d context=%d fallback=%d",
        stats.total, stats.ai_categorized, stats.keyword_categorized,
        stats.context_categorized, len(stats.uncategorized),
    )
    return stats


def process_history(entries: Iterable[Any], classifier: Optional[LexicalClassifier] = None,
                    oracle: Optional[OracleClassifier] = None) -> Tuple[List[Record], CategorizationStats]:
    records = ingest.normalize_entries(entries)
    stats = classify_records(records, classifier, oracle)
    return records, stats

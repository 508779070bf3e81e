"""External oracle categorisation for records the local rules could not resolve."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, List, Mapping, Optional

from .models import Record
from .rules_config import ClassifierConfig, default_classifier_config

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={key}"
DEFAULT_MODEL = os.environ.get("WATCHMIRROR_ORACLE_MODEL", "gemini-pro")

BATCH_SIZE = int(os.environ.get("WATCHMIRROR_ORACLE_BATCH_SIZE", "20"))
# Pause between batches (seconds)
BATCH_DELAY_SECONDS = float(os.environ.get("WATCHMIRROR_ORACLE_DELAY", "1.2"))
# Upper bound for a single batch call (seconds)
BATCH_TIMEOUT_SECONDS = float(os.environ.get("WATCHMIRROR_ORACLE_TIMEOUT", "30"))

RESPONSE_LINE = re.compile(r"^(\d+)\.\s*(.+)$")

PROMPT_TEMPLATE = """You are an expert YouTube content categorizer with expertise in GLOBAL content across ALL languages and cultures.

CRITICAL RULES:
1. NEVER default to "Entertainment" unless it's clearly entertainment/movies/shows
2. Look for SPECIFIC indicators in BOTH title AND channel
3. Consider channel names heavily - they often indicate content type
4. Gaming, Music, Tech are VERY common - look for these first
5. Personal vlogs are "Vlog" NOT "Entertainment"
6. Educational content is "Education" or "Tutorial" NOT "Entertainment"
7. MULTI-LANGUAGE: Recognize content in ANY language without bias
8. TOPIC over LANGUAGE: Focus on content type, not the language it's in

UNIVERSAL PATTERNS:
- Channels ending in "- Topic" = Music (YouTube auto-generated music channels)
- News channels use local terms: "news", "noticias", "nouvelles", "balita", "berita", etc.
- Vlogs often include: "day in", "my life", "routine", "daily" in ANY language
- Music videos: "official video", "official audio", "lyric video", "MV"
- Tutorials: "how to", "tutorial", "guide", "learn" patterns across languages

Available categories:
{categories}

Examples:
- "Let's Play Minecraft Part 5" -> Gaming
- "Como cocinar paella" -> Cooking
- "Mon routine du matin" -> Vlog
- ANY video with "- Topic" channel -> Music

Respond ONLY with number and category:
1. [Category]
2. [Category]

Videos:
{videos}"""

Oracle = Callable[[str], str]


class OracleError(Exception):
    """A batch call to the oracle failed."""


def build_prompt(batch: List[Record], categories: List[str]) -> str:
    videos = "\n".join(f'{i + 1}. "{r.title}" by {r.channel}' for i, r in enumerate(batch))
    return PROMPT_TEMPLATE.format(categories=", ".join(categories), videos=videos)


def parse_response(text: str, batch_size: int) -> Dict[int, str]:
    """Map zero-based batch positions to the raw category text of each numbered line."""
    answers: Dict[int, str] = {}
    for line in text.strip().splitlines():
        m = RESPONSE_LINE.match(line.strip())
        if not m:
            continue
        index = int(m.group(1)) - 1
        if 0 <= index < batch_size:
            answers[index] = m.group(2).strip()
    return answers


def normalize_category(raw: str, aliases: Mapping[str, str]) -> Optional[str]:
    cleaned = re.sub(r"[^\w\s]", "", raw).strip().lower()
    for alias, category in aliases.items():
        if cleaned == alias.lower():
            return category
    return None


class GeminiOracle:
    """Oracle backed by the Gemini generateContent endpoint."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 timeout: float = BATCH_TIMEOUT_SECONDS):
        self.api_key = api_key if api_key is not None else os.environ.get("GEMINI_API_KEY", "")
        self.model = model
        self.timeout = timeout

    def __call__(self, prompt: str) -> str:
        if not self.api_key:
            raise OracleError("No oracle API key configured")

        body = json.dumps({
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 300, "topP": 0.9, "topK": 40},
        }).encode("utf-8")
        url = GEMINI_URL.format(model=self.model, key=self.api_key)

        # Try once, then retry once only on transient errors (5xx, network)
        for attempt in range(2):
            req = urllib.request.Request(
                url, data=body, method="POST", headers={"Content-Type": "application/json"}
            )
            try:
                with urllib.request.urlopen(req, timeout=self.timeout) as response:
                    payload = json.loads(response.read().decode("utf-8"))
                return self._extract_text(payload)
            except urllib.error.HTTPError as e:
                if attempt == 0 and 500 <= e.code < 600:
                    time.sleep(1)
                    continue
                raise OracleError(f"HTTP {e.code}: {e.reason}") from e
            except urllib.error.URLError as e:
                if attempt == 0:
                    time.sleep(1)
                    continue
                raise OracleError(f"Network error: {e.reason}") from e
            except json.JSONDecodeError as e:
                raise OracleError(f"Malformed oracle payload: {e}") from e

        raise OracleError("Failed after retry")

    @staticmethod
    def _extract_text(payload: dict) -> str:
        try:
            return payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleError("Oracle response has no candidate text") from e


class OracleClassifier:
    """
    Sends unresolved records to an oracle in fixed-size batches, one batch in
    flight at a time with a pause between batches. A failed or timed-out batch
    leaves its records untouched.

    Each call runs on a daemon thread. A call that outlives the timeout is
    abandoned, not cancelled: it keeps running in the background but never
    blocks interpreter exit.
    """

    def __init__(self, oracle: Oracle, config: Optional[ClassifierConfig] = None,
                 batch_size: int = BATCH_SIZE, delay: float = BATCH_DELAY_SECONDS,
                 timeout: Optional[float] = BATCH_TIMEOUT_SECONDS):
        self.oracle = oracle
        self.config = config or default_classifier_config()
        self.batch_size = max(1, batch_size)
        self.delay = delay
        self.timeout = timeout

    def batches(self, records: List[Record]) -> List[List[Record]]:
        return [records[i:i + self.batch_size] for i in range(0, len(records), self.batch_size)]

    def classify(self, records: List[Record]) -> int:
        """Label the given records in place. Returns how many were refined."""
        batches = self.batches(records)
        categories = list(self.config.categories)
        refined = 0
        for i, batch in enumerate(batches):
            try:
                text = self.call(build_prompt(batch, categories))
                refined += self.apply(batch, text)
            except TimeoutError:
                logger.warning("Oracle batch %d/%d timed out after %ss", i + 1, len(batches), self.timeout)
            except Exception as ex:
                logger.warning("Error in oracle batch %d/%d: %s: %s",
                               i + 1, len(batches), type(ex).__name__, ex)

            if i < len(batches) - 1:
                time.sleep(self.delay)
        return refined

    def call(self, prompt: str) -> str:
        """Invoke the oracle, giving up after ``timeout`` seconds."""
        outcome: Dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["text"] = self.oracle(prompt)
            except Exception as ex:
                outcome["error"] = ex

        worker = threading.Thread(target=run, name="oracle-batch", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise TimeoutError(f"oracle call exceeded {self.timeout}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("text")

    def apply(self, batch: List[Record], text: str) -> int:
        if not isinstance(text, str):
            raise OracleError(f"Oracle returned {type(text).__name__}, expected text")
        refined = 0
        for index, raw in parse_response(text, len(batch)).items():
            category = normalize_category(raw, self.config.category_aliases)
            if category is None:
                logger.debug("Ignoring unknown oracle category %r", raw)
                continue
            if batch[index].refine(category):
                refined += 1
        return refined

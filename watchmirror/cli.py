"""Command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from . import analysis, export, ingest, rules_config
from .metrics import calculate_all_metrics
from .oracle import GeminiOracle, OracleClassifier
from .pipeline import process_history
from .rules import LexicalClassifier
from .sample import generate_sample_history
from .web import json_default, create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="watchmirror", description="Categorise and analyse a watch-history export.")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_history_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("history", help="watch-history JSON export")
        p.add_argument("--no-oracle", action="store_true", help="use the local rules only")

    p = sub.add_parser("classify", help="categorise a history and write an export")
    add_history_args(p)
    p.add_argument("--format", choices=["json", "csv"], default="json")
    p.add_argument("--out", help="output file (default: stdout)")

    p = sub.add_parser("metrics", help="print the aggregated view and metrics")
    add_history_args(p)
    p.add_argument("--period", choices=list(analysis.PERIODS), default="all")

    p = sub.add_parser("serve", help="serve the JSON API")
    add_history_args(p)
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=5000)

    p = sub.add_parser("sample", help="write a synthetic history file")
    p.add_argument("out")
    p.add_argument("--count", type=int)
    p.add_argument("--seed", type=int, default=42)

    sub.add_parser("init-config", help="write example rule config files")
    return parser


def load_and_classify(args: argparse.Namespace):
    config = rules_config.load_classifier_config()
    oracle = None
    if not args.no_oracle:
        gemini = GeminiOracle()
        if gemini.api_key:
            oracle = OracleClassifier(gemini, config)
        else:
            logger.info("No API key found, using keyword categorisation only")
    return process_history(ingest.load_history_file(args.history), LexicalClassifier(config), oracle)


def _write(text: str, out: Optional[str]) -> None:
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Wrote %s", out)
    else:
        sys.stdout.write(text + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.environ.get("WATCHMIRROR_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    if args.command == "sample":
        _write(json.dumps(generate_sample_history(args.count, seed=args.seed), indent=2, ensure_ascii=False), args.out)
        return 0
    if args.command == "init-config":
        rules_config.create_example_configs()
        return 0

    try:
        records, stats = load_and_classify(args)
    except ingest.IngestionError as ex:
        logger.error("%s", ex)
        return 1

    if args.command == "classify":
        text = export.to_csv(records) if args.format == "csv" else export.to_json(records, stats)
        _write(text, args.out)
    elif args.command == "metrics":
        window = analysis.filter_by_time_period(records, args.period)
        view = analysis.aggregate(window)
        payload = {"summary": view, "metrics": calculate_all_metrics(view, window)}
        _write(json.dumps(payload, indent=2, default=json_default, ensure_ascii=False), None)
    elif args.command == "serve":
        app = create_app(records, stats, config=rules_config.load_classifier_config())
        app.run(host=args.host, port=args.port, debug=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())

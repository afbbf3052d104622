from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from market_linker.clients.http_client import HttpClient
from market_linker.clients.llm_validator import LLMLinkValidator, validate_links
from market_linker.config import Settings, get_settings
from market_linker.connectors.kalshi_series import KalshiSeriesLookup
from market_linker.engine.backfill import classify_markets
from market_linker.engine.dispatcher import default_registry, parse_topic, topic_defaults
from market_linker.engine.orchestrator import run_pipeline
from market_linker.models import RunResult, Venue
from market_linker.storage.mongo import MongoStore
from market_linker.utils.logging import configure_logging

logger = logging.getLogger(__name__)

_FATAL_PREFIXES = ("Fetch failed", "Failed to write")
_CLASSIFY_LOOKBACK_HOURS = 720


def cmd_link(args: argparse.Namespace, settings: Settings) -> int:
    topic = parse_topic(args.topic)
    registry = default_registry()
    if topic is None or not registry.has(topic):
        print(f"Unknown topic: {args.topic}. Known: {', '.join(t.value for t in registry.registered_topics())}")
        return 1

    defaults = topic_defaults(topic)
    store = MongoStore(settings.mongodb_uri, settings.mongodb_db)
    result = run_pipeline(
        registry.get(topic),
        store,
        args.left_venue,
        args.right_venue,
        lookback_hours=args.lookback_hours or settings.linker_lookback_hours or defaults.lookback_hours,
        limit_left=args.limit_left,
        limit_right=args.limit_right,
        min_score=args.min_score if args.min_score is not None else defaults.min_score,
        dry_run=not args.apply,
        workers=settings.linker_workers,
    )
    print(format_run_result(result, dry_run=not args.apply))
    return 1 if has_fatal_errors(result) else 0


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    validator = LLMLinkValidator(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
    )
    if not validator.enabled():
        print("OPENAI_API_KEY is not set; validation skipped")
        return 1

    store = MongoStore(settings.mongodb_uri, settings.mongodb_db)
    counts = validate_links(
        store,
        validator,
        min_score=args.min_score if args.min_score is not None else settings.validate_min_score,
        limit=args.limit or settings.validate_limit,
        batch_size=settings.validate_batch_size,
        batch_delay_seconds=settings.validate_batch_delay_seconds,
        apply=args.apply,
    )
    mode = "APPLY" if args.apply else "DRY RUN"
    print(f"Validation ({mode}): " + " ".join(f"{k}={v}" for k, v in counts.items()))
    return 0


def cmd_classify(args: argparse.Namespace, settings: Settings) -> int:
    store = MongoStore(settings.mongodb_uri, settings.mongodb_db)
    lookup = None
    if args.venue == Venue.KALSHI.value:
        lookup = KalshiSeriesLookup(HttpClient(timeout=settings.http_timeout_seconds), settings.kalshi_base_url)
    counts = classify_markets(
        store,
        args.venue,
        lookback_hours=args.lookback_hours or settings.linker_lookback_hours or _CLASSIFY_LOOKBACK_HOURS,
        limit=args.limit,
        series_lookup=lookup,
    )
    print(f"Classified {sum(counts.values())} {args.venue} markets")
    for topic, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
        print(f"  {topic:<16} {n}")
    return 0


def has_fatal_errors(result: RunResult) -> bool:
    return any(err.startswith(_FATAL_PREFIXES) for err in result.errors)


def format_run_result(result: RunResult, dry_run: bool = True) -> str:
    stats = result.stats
    lines: List[str] = [
        f"{result.topic} [{result.algo_version}] {'DRY RUN' if dry_run else 'APPLIED'} in {result.duration_ms} ms",
        f"Markets: left={result.left_count} right={result.right_count}",
        f"Candidates considered: {stats.candidates_considered}",
        f"Hard gate failed: {stats.hard_gate_failed}",
        f"Scored: {stats.scored}",
        f"Below min score: {stats.below_min_score}",
        f"After dedup: {stats.after_dedup}",
        f"Suggested: {result.suggestions_created} | Auto-confirmed: {result.auto_confirmed}"
        f" | Auto-rejected: {result.auto_rejected}",
    ]
    if stats.gate_failures_by_reason:
        lines.append("Gate failures:")
        for reason, n in sorted(stats.gate_failures_by_reason.items(), key=lambda kv: -kv[1]):
            lines.append(f"  {reason}: {n}")
    lines.append("Score distribution:")
    for bucket, n in stats.score_distribution.items():
        lines.append(f"  {bucket:<8} {n}")
    if result.errors:
        lines.append("Errors:")
        lines.extend(f"  {err}" for err in result.errors[:20])
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    venues = [v.value for v in Venue]
    parser = argparse.ArgumentParser(prog="market-linker", description="Cross-venue prediction market linker")
    sub = parser.add_subparsers(dest="command", required=True)

    link = sub.add_parser("link", help="Run a topic pipeline and emit link suggestions")
    link.add_argument("--topic", required=True)
    link.add_argument("--left-venue", default=Venue.KALSHI.value, choices=venues)
    link.add_argument("--right-venue", default=Venue.POLYMARKET.value, choices=venues)
    link.add_argument("--lookback-hours", type=int, default=None)
    link.add_argument("--min-score", type=float, default=None)
    link.add_argument("--limit-left", type=int, default=5000)
    link.add_argument("--limit-right", type=int, default=5000)
    mode = link.add_mutually_exclusive_group()
    mode.add_argument("--apply", action="store_true", help="Write links to storage")
    mode.add_argument("--dry-run", action="store_true", help="Report only (default)")
    link.set_defaults(handler=cmd_link)

    validate = sub.add_parser("validate", help="Check suggested links with the LLM validator")
    validate.add_argument("--min-score", type=float, default=None)
    validate.add_argument("--limit", type=int, default=None)
    validate.add_argument("--apply", action="store_true", help="Update link statuses")
    validate.set_defaults(handler=cmd_validate)

    backfill = sub.add_parser("classify", help="Backfill derived topics on stored markets")
    backfill.add_argument("--venue", required=True, choices=venues)
    backfill.add_argument("--lookback-hours", type=int, default=None)
    backfill.add_argument("--limit", type=int, default=10000)
    backfill.set_defaults(handler=cmd_classify)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        return args.handler(args, settings)
    except Exception as exc:
        logger.exception("Command failed", extra={"command": args.command, "error": str(exc)})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from tenacity import retry, stop_after_attempt, wait_exponential

from market_linker.engine.pipelines.base import DedupLimits, MarketIndex, MarketStore, Pipeline, ScoredCandidate
from market_linker.models import LinkStatus, LinkWriteRequest, Market, RunResult, RunStats

logger = logging.getLogger(__name__)


class LinkStore(MarketStore, Protocol):
    def upsert_link(self, request: LinkWriteRequest) -> str: ...


@retry(wait=wait_exponential(multiplier=0.5, min=0.5, max=4), stop=stop_after_attempt(3), reraise=True)
def _write_link(store: LinkStore, request: LinkWriteRequest) -> str:
    return store.upsert_link(request)


@dataclass
class _LeftOutcome:
    considered: int = 0
    gate_failed: int = 0
    gate_reasons: Dict[str, int] = field(default_factory=dict)
    scored: int = 0
    below_min: int = 0
    errors: int = 0
    buckets: Dict[str, int] = field(default_factory=dict)
    candidates: List[ScoredCandidate] = field(default_factory=list)


def run_pipeline(
    pipeline: Pipeline,
    store: LinkStore,
    left_venue: str,
    right_venue: str,
    *,
    lookback_hours: int = 720,
    limit_left: int = 5000,
    limit_right: int = 5000,
    min_score: float = 0.6,
    dry_run: bool = True,
    workers: int = 4,
    max_per_left: Optional[int] = None,
    max_per_right: Optional[int] = None,
    min_winner_gap: Optional[float] = None,
    auto_confirm: bool = True,
    auto_reject: bool = True,
) -> RunResult:
    started = time.monotonic()
    result = RunResult(topic=pipeline.topic.value, algo_version=pipeline.algo_version)
    pipeline.reset()

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            left_future = pool.submit(pipeline.fetch_eligible, store, left_venue, lookback_hours, limit_left)
            right_future = pool.submit(pipeline.fetch_eligible, store, right_venue, lookback_hours, limit_right)
            left = left_future.result()
            right = right_future.result()
    except Exception as exc:
        logger.exception("Fetch failed for %s", pipeline.algo_version)
        result.errors.append(f"Fetch failed: {exc}")
        return _finish(result, started)

    result.left_count = len(left)
    result.right_count = len(right)
    logger.info(
        "Fetched markets",
        extra={"topic": result.topic, "left": result.left_count, "right": result.right_count},
    )
    if not left:
        result.errors.append("No left markets found")
        return _finish(result, started)
    if not right:
        result.errors.append("No right markets found")
        return _finish(result, started)

    index = pipeline.build_index(right)
    outcomes = _evaluate(pipeline, left, index, min_score, workers)

    stats = result.stats
    collected: List[ScoredCandidate] = []
    for outcome in outcomes:
        _merge(stats, outcome)
        collected.extend(outcome.candidates)

    defaults = pipeline.default_limits
    limits = DedupLimits(
        max_per_left=max_per_left if max_per_left is not None else defaults.max_per_left,
        max_per_right=max_per_right if max_per_right is not None else defaults.max_per_right,
        min_winner_gap=min_winner_gap if min_winner_gap is not None else defaults.min_winner_gap,
    )
    kept = pipeline.deduplicate(collected, limits)
    stats.after_dedup = len(kept)

    for cand in kept:
        request = _decide(pipeline, cand, auto_confirm=auto_confirm, auto_reject=auto_reject)
        result.writes.append(request)
        if request.status == LinkStatus.CONFIRMED:
            result.auto_confirmed += 1
        elif request.status == LinkStatus.REJECTED:
            result.auto_rejected += 1
        else:
            result.suggestions_created += 1

        if dry_run:
            continue
        try:
            _write_link(store, request)
        except Exception as exc:
            logger.warning(
                "Failed to write link %s:%s -> %s:%s: %s",
                request.left_venue,
                request.left_market_id,
                request.right_venue,
                request.right_market_id,
                exc,
            )
            result.errors.append(f"Failed to write suggestion: {exc}")
            stats.errors_count += 1

    logger.info(
        "Pipeline run complete",
        extra={
            "topic": result.topic,
            "candidates": stats.candidates_considered,
            "scored": stats.scored,
            "after_dedup": stats.after_dedup,
            "confirmed": result.auto_confirmed,
            "rejected": result.auto_rejected,
            "dry_run": dry_run,
        },
    )
    return _finish(result, started)


def score_bucket(score: float) -> str:
    if score >= 0.9:
        return "0.9+"
    if score >= 0.8:
        return "0.8-0.9"
    if score >= 0.7:
        return "0.7-0.8"
    if score >= 0.6:
        return "0.6-0.7"
    return "<0.6"


def _evaluate(
    pipeline: Pipeline, left: Sequence[Market], index: MarketIndex, min_score: float, workers: int
) -> List[_LeftOutcome]:
    if workers <= 1:
        return [_evaluate_left(pipeline, market, index, min_score) for market in left]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda m: _evaluate_left(pipeline, m, index, min_score), left))


def _evaluate_left(pipeline: Pipeline, market: Market, index: MarketIndex, min_score: float) -> _LeftOutcome:
    outcome = _LeftOutcome()
    try:
        candidates = pipeline.find_candidates(market, index)
    except Exception as exc:
        logger.warning("Candidate lookup failed for %s: %s", market.key, exc)
        outcome.errors += 1
        return outcome

    for right in candidates:
        if right.key == market.key:
            continue
        outcome.considered += 1
        try:
            gate = pipeline.check_hard_gates(market, right)
            if not gate.passed:
                outcome.gate_failed += 1
                reason = _reason_key(gate.reason)
                outcome.gate_reasons[reason] = outcome.gate_reasons.get(reason, 0) + 1
                continue
            scored = pipeline.score(market, right)
        except Exception as exc:
            logger.warning("Pair evaluation failed for %s vs %s: %s", market.key, right.key, exc)
            outcome.errors += 1
            continue
        if scored is None:
            continue
        outcome.scored += 1
        bucket = score_bucket(scored.score)
        outcome.buckets[bucket] = outcome.buckets.get(bucket, 0) + 1
        if scored.score < min_score:
            outcome.below_min += 1
            continue
        outcome.candidates.append(ScoredCandidate(left=market, right=right, result=scored))
    return outcome


def _merge(stats: RunStats, outcome: _LeftOutcome) -> None:
    stats.candidates_considered += outcome.considered
    stats.hard_gate_failed += outcome.gate_failed
    stats.scored += outcome.scored
    stats.below_min_score += outcome.below_min
    stats.errors_count += outcome.errors
    for reason, count in outcome.gate_reasons.items():
        stats.gate_failures_by_reason[reason] = stats.gate_failures_by_reason.get(reason, 0) + count
    for bucket, count in outcome.buckets.items():
        stats.score_distribution[bucket] = stats.score_distribution.get(bucket, 0) + count


def _decide(pipeline: Pipeline, cand: ScoredCandidate, *, auto_confirm: bool, auto_reject: bool) -> LinkWriteRequest:
    status = LinkStatus.SUGGESTED
    reason = cand.result.reason
    if auto_confirm:
        decision = pipeline.should_auto_confirm(cand.left, cand.right, cand.result)
        if decision.apply:
            status = LinkStatus.CONFIRMED
            reason = f"{decision.rule}: {reason}"
    if status == LinkStatus.SUGGESTED and auto_reject:
        decision = pipeline.should_auto_reject(cand.left, cand.right, cand.result)
        if decision.apply:
            status = LinkStatus.REJECTED
            reason = f"{decision.rule}: {decision.reason or reason}"
    return LinkWriteRequest(
        left_venue=cand.left.venue,
        left_market_id=cand.left.market_id,
        right_venue=cand.right.venue,
        right_market_id=cand.right.market_id,
        topic=pipeline.topic.value,
        status=status,
        score=cand.result.score,
        reason=reason,
        algo_version=pipeline.algo_version,
    )


def _reason_key(reason: Optional[str]) -> str:
    # "league mismatch: NBA vs NFL" -> "league mismatch"
    return (reason or "unknown").split(":", 1)[0].strip()


def _finish(result: RunResult, started: float) -> RunResult:
    result.duration_ms = int((time.monotonic() - started) * 1000)
    return result

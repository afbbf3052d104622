from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Generic, Iterable, List, Optional, Protocol, Sequence, TypeVar

from market_linker.models import CanonicalTopic, Market, ScoreResult

logger = logging.getLogger(__name__)

F = TypeVar("F")


@dataclass(frozen=True)
class DedupLimits:
    max_per_left: int = 5
    max_per_right: int = 5
    min_winner_gap: float = 0.02


@dataclass
class ScoredCandidate:
    left: Market
    right: Market
    result: ScoreResult


@dataclass(frozen=True)
class GateResult:
    passed: bool
    reason: Optional[str] = None


PASSED = GateResult(passed=True)


def gate_failed(reason: str) -> GateResult:
    return GateResult(passed=False, reason=reason)


@dataclass(frozen=True)
class Decision:
    apply: bool
    rule: Optional[str] = None
    confidence: float = 0.0
    reason: str = ""


NO_DECISION = Decision(apply=False)


class MarketStore(Protocol):
    def list_eligible_markets(
        self,
        venue: str,
        lookback_hours: int,
        limit: int,
        title_keywords: Optional[Sequence[str]] = None,
        derived_topic: Optional[str] = None,
    ) -> List[Market]: ...


class Pipeline(Protocol):
    topic: CanonicalTopic
    algo_version: str
    default_limits: DedupLimits
    strong_threshold: float

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]: ...

    def build_index(self, markets: Sequence[Market]) -> "MarketIndex": ...

    def find_candidates(self, market: Market, index: "MarketIndex") -> List[Market]: ...

    def check_hard_gates(self, left: Market, right: Market) -> GateResult: ...

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]: ...

    def deduplicate(
        self, candidates: Sequence[ScoredCandidate], limits: Optional[DedupLimits] = None
    ) -> List[ScoredCandidate]: ...

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision: ...

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision: ...

    def reset(self) -> None: ...


@dataclass
class MarketIndex:
    """Inverted index from lookup key to the markets filed under it."""

    by_key: Dict[str, Dict[str, Market]] = field(default_factory=dict)
    size: int = 0

    def add(self, key: str, market: Market) -> None:
        self.by_key.setdefault(key, {})[market.key] = market

    def get(self, key: str) -> List[Market]:
        return list(self.by_key.get(key, {}).values())

    def collect(self, keys: Iterable[str], exclude: Optional[Market] = None) -> List[Market]:
        seen: set[str] = set()
        out: List[Market] = []
        skip = exclude.key if exclude is not None else None
        for key in keys:
            for market_key, market in self.by_key.get(key, {}).items():
                if market_key in seen or market_key == skip:
                    continue
                seen.add(market_key)
                out.append(market)
        return out

    def __contains__(self, key: str) -> bool:
        return key in self.by_key


def build_index(markets: Iterable[Market], keys_for: Callable[[Market], Iterable[str]]) -> MarketIndex:
    index = MarketIndex()
    for market in markets:
        index.size += 1
        for key in keys_for(market):
            if key:
                index.add(key, market)
    return index


class FeatureCache(Generic[F]):
    """Per-market derived features, shared by the worker threads of one run."""

    def __init__(self, compute: Callable[[Market], F]):
        self._compute = compute
        self._items: Dict[str, F] = {}
        self._lock = threading.Lock()

    def get(self, market: Market) -> F:
        key = market.key
        with self._lock:
            if key in self._items:
                return self._items[key]
        value = self._compute(market)
        with self._lock:
            return self._items.setdefault(key, value)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


def deduplicate(candidates: Sequence[ScoredCandidate], limits: DedupLimits) -> List[ScoredCandidate]:
    """Greedy assignment by descending score under per-side caps.

    Once a right market holds a match, a later candidate for it is kept only
    while its score is within `min_winner_gap` of that best match.
    """
    ordered = sorted(candidates, key=lambda c: c.result.score, reverse=True)
    left_counts: Dict[str, int] = {}
    right_counts: Dict[str, int] = {}
    right_best: Dict[str, float] = {}
    kept: List[ScoredCandidate] = []

    for cand in ordered:
        left_key = cand.left.key
        right_key = cand.right.key
        if left_counts.get(left_key, 0) >= limits.max_per_left:
            continue
        if right_counts.get(right_key, 0) >= limits.max_per_right:
            continue
        best = right_best.get(right_key)
        if best is not None and best - cand.result.score >= limits.min_winner_gap:
            continue
        kept.append(cand)
        left_counts[left_key] = left_counts.get(left_key, 0) + 1
        right_counts[right_key] = right_counts.get(right_key, 0) + 1
        if best is None:
            right_best[right_key] = cand.result.score

    return kept


class BasePipeline:
    """Shared plumbing: feature caching, fetch helper, dedup and no-op decisions."""

    topic: CanonicalTopic = CanonicalTopic.UNKNOWN
    algo_version: str = ""
    default_limits: DedupLimits = DedupLimits()
    strong_threshold: float = 0.75

    _features: FeatureCache

    def reset(self) -> None:
        self._features.clear()

    def deduplicate(
        self, candidates: Sequence[ScoredCandidate], limits: Optional[DedupLimits] = None
    ) -> List[ScoredCandidate]:
        return deduplicate(candidates, limits or self.default_limits)

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        return NO_DECISION

    def _fetch(
        self,
        store: MarketStore,
        venue: str,
        lookback_hours: int,
        limit: int,
        title_keywords: Optional[Sequence[str]] = None,
        derived_topic: Optional[str] = None,
    ) -> List[Market]:
        markets = store.list_eligible_markets(
            venue,
            lookback_hours=lookback_hours,
            limit=limit,
            title_keywords=title_keywords,
            derived_topic=derived_topic,
        )
        logger.debug("%s fetched %d %s markets", self.algo_version, len(markets), venue)
        return markets


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def close_time_hours_apart(a: Market, b: Market) -> Optional[float]:
    if a.close_time is None or b.close_time is None:
        return None
    return abs((as_utc(a.close_time) - as_utc(b.close_time)).total_seconds()) / 3600.0

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import (
    Comparator,
    DatePrecision,
    EntityOverlap,
    ExtractedDate,
    GameType,
    SignalExtractor,
    Signals,
    count_entity_overlap,
    jaccard,
)
from market_linker.engine.pipelines import periods
from market_linker.engine.pipelines.base import (
    PASSED,
    BasePipeline,
    Decision,
    DedupLimits,
    FeatureCache,
    GateResult,
    MarketIndex,
    MarketStore,
    NO_DECISION,
    as_utc,
    build_index,
    close_time_hours_apart,
    gate_failed,
)
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "universal@3.0.23"

WEIGHTS = {
    "entity": 0.40,
    "number": 0.20,
    "time": 0.20,
    "text": 0.15,
    "category": 0.05,
}
MATCHUP_BONUS = 0.10
EVENT_BONUS = 0.05

STRONG_THRESHOLD = 0.75
AUTO_CONFIRM_THRESHOLD = 0.92
MIN_SCORE = 0.30


@dataclass(frozen=True)
class UniversalFeatures:
    signals: Signals
    matchup: Optional[Tuple[str, str]]
    events: Tuple[str, ...]


@dataclass(frozen=True)
class _ConfirmRule:
    name: str
    min_score: float
    min_entities: int = 0
    min_entity: float = 0.0
    min_text: float = 0.0
    min_time: float = 0.0
    min_number: float = 0.0
    min_numbers: int = 0
    min_matchup: float = 0.0
    min_event: float = 0.0


class UniversalPipeline(BasePipeline):
    """Entity-overlap matcher used for every topic without a dedicated pipeline."""

    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    strong_threshold = STRONG_THRESHOLD

    def __init__(self, topic: CanonicalTopic, extractor: Optional[SignalExtractor] = None):
        self.topic = topic
        self._extractor = extractor or SignalExtractor()
        self._features: FeatureCache[UniversalFeatures] = FeatureCache(self._extract)

    def features(self, market: Market) -> UniversalFeatures:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, derived_topic=self.topic.value)
        for market in markets:
            self.features(market)
        return markets

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        signals = self.features(market).signals
        keys = (
            [f"team:{t}" for t in signals.teams]
            + [f"person:{p}" for p in signals.people]
            + [f"org:{o}" for o in signals.organizations]
        )
        candidates = index.collect(keys, exclude=market)
        if not candidates and market.close_time is not None:
            day = as_utc(market.close_time).strftime("%Y-%m-%d")
            candidates = index.collect([f"type:{signals.game_type.value}:{day}"], exclude=market)
        return candidates

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        if left.market_id == right.market_id and left.venue == right.venue:
            return gate_failed("same market")
        if left.venue == right.venue:
            return gate_failed("same venue")
        if left.derived_topic and right.derived_topic and left.derived_topic != right.derived_topic:
            return gate_failed(f"derived topic mismatch: {left.derived_topic} vs {right.derived_topic}")

        ls = self.features(left).signals
        rs = self.features(right).signals
        if ls.entity_count and rs.entity_count and not count_entity_overlap(ls, rs).entities:
            return gate_failed("no entity overlap")
        if ls.entity_count == 0 and rs.entity_count == 0:
            shared = len(set(ls.tokens) & set(rs.tokens))
            smaller = min(len(set(ls.tokens)), len(set(rs.tokens)))
            if smaller == 0 or shared / smaller < 0.3:
                return gate_failed("no entities and low token overlap")

        if not quick_match_check(left, ls, right, rs):
            return gate_failed("no entity, text or time proximity")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        lf = self.features(left)
        rf = self.features(right)
        ls, rs = lf.signals, rf.signals
        overlap = count_entity_overlap(ls, rs)

        entity = entity_score(ls, rs, overlap)
        number = number_score(ls, rs, overlap)
        time = time_score(ls, rs, left, right)
        text = jaccard(ls.tokens, rs.tokens)
        category = 1.0 if left.derived_topic and left.derived_topic == right.derived_topic else 0.0
        matchup = matchup_score(lf.matchup, rf.matchup, overlap)
        event = event_score(lf.events, rf.events)

        raw = (
            WEIGHTS["entity"] * entity
            + WEIGHTS["number"] * number
            + WEIGHTS["time"] * time
            + WEIGHTS["text"] * text
            + WEIGHTS["category"] * category
            + MATCHUP_BONUS * matchup
            + EVENT_BONUS * event
        )
        score = clamp_score(raw)
        if score < MIN_SCORE:
            return None

        breakdown = {
            "entity": round(entity, 4),
            "number": round(number, 4),
            "time": round(time, 4),
            "text": round(text, 4),
            "category": category,
            "matchup": matchup,
            "event": event,
            "matched_entities": float(overlap.entities),
            "matched_numbers": float(len(overlap.numbers)),
        }
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if score >= STRONG_THRESHOLD else Tier.WEAK,
            breakdown=breakdown,
            reason=_reason(overlap, breakdown, score),
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        ls = self.features(left).signals
        rs = self.features(right).signals
        if {ls.comparator, rs.comparator} == {Comparator.ABOVE, Comparator.BELOW}:
            return NO_DECISION
        b = result.breakdown
        entities = int(b.get("matched_entities", 0))
        numbers = int(b.get("matched_numbers", 0))
        # different strikes or thresholds on the same underlying
        if ls.numbers and rs.numbers and numbers == 0:
            return NO_DECISION
        for rule in _CONFIRM_RULES:
            if result.score < rule.min_score or entities < rule.min_entities:
                continue
            if numbers < rule.min_numbers:
                continue
            if (
                b.get("entity", 0.0) >= rule.min_entity
                and b.get("text", 0.0) >= rule.min_text
                and b.get("time", 0.0) >= rule.min_time
                and b.get("number", 0.0) >= rule.min_number
                and b.get("matchup", 0.0) >= rule.min_matchup
                and b.get("event", 0.0) >= rule.min_event
            ):
                return Decision(apply=True, rule=f"UNIVERSAL_{rule.name}", confidence=result.score, reason=result.reason)
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        b = result.breakdown
        if result.score < 0.40:
            return Decision(apply=True, rule="UNIVERSAL_LOW_SCORE", reason=f"score {result.score:.2f} < 0.40")
        entities = int(b.get("matched_entities", 0))
        if entities == 0 and b.get("text", 0.0) < 0.15:
            return Decision(apply=True, rule="UNIVERSAL_NO_OVERLAP", reason="no shared entities and low text overlap")

        ls = self.features(left).signals
        rs = self.features(right).signals
        if (
            entities == 0
            and ls.game_type != GameType.UNKNOWN
            and rs.game_type != GameType.UNKNOWN
            and ls.game_type != rs.game_type
        ):
            return Decision(
                apply=True,
                rule="UNIVERSAL_DIFFERENT_GAME_TYPE",
                reason=f"{ls.game_type.value} vs {rs.game_type.value}",
            )
        if {ls.comparator, rs.comparator} == {Comparator.ABOVE, Comparator.BELOW}:
            return Decision(apply=True, rule="UNIVERSAL_CONFLICTING_COMPARATOR", reason="above vs below")
        return NO_DECISION

    def _extract(self, market: Market) -> UniversalFeatures:
        signals = self._extractor.extract(market.title, close_time=market.close_time, metadata=market.metadata)
        return UniversalFeatures(
            signals=signals,
            matchup=_matchup(market.title, signals),
            events=extract_events(market.title),
        )

    def _index_keys(self, market: Market) -> List[str]:
        signals = self.features(market).signals
        keys = (
            [f"team:{t}" for t in signals.teams]
            + [f"person:{p}" for p in signals.people]
            + [f"org:{o}" for o in signals.organizations]
        )
        if market.close_time is not None:
            day = as_utc(market.close_time).strftime("%Y-%m-%d")
            keys.append(f"date:{day}")
            keys.append(f"type:{signals.game_type.value}:{day}")
        keys.append("all")
        return keys


def quick_match_check(left: Market, ls: Signals, right: Market, rs: Signals) -> bool:
    if set(ls.teams) & set(rs.teams) or set(ls.people) & set(rs.people):
        return True
    if set(ls.organizations) & set(rs.organizations):
        return True
    if jaccard(ls.tokens, rs.tokens) >= 0.20:
        return True
    hours = close_time_hours_apart(left, right)
    return hours is not None and hours <= 48


def entity_score(a: Signals, b: Signals, overlap: EntityOverlap) -> float:
    best = 0.0
    categories = 0
    multi_within = False
    for left, right, matched in (
        (a.teams, b.teams, overlap.teams),
        (a.people, b.people, overlap.people),
        (a.organizations, b.organizations, overlap.organizations),
    ):
        if not matched:
            continue
        categories += 1
        union = len(set(left) | set(right))
        best = max(best, len(matched) / union if union else 0.0)
        if len(matched) >= 2:
            multi_within = True
    if categories >= 2:
        best += 0.1
    if multi_within:
        best += 0.05
    return min(best, 1.0)


def number_score(a: Signals, b: Signals, overlap: EntityOverlap) -> float:
    if not a.numbers and not b.numbers:
        return 1.0
    if not a.numbers or not b.numbers:
        return 0.3
    if not overlap.numbers:
        return 0.0
    total = 0.0
    for num_a, num_b in overlap.numbers:
        max_val = max(abs(num_a.value), abs(num_b.value))
        rel = abs(num_a.value - num_b.value) / max_val if max_val else 0.0
        if rel == 0:
            total += 1.0
        elif rel <= 0.001:
            total += 0.95
        elif rel <= 0.01:
            total += 0.85
        elif rel <= 0.05:
            total += 0.6
    return total / len(overlap.numbers)


def time_score(a: Signals, b: Signals, left: Market, right: Market) -> float:
    if a.dates and b.dates:
        return max(_date_pair_score(da, db) for da in a.dates for db in b.dates)
    hours = close_time_hours_apart(left, right)
    if hours is None:
        return 0.5
    return _hours_band(hours)


def matchup_score(a: Optional[Tuple[str, str]], b: Optional[Tuple[str, str]], overlap: EntityOverlap) -> float:
    if a is not None and b is not None and set(a) == set(b):
        return 1.0
    if (a is not None or b is not None) and overlap.teams:
        return 0.5
    return 0.0


def event_score(a: Sequence[str], b: Sequence[str]) -> float:
    if not a or not b:
        return 0.0
    if set(a) & set(b):
        return 1.0
    if {_event_base(e) for e in a} & {_event_base(e) for e in b}:
        return 0.7
    return 0.0


def extract_events(title: str) -> Tuple[str, ...]:
    lower = (title or "").lower()
    found: List[str] = []
    for m in _EVENT_RE.finditer(lower):
        name = re.sub(r"\s+", " ", m.group(0)).strip()
        if name not in found:
            found.append(name)
    return tuple(found)


def _date_pair_score(a: ExtractedDate, b: ExtractedDate) -> float:
    if a.precision == DatePrecision.DAY and b.precision == DatePrecision.DAY and a.month and b.month:
        if (a.year, a.month, a.day) == (b.year, b.month, b.day):
            return 1.0
        try:
            days = abs((date(a.year, a.month, a.day or 1) - date(b.year, b.month, b.day or 1)).days)
        except ValueError:
            return 0.0
        return _hours_band(days * 24.0)
    _, value = periods.period_compatibility(periods.period_key(a), periods.period_key(b))
    return value


def _hours_band(hours: float) -> float:
    for limit, value in _HOUR_BANDS:
        if hours <= limit:
            return value
    return 0.1


def _matchup(title: str, signals: Signals) -> Optional[Tuple[str, str]]:
    if len(signals.teams) != 2 or not _VS_RE.search(title or ""):
        return None
    first, second = sorted(signals.teams)
    return first, second


def _event_base(name: str) -> str:
    base = _EVENT_QUALIFIER_RE.sub(" ", name)
    return re.sub(r"\s+", " ", base).strip()


def _reason(overlap: EntityOverlap, breakdown: Dict[str, float], score: float) -> str:
    parts: List[str] = []
    if overlap.teams:
        parts.append("Teams: " + ", ".join(overlap.teams))
    if overlap.people:
        parts.append("People: " + ", ".join(overlap.people))
    if overlap.organizations:
        parts.append("Orgs: " + ", ".join(overlap.organizations))
    if overlap.numbers:
        parts.append("Numbers: " + ", ".join(f"{a.raw}≈{b.raw}" for a, b in overlap.numbers))
    if overlap.dates:
        parts.append("Dates: " + ", ".join(a.raw for a, _ in overlap.dates))
    summary = "; ".join(parts) if parts else "No entity overlap"
    return (
        f"{summary} [E={breakdown['entity']:.0%} N={breakdown['number']:.0%} "
        f"T={breakdown['time']:.0%} J={breakdown['text']:.0%}] ({score:.0%})"
    )


_HOUR_BANDS: Tuple[Tuple[float, float], ...] = (
    (1, 1.0),
    (6, 0.95),
    (24, 0.85),
    (48, 0.70),
    (168, 0.50),
    (720, 0.30),
)

_VS_RE = re.compile(r"\b(?:vs\.?|v\.?|versus)\s|\s@\s", re.IGNORECASE)

_EVENT_RE = re.compile(
    r"\b(?:super bowl|world series|stanley cup(?: final)?|nba finals|world cup|euro 20\d{2}|copa america"
    r"|champions league(?: final)?|europa league(?: final)?|fa cup|wimbledon|us open|australian open"
    r"|french open|roland garros|the masters|pga championship|ryder cup|(?:\w+ )?grand prix"
    r"|the international|worlds|msi|iem \w+|esl pro league|blast premier|pgl major"
    r"|vct (?:masters|champions)(?: \w+)?|ufc \d+|oscars|academy awards|grammys|emmys|golden globes"
    r"|march madness|final four|all-star game)(?: (?:20\d{2}|finals?|playoffs|semifinals?|quarterfinals?))*\b"
)
_EVENT_QUALIFIER_RE = re.compile(r"\b(?:20\d{2}|finals?|playoffs|semifinals?|quarterfinals?)\b")

_CONFIRM_RULES: Tuple[_ConfirmRule, ...] = (
    _ConfirmRule("MATCHUP_EXACT", min_score=0.70, min_matchup=1.0, min_time=0.5),
    _ConfirmRule("EVENT_ENTITY", min_score=0.75, min_event=0.9, min_entities=1),
    _ConfirmRule("HIGH_CONFIDENCE", min_score=AUTO_CONFIRM_THRESHOLD, min_entities=1, min_text=0.10),
    _ConfirmRule("ENTITY_MULTI", min_score=0.70, min_entity=0.70, min_time=0.5, min_entities=2),
    _ConfirmRule("NUMBER_EXACT", min_score=0.70, min_numbers=1, min_number=0.95, min_entities=1),
    _ConfirmRule("MULTI_SIGNAL", min_score=0.70, min_text=0.35, min_time=0.5, min_entities=2),
    _ConfirmRule("ENTITY_TEXT", min_score=0.75, min_entities=1, min_text=0.30, min_entity=0.5, min_time=0.7),
    _ConfirmRule("ENTITY_TIME", min_score=0.75, min_entities=1, min_time=0.85),
    _ConfirmRule("COMBINED", min_score=0.78, min_entities=1, min_entity=0.4, min_text=0.2),
    _ConfirmRule("ENTITY_TEXT_HIGH", min_score=0.70, min_entities=1, min_entity=0.9, min_text=0.7),
    _ConfirmRule("TEXT_HIGH", min_score=0.70, min_text=0.8, min_entities=1),
)

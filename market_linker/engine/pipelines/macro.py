from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import (
    Comparator,
    DatePrecision,
    ExtractedNumber,
    extract_comparator,
    extract_dates,
    extract_numbers,
    jaccard,
    normalize_title,
    numbers_match,
    tokenize,
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
    gate_failed,
)
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, Venue, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "macro@3.1.0"

WEIGHTS = {"entity": 0.50, "period": 0.35, "text": 0.15}
STRONG_THRESHOLD = 0.75
THRESHOLD_MISMATCH_PENALTY = 0.15


@dataclass
class MacroSignals:
    entities: FrozenSet[str]
    period_key: Optional[str]
    tokens: List[str] = field(default_factory=list)
    thresholds: Tuple[ExtractedNumber, ...] = ()
    comparator: Comparator = Comparator.UNKNOWN

    @property
    def year(self) -> Optional[int]:
        parsed = periods.parse_period(self.period_key) if self.period_key else None
        return parsed[1] if parsed else None


def extract_macro_entities(title: str) -> FrozenSet[str]:
    lower = (title or "").lower()
    return frozenset(entity for entity, pattern in _ENTITY_PATTERNS if pattern.search(lower))


def extract_macro_signals(market: Market) -> MacroSignals:
    dates = extract_dates(market.title, reference=market.close_time)
    period_key: Optional[str] = None
    if dates:
        # releases are monthly, so a day collapses to its month
        first = min(dates, key=lambda d: _PRECISION_RANK[d.precision])
        period_key = periods.period_key(first)
        if first.precision == DatePrecision.DAY:
            period_key = period_key[:7]
    elif market.close_time is not None:
        period_key = as_utc(market.close_time).strftime("%Y-%m")
    return MacroSignals(
        entities=extract_macro_entities(market.title),
        period_key=period_key,
        tokens=tokenize(normalize_title(market.title)),
        thresholds=tuple(extract_numbers(market.title)),
        comparator=extract_comparator(market.title),
    )


def is_sports_like(market: Market) -> bool:
    lower = (market.title or "").lower()
    keywords = SPORTS_TITLE_KEYWORDS
    if market.venue == Venue.POLYMARKET.value:
        keywords = SPORTS_TITLE_KEYWORDS + POLYMARKET_ESPORTS_KEYWORDS
    if any(kw in lower for kw in keywords):
        return True
    if market.venue == Venue.KALSHI.value:
        ticker = str(market.metadata.get("eventTicker") or market.metadata.get("event_ticker") or "").upper()
        return any(ticker.startswith(prefix) for prefix in KALSHI_SPORTS_PREFIXES)
    return False


class MacroPipeline(BasePipeline):
    topic = CanonicalTopic.MACRO
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    strong_threshold = STRONG_THRESHOLD

    def __init__(self, now: Optional[datetime] = None):
        self._now = now
        self._features: FeatureCache[MacroSignals] = FeatureCache(extract_macro_signals)

    def signals(self, market: Market) -> MacroSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=MACRO_KEYWORDS)
        current_year = (self._now or datetime.now(timezone.utc)).year
        eligible: List[Market] = []
        for market in markets:
            tokens = set(tokenize(market.title))
            if not tokens & set(MACRO_KEYWORDS):
                continue
            if is_sports_like(market):
                continue
            sig = self.signals(market)
            if not sig.entities:
                continue
            if sig.year is None or abs(sig.year - current_year) > 1:
                continue
            eligible.append(market)
        logger.info("macro: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        sig = self.signals(market)
        if not sig.period_key:
            return []
        period_keys = (sig.period_key,) + periods.compatible_keys(sig.period_key) + periods.finer_keys(sig.period_key)
        keys = [f"{entity}|{key}" for entity in sorted(sig.entities) for key in period_keys]
        return index.collect(keys, exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.entities or not rs.entities:
            return gate_failed("macro entity missing")
        if not ls.entities & rs.entities:
            return gate_failed(f"no entity overlap: {sorted(ls.entities)} vs {sorted(rs.entities)}")
        if not ls.period_key or not rs.period_key:
            return gate_failed("period missing")
        kind, _ = periods.period_compatibility(ls.period_key, rs.period_key)
        if kind == periods.NONE:
            return gate_failed(f"period mismatch: {ls.period_key} vs {rs.period_key}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)
        union = ls.entities | rs.entities
        entity = len(ls.entities & rs.entities) / len(union) if union else 0.0
        kind, period = periods.period_compatibility(ls.period_key or "", rs.period_key or "")
        text = jaccard(ls.tokens, rs.tokens)
        number = threshold_agreement(ls.thresholds, rs.thresholds)
        raw = WEIGHTS["entity"] * entity + WEIGHTS["period"] * period + WEIGHTS["text"] * text
        if number == 0.0:
            raw -= THRESHOLD_MISMATCH_PENALTY
        score = clamp_score(raw)
        strong = kind == periods.EXACT and entity >= 0.5 and number > 0.0
        reason = (
            f"entities={','.join(sorted(ls.entities & rs.entities))} entity={entity:.2f} "
            f"period={ls.period_key}/{rs.period_key}:{kind} text={text:.2f} "
            f"thresholds={_raw(ls.thresholds)}/{_raw(rs.thresholds)}"
        )
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if strong else Tier.WEAK,
            breakdown={
                "entity": round(entity, 4),
                "period": period,
                "period_exact": 1.0 if kind == periods.EXACT else 0.0,
                "text": round(text, 4),
                "number": number,
            },
            reason=reason,
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        b = result.breakdown
        if b.get("number", 0.0) < 1.0 or _opposite(self.signals(left).comparator, self.signals(right).comparator):
            return NO_DECISION
        if result.score >= 0.88 and b.get("period_exact") == 1.0 and b.get("entity", 0.0) >= 0.8:
            return Decision(apply=True, rule="MACRO_EXACT_MATCH", confidence=result.score, reason=result.reason)
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.5:
            return Decision(apply=True, rule="MACRO_LOW_SCORE", reason=f"score {result.score:.2f} < 0.50")
        if _opposite(self.signals(left).comparator, self.signals(right).comparator):
            return Decision(apply=True, rule="MACRO_CONFLICTING_COMPARATOR", reason="above vs below")
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if not sig.period_key:
            return []
        return [f"{entity}|{sig.period_key}" for entity in sorted(sig.entities)]


def threshold_agreement(a: Sequence[ExtractedNumber], b: Sequence[ExtractedNumber]) -> float:
    """1.0 when the printed thresholds agree (or neither side has one), 0.5 when only one side has one."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.5
    if any(numbers_match(x, y) for x in a for y in b):
        return 1.0
    return 0.0


def _opposite(a: Comparator, b: Comparator) -> bool:
    return {a, b} == {Comparator.ABOVE, Comparator.BELOW}


def _raw(numbers: Sequence[ExtractedNumber]) -> str:
    return ",".join(n.raw for n in numbers) or "-"


_PRECISION_RANK: Dict[DatePrecision, int] = {
    DatePrecision.DAY: 0,
    DatePrecision.MONTH: 1,
    DatePrecision.QUARTER: 2,
    DatePrecision.YEAR: 3,
}

MACRO_KEYWORDS: Tuple[str, ...] = (
    "cpi", "gdp", "inflation", "unemployment", "jobless", "payrolls", "nonfarm", "nfp",
    "fed", "fomc", "rates", "interest", "pce", "pmi",
)

KALSHI_SPORTS_PREFIXES: Tuple[str, ...] = (
    "KXMVESPORT", "KXMVENBASI", "KXNCAAMBGA", "KXTABLETEN", "KXNBAREB", "KXNFL",
)

SPORTS_TITLE_KEYWORDS: Tuple[str, ...] = (
    "yes ",
    ": 1+", ": 2+", ": 3+", ": 4+", ": 5+", ": 6+", ": 7+", ": 8+", ": 9+",
    ": 10+", ": 15+", ": 20+", ": 25+", ": 30+", ": 40+", ": 50+",
    "points scored", "wins by over", "wins by under",
    "first quarter", "second quarter", "third quarter", "fourth quarter",
    "steals", "rebounds", "assists", "touchdowns", "yards",
    "kill handicap", "tower handicap", "map handicap",
)

POLYMARKET_ESPORTS_KEYWORDS: Tuple[str, ...] = (
    "ninjas in pyjamas", "team we", "forze", "sangal",
    "esports", "dota", "league of legends", "cs:go", "valorant",
)

_ENTITY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("CPI", re.compile(r"\bcpi\b|consumer price index")),
    ("PPI", re.compile(r"\bppi\b|producer price index")),
    ("PCE", re.compile(r"\bpce\b|personal consumption expenditures")),
    ("GDP", re.compile(r"\bgdp\b|gross domestic product")),
    ("NFP", re.compile(r"\bnfp\b|non-?farm payrolls?|\bpayrolls\b|jobs report")),
    ("UNEMPLOYMENT_RATE", re.compile(r"unemployment(?:\s+rate)?")),
    ("JOBLESS_CLAIMS", re.compile(r"jobless claims|initial claims")),
    ("INFLATION", re.compile(r"\binflation\b")),
    ("FOMC", re.compile(r"\bfomc\b")),
    ("FED_RATE", re.compile(r"\bfed(?:eral)? funds\b|\bfed rate\b|\bfed\b.*\brates?\b")),
    ("INTEREST_RATE", re.compile(r"\binterest rates?\b")),
    ("PMI", re.compile(r"\bpmi\b|purchasing managers")),
]

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import (
    Comparator,
    DatePrecision,
    extract_comparator,
    extract_dates,
    extract_numbers,
    jaccard,
    normalize_title,
    tokenize,
)
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
from market_linker.engine.pipelines.crypto import STRIKE_GAP_LIMIT, strike_score
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "commodities@3.0.6"

WEIGHTS = {
    "underlying": 0.45,
    "date": 0.30,
    "comparator": 0.10,
    "number": 0.10,
    "text": 0.05,
}


class CommodityDateType(str, Enum):
    MONTH_END = "MONTH_END"
    DAY_EXACT = "DAY_EXACT"
    CONTRACT = "CONTRACT"
    CLOSE_TIME = "CLOSE_TIME"


@dataclass
class CommoditySignals:
    underlying: Optional[str]
    contract_code: Optional[str] = None
    month: Optional[str] = None
    date_type: Optional[CommodityDateType] = None
    comparator: Comparator = Comparator.UNKNOWN
    thresholds: Tuple[float, ...] = ()
    tokens: List[str] = field(default_factory=list)


def extract_underlying(title: str) -> Tuple[Optional[str], Optional[str]]:
    lower = (title or "").lower()
    for underlying, code, pattern in _UNDERLYING_PATTERNS:
        if pattern.search(lower):
            return underlying, code
    return None, None


def extract_thresholds(title: str) -> Tuple[float, ...]:
    text = title or ""
    found = [
        n.value
        for n in extract_numbers(text)
        if n.unit == "USD" or (n.unit is None and n.raw[-1:].isalpha())
    ]
    for m in _PLAIN_THRESHOLD_RE.finditer(text.lower()):
        value = float(m.group(1).replace(",", ""))
        if 1900 <= value <= 2100 and "." not in m.group(1):
            continue
        found.append(value)
    return tuple(sorted(set(found)))


def extract_target_month(
    title: str, close_time: Optional[datetime] = None
) -> Tuple[Optional[str], Optional[CommodityDateType]]:
    """Resolve the settlement month as ("YYYY-MM", date type)."""
    lower = (title or "").lower()
    close = as_utc(close_time)

    m = _MONTH_END_RE.search(lower)
    if m:
        year = int(m.group(2)) if m.group(2) else (close.year if close is not None else datetime.now().year)
        return f"{year:04d}-{_MONTHS[m.group(1)[:3]]:02d}", CommodityDateType.MONTH_END

    for precision, date_type in ((DatePrecision.DAY, CommodityDateType.DAY_EXACT),
                                 (DatePrecision.MONTH, CommodityDateType.CONTRACT)):
        for d in extract_dates(title, reference=close):
            if d.precision == precision and d.month:
                return f"{d.year:04d}-{d.month:02d}", date_type

    if close is not None:
        return close.strftime("%Y-%m"), CommodityDateType.CLOSE_TIME
    return None, None


def extract_commodity_signals(market: Market) -> CommoditySignals:
    underlying, code = extract_underlying(market.title)
    month, date_type = extract_target_month(market.title, market.close_time)
    return CommoditySignals(
        underlying=underlying,
        contract_code=code,
        month=month,
        date_type=date_type,
        comparator=extract_comparator(market.title),
        thresholds=extract_thresholds(market.title),
        tokens=tokenize(normalize_title(market.title)),
    )


def month_distance(a: str, b: str) -> int:
    ay, am = (int(part) for part in a.split("-"))
    by, bm = (int(part) for part in b.split("-"))
    return abs((ay * 12 + am) - (by * 12 + bm))


def comparator_score(a: Comparator, b: Comparator) -> float:
    if a == Comparator.UNKNOWN or b == Comparator.UNKNOWN:
        return 0.5
    if a == b:
        return 1.0
    if {a, b} == {Comparator.ABOVE, Comparator.BELOW}:
        return 0.0
    return 0.3


class CommoditiesPipeline(BasePipeline):
    topic = CanonicalTopic.COMMODITIES
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    strong_threshold = 0.80

    def __init__(self) -> None:
        self._features: FeatureCache[CommoditySignals] = FeatureCache(extract_commodity_signals)

    def signals(self, market: Market) -> CommoditySignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=COMMODITIES_KEYWORDS)
        eligible = [m for m in markets if self.signals(m).underlying is not None]
        logger.info("commodities: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        sig = self.signals(market)
        if not sig.underlying or not sig.month:
            return []
        months = [sig.month, _shift_month(sig.month, -1), _shift_month(sig.month, 1)]
        return index.collect([f"{sig.underlying}|{month}" for month in months], exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.underlying or not rs.underlying or ls.underlying != rs.underlying:
            return gate_failed(f"underlying mismatch: {ls.underlying} vs {rs.underlying}")
        if ls.month and rs.month and month_distance(ls.month, rs.month) > 1:
            return gate_failed(f"date too far: {ls.month} vs {rs.month}")
        _, gap = strike_score(ls.thresholds, rs.thresholds)
        if gap is not None and gap >= STRIKE_GAP_LIMIT:
            return gate_failed(f"strike mismatch: {_fmt(ls.thresholds)} vs {_fmt(rs.thresholds)}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.underlying or ls.underlying != rs.underlying:
            return None

        if ls.month and rs.month:
            if ls.month == rs.month:
                date_score = 1.0 if ls.date_type == rs.date_type else 0.8
            else:
                date_score = 0.4
        else:
            date_score = 0.5

        cmp_score = comparator_score(ls.comparator, rs.comparator)
        if ls.thresholds and rs.thresholds:
            number = strike_score(ls.thresholds, rs.thresholds)[0]
        else:
            number = 0.5
        text = jaccard(ls.tokens, rs.tokens)

        score = clamp_score(
            WEIGHTS["underlying"]
            + WEIGHTS["date"] * date_score
            + WEIGHTS["comparator"] * cmp_score
            + WEIGHTS["number"] * number
            + WEIGHTS["text"] * text
        )
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if date_score >= 0.8 and number >= 0.7 else Tier.WEAK,
            breakdown={
                "underlying": 1.0,
                "date": date_score,
                "comparator": cmp_score,
                "number": number,
                "text": round(text, 4),
            },
            reason=(
                f"underlying={ls.underlying} month={ls.month}/{rs.month} date={date_score:.2f} "
                f"cmp={cmp_score:.2f} num={number:.2f}[{_fmt(ls.thresholds)}/{_fmt(rs.thresholds)}]"
            ),
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        b = result.breakdown
        if (
            result.score >= 0.90
            and b.get("date") == 1.0
            and b.get("comparator", 0.0) >= 0.8
            and b.get("number", 0.0) >= 0.8
        ):
            return Decision(apply=True, rule="COMMODITIES_EXACT_MATCH", confidence=result.score, reason=result.reason)
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.50:
            return Decision(apply=True, rule="COMMODITIES_LOW_SCORE", reason=f"score {result.score:.2f} < 0.50")
        if result.breakdown.get("comparator") == 0.0:
            return Decision(apply=True, rule="COMMODITIES_CONFLICTING_COMPARATOR", reason="above vs below")
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if not sig.underlying or not sig.month:
            return []
        return [f"{sig.underlying}|{sig.month}"]


def _shift_month(month: str, delta: int) -> str:
    year, mo = (int(part) for part in month.split("-"))
    total = year * 12 + (mo - 1) + delta
    return f"{total // 12:04d}-{total % 12 + 1:02d}"


def _fmt(values: Sequence[float]) -> str:
    return ",".join(f"{v:g}" for v in values) or "-"


COMMODITIES_KEYWORDS: Tuple[str, ...] = (
    "oil", "crude", "wti", "brent", "natural gas", "natgas",
    "gold", "silver", "copper", "platinum", "palladium",
    "corn", "wheat", "soybean", "coffee", "sugar", "cocoa",
)

# the first matching pattern wins; "golden" is not gold
_UNDERLYING_PATTERNS: List[Tuple[str, Optional[str], re.Pattern]] = [
    ("OIL_WTI", "CL", re.compile(r"\bcrude\s*oil\b|\boil\s*\(cl\)|\bwti\b|\bwest texas\b")),
    ("OIL_BRENT", None, re.compile(r"\bbrent\b")),
    ("NATGAS", "NG", re.compile(r"\bnatural\s*gas\b|\bnatgas\b|\bgas\s*\(ng\)")),
    ("GOLD", "GC", re.compile(r"\bgold\b")),
    ("SILVER", "SI", re.compile(r"\bsilver\b")),
    ("PLATINUM", None, re.compile(r"\bplatinum\b")),
    ("PALLADIUM", None, re.compile(r"\bpalladium\b")),
    ("COPPER", "HG", re.compile(r"\bcopper\b")),
    ("CORN", "C", re.compile(r"\bcorn\b")),
    ("WHEAT", "W", re.compile(r"\bwheat\b")),
    ("SOYBEANS", "S", re.compile(r"\bsoybeans?\b")),
    ("COFFEE", None, re.compile(r"\bcoffee\b")),
    ("SUGAR", None, re.compile(r"\bsugar\b")),
    ("COCOA", None, re.compile(r"\bcocoa\b")),
]

_MONTHS: Dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_NAME = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_MONTH_END_RE = re.compile(r"\b(?:final trading day of|end of)\s+" + _MONTH_NAME + r"\b(?:\s*,?\s*(20\d{2}))?")
_PLAIN_THRESHOLD_RE = re.compile(r"\b(?:over|above|below|under|at)\s+([\d,]+(?:\.\d+)?)\b(?!\s*%)")

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import jaccard, normalize_title, tokenize
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
from market_linker.knowledge.registry import AliasTable, default_registry
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "rates@3.0.0"

WEIGHTS = {
    "bank": 0.40,
    "date": 0.30,
    "action": 0.15,
    "bps": 0.10,
    "text": 0.05,
}
STRONG_THRESHOLD = 0.75


class RateAction(str, Enum):
    CUT = "CUT"
    HIKE = "HIKE"
    HOLD = "HOLD"
    PAUSE = "PAUSE"
    UNKNOWN = "UNKNOWN"


@dataclass
class RatesSignals:
    central_bank: Optional[str]
    action: RateAction = RateAction.UNKNOWN
    basis_points: Optional[int] = None
    meeting_date: Optional[date] = None
    meeting_month: Optional[str] = None
    year: Optional[int] = None
    target_range: Optional[Tuple[float, float]] = None
    action_count: Optional[int] = None
    tokens: List[str] = field(default_factory=list)


def extract_rates_signals(title: str, close_time: Optional[datetime] = None) -> RatesSignals:
    lower = (title or "").lower()
    close = as_utc(close_time)

    meeting_date = _meeting_date(lower)
    if meeting_date is None and close is not None:
        meeting_date = close.date()

    meeting_month: Optional[str] = None
    m = _MONTH_DAY_YEAR_RE.search(lower)
    if m and meeting_date is not None:
        meeting_month = meeting_date.strftime("%Y-%m")
    else:
        m = _MONTH_YEAR_RE.search(lower)
        if m:
            meeting_month = f"{int(m.group(2)):04d}-{_MONTHS[m.group(1)[:3]]:02d}"
        elif close is not None:
            meeting_month = close.strftime("%Y-%m")

    year_match = _YEAR_RE.search(lower)
    if year_match:
        year: Optional[int] = int(year_match.group(1))
    elif close is not None:
        year = close.year
    else:
        year = None

    return RatesSignals(
        central_bank=detect_central_bank(lower),
        action=detect_action(lower),
        basis_points=extract_basis_points(lower),
        meeting_date=meeting_date,
        meeting_month=meeting_month,
        year=year,
        target_range=_target_range(lower),
        action_count=_action_count(lower),
        tokens=tokenize(normalize_title(title)),
    )


def detect_central_bank(lower: str) -> Optional[str]:
    for bank, pattern in _BANK_PATTERNS:
        if pattern.search(lower):
            return bank
    return None


def detect_action(lower: str) -> RateAction:
    for action, pattern in _ACTION_PATTERNS:
        if pattern.search(lower):
            return action
    return RateAction.UNKNOWN


def extract_basis_points(lower: str) -> Optional[int]:
    m = _BPS_RE.search(lower)
    if m:
        return int(m.group(1))
    m = _PCT_RE.search(lower)
    if m:
        pct = float(m.group(1))
        if pct <= 1:
            return int(round(pct * 100))
    if "quarter point" in lower or "quarter-point" in lower:
        return 25
    if "half point" in lower or "half-point" in lower:
        return 50
    return None


def is_rates_market(title: str) -> bool:
    lower = (title or "").lower()
    stripped = re.sub(r"basis\s+points?|(?:quarter|half)[\s-]points?", " ", lower)
    if any(re.search(rf"\b{re.escape(kw)}\b", stripped) for kw in _EXCLUDE_KEYWORDS):
        return False
    return any(re.search(rf"\b{re.escape(kw)}\b", lower) for kw in RATES_KEYWORDS)


class RatesPipeline(BasePipeline):
    topic = CanonicalTopic.RATES
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    strong_threshold = STRONG_THRESHOLD

    def __init__(self) -> None:
        self._features: FeatureCache[RatesSignals] = FeatureCache(
            lambda m: extract_rates_signals(m.title, m.close_time)
        )

    def signals(self, market: Market) -> RatesSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=RATES_KEYWORDS)
        eligible = [m for m in markets if is_rates_market(m.title) and self.signals(m).central_bank]
        logger.debug("rates: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        sig = self.signals(market)
        if not sig.central_bank:
            return []
        keys: List[str] = []
        if sig.meeting_month:
            year, month = (int(p) for p in sig.meeting_month.split("-"))
            for offset in (0, -1, 1):
                y, mth = _shift_month(year, month, offset)
                keys.append(f"{sig.central_bank}|{y:04d}-{mth:02d}")
        if sig.year:
            keys.append(f"{sig.central_bank}|{sig.year}")
        return index.collect(keys, exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.central_bank or not rs.central_bank:
            return gate_failed("central bank unknown")
        if ls.central_bank != rs.central_bank:
            return gate_failed(f"central bank mismatch: {ls.central_bank} vs {rs.central_bank}")
        if ls.meeting_month and rs.meeting_month:
            diff = month_diff(ls.meeting_month, rs.meeting_month)
            if diff > 1:
                return gate_failed(f"meeting month mismatch: {ls.meeting_month} vs {rs.meeting_month}")
        elif ls.year and rs.year and ls.year != rs.year:
            return gate_failed(f"year mismatch: {ls.year} vs {rs.year}")
        if ls.meeting_date and rs.meeting_date:
            days = abs((ls.meeting_date - rs.meeting_date).days)
            if days > 7:
                return gate_failed(f"meeting date mismatch: {days} days apart")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)

        bank = 1.0 if ls.central_bank and ls.central_bank == rs.central_bank else 0.0
        date_score, day_diff, m_diff = _date_score(ls, rs)
        action = _action_score(ls.action, rs.action)
        bps = _bps_score(ls.basis_points, rs.basis_points)
        text = jaccard(ls.tokens, rs.tokens)

        score = clamp_score(
            WEIGHTS["bank"] * bank
            + WEIGHTS["date"] * date_score
            + WEIGHTS["action"] * action
            + WEIGHTS["bps"] * bps
            + WEIGHTS["text"] * text
        )
        strong = score >= STRONG_THRESHOLD and date_score >= 0.7 and (action >= 0.8 or action == 0.5)

        if day_diff is not None:
            date_note = f"({day_diff}d)"
        elif m_diff is not None:
            date_note = f"({m_diff}m)"
        else:
            date_note = ""
        reason = " ".join(
            [
                f"bank={ls.central_bank}",
                f"date={date_score:.2f}{date_note}",
                f"action={action:.2f}[{ls.action.value}/{rs.action.value}]",
                f"bps={bps:.2f}[{_fmt(ls.basis_points)}/{_fmt(rs.basis_points)}]",
                f"text={text:.2f}",
            ]
        )
        breakdown: Dict[str, float] = {
            "bank": bank,
            "date": date_score,
            "action": action,
            "bps": bps,
            "text": round(text, 4),
        }
        if day_diff is not None:
            breakdown["day_diff"] = float(day_diff)
        return ScoreResult(score=score, tier=Tier.STRONG if strong else Tier.WEAK, breakdown=breakdown, reason=reason)

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.85:
            return NO_DECISION
        if result.breakdown.get("day_diff") != 0.0:
            return NO_DECISION
        ls = self.signals(left)
        rs = self.signals(right)
        if RateAction.UNKNOWN not in (ls.action, rs.action) and ls.action != rs.action:
            return NO_DECISION
        if ls.basis_points is not None and rs.basis_points is not None and ls.basis_points != rs.basis_points:
            return NO_DECISION
        if ls.target_range and rs.target_range and ls.target_range != rs.target_range:
            return NO_DECISION
        if result.breakdown.get("text", 0.0) < 0.15:
            return NO_DECISION
        return Decision(apply=True, rule="RATES_EXACT_MATCH", confidence=result.score, reason=result.reason)

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        ls = self.signals(left)
        rs = self.signals(right)
        if {ls.action, rs.action} == {RateAction.CUT, RateAction.HIKE}:
            return Decision(
                apply=True, rule="ACTION_CONFLICT", reason=f"conflicting actions: {ls.action.value} vs {rs.action.value}"
            )
        if result.score < 0.55:
            return Decision(apply=True, rule="LOW_SCORE", reason=f"score {result.score:.2f} < 0.55")
        if ls.basis_points is not None and rs.basis_points is not None:
            if abs(ls.basis_points - rs.basis_points) > 50:
                return Decision(
                    apply=True, rule="BPS_MISMATCH", reason=f"bps {ls.basis_points} vs {rs.basis_points}"
                )
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if not sig.central_bank:
            return []
        keys = []
        if sig.meeting_month:
            keys.append(f"{sig.central_bank}|{sig.meeting_month}")
        if sig.year:
            keys.append(f"{sig.central_bank}|{sig.year}")
        return keys


def month_diff(a: str, b: str) -> int:
    ay, am = (int(p) for p in a.split("-"))
    by, bm = (int(p) for p in b.split("-"))
    return abs((ay * 12 + am) - (by * 12 + bm))


def _date_score(ls: RatesSignals, rs: RatesSignals) -> Tuple[float, Optional[int], Optional[int]]:
    if ls.meeting_date and rs.meeting_date:
        days = abs((ls.meeting_date - rs.meeting_date).days)
        if days == 0:
            return 1.0, days, None
        if days <= 1:
            return 0.9, days, None
        if days <= 3:
            return 0.7, days, None
        if days <= 7:
            return 0.5, days, None
        return 0.0, days, None
    if ls.meeting_month and rs.meeting_month:
        months = month_diff(ls.meeting_month, rs.meeting_month)
        if months == 0:
            return 0.8, None, months
        if months == 1:
            return 0.4, None, months
        return 0.0, None, months
    if ls.year and rs.year and ls.year == rs.year:
        return 0.3, None, None
    return 0.0, None, None


def _action_score(a: RateAction, b: RateAction) -> float:
    if a == RateAction.UNKNOWN or b == RateAction.UNKNOWN:
        return 0.5
    if a == b:
        return 1.0
    if {a, b} == {RateAction.HOLD, RateAction.PAUSE}:
        return 0.8
    return 0.0


def _bps_score(a: Optional[int], b: Optional[int]) -> float:
    if a is None and b is None:
        return 0.5
    if a is None or b is None:
        return 0.0
    diff = abs(a - b)
    if diff == 0:
        return 1.0
    if diff <= 25:
        return 0.7
    if diff <= 50:
        return 0.4
    return 0.0


def _meeting_date(lower: str) -> Optional[date]:
    m = _MONTH_DAY_YEAR_RE.search(lower)
    if not m:
        return None
    try:
        return date(int(m.group(3)), _MONTHS[m.group(1)[:3]], int(m.group(2)))
    except ValueError:
        return None


def _target_range(lower: str) -> Optional[Tuple[float, float]]:
    m = _RANGE_RE.search(lower) or _BETWEEN_RE.search(lower)
    if not m:
        return None
    return float(m.group(1)), float(m.group(2))


def _action_count(lower: str) -> Optional[int]:
    m = _ACTION_COUNT_RE.search(lower)
    if not m:
        return None
    raw = m.group(1)
    return int(raw) if raw.isdigit() else _NUMBER_WORDS.get(raw)


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    total = year * 12 + (month - 1) + offset
    return total // 12, total % 12 + 1


def _fmt(value: Optional[int]) -> str:
    return "?" if value is None else str(value)


RATES_KEYWORDS: Tuple[str, ...] = (
    "fed", "fomc", "federal reserve", "interest rate", "interest rates", "rate cut", "rate cuts",
    "rate hike", "rate hikes", "fed funds", "basis points", "bps", "powell", "ecb", "lagarde",
    "bank of england", "boe", "bank of japan", "boj", "rba", "bank of canada", "snb", "central bank",
)

_EXCLUDE_KEYWORDS: Tuple[str, ...] = (
    "nba", "nfl", "mlb", "nhl", "soccer", "football game", "points", "rebounds", "assists", "touchdowns",
)

# Governor names and phrasings that only make sense inside rates titles.
_BANK_CUES: Dict[str, Tuple[str, ...]] = {
    "FED": ("fed funds", "powell", "us interest rate", "fed rate"),
    "ECB": ("lagarde",),
    "BOE": ("bailey", "uk interest rate"),
    "BOJ": ("ueda",),
}


def _build_bank_patterns(table: AliasTable) -> List[Tuple[str, re.Pattern]]:
    grouped: Dict[str, List[str]] = {}
    for alias, bank in table.lookup.items():
        grouped.setdefault(bank, []).append(alias)
    patterns = []
    for bank, kws in grouped.items():
        kws = sorted(set(kws) | set(_BANK_CUES.get(bank, ())), key=lambda k: (-len(k), k))
        patterns.append((bank, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in kws) + r")\b")))
    return patterns


_BANK_PATTERNS: List[Tuple[str, re.Pattern]] = _build_bank_patterns(default_registry().central_banks)

_ACTION_PATTERNS: List[Tuple[RateAction, re.Pattern]] = [
    (RateAction.CUT, re.compile(r"\b(?:cut|cuts|cutting|lower|lowers|lowering|decrease|reduce|reduction|ease|easing)\b")),
    (RateAction.HIKE, re.compile(r"\b(?:hike|hikes|raise|raises|increase|increases|tighten|tightening|higher)\b")),
    (RateAction.HOLD, re.compile(r"\b(?:hold|holds|unchanged|no change|maintain|maintains|steady|stable)\b")),
    (RateAction.PAUSE, re.compile(r"\b(?:pause|pauses|skip|skips)\b")),
]

_MONTH_NAME = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_DAY_YEAR_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(20\d{2})\b")
_MONTH_YEAR_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+(20\d{2})\b")
_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_BPS_RE = re.compile(r"(\d+)\s*(?:bps?|basis\s*points?)\b")
_PCT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_RANGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%?\s*[-–]\s*(\d+(?:\.\d+)?)\s*%")
_BETWEEN_RE = re.compile(r"between\s+(\d+(?:\.\d+)?)\s*%?\s+and\s+(\d+(?:\.\d+)?)\s*%")
_ACTION_COUNT_RE = re.compile(r"\b(\d+|one|two|three|four|five|six|seven|eight)\s+(?:rate\s+)?(?:cuts?|hikes?)\b")
_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6, "seven": 7, "eight": 8}

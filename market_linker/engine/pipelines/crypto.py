from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import (
    Comparator,
    DatePrecision,
    extract_comparator,
    extract_dates,
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
from market_linker.engine.pipelines.macro import is_sports_like
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

DAILY_ALGO_VERSION = "crypto_daily@3.0.6"
INTRADAY_ALGO_VERSION = "crypto_intraday@3.0.6"

DAILY_WEIGHTS = {"entity": 0.45, "date": 0.35, "number": 0.15, "text": 0.05}
INTRADAY_WEIGHTS = {"entity": 0.60, "time": 0.30, "text": 0.10}

# relative gap between strike ranges past which two markets price different events
STRIKE_GAP_LIMIT = 0.10


class CryptoDateType(str, Enum):
    DAY_EXACT = "DAY_EXACT"
    MONTH_END = "MONTH_END"
    QUARTER = "QUARTER"
    CLOSE_TIME = "CLOSE_TIME"
    UNKNOWN = "UNKNOWN"


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


_DAY_TYPES = (CryptoDateType.DAY_EXACT, CryptoDateType.CLOSE_TIME)


@dataclass
class CryptoSignals:
    entity: Optional[str]
    settle_date: Optional[date] = None
    date_type: CryptoDateType = CryptoDateType.UNKNOWN
    settle_period: Optional[str] = None
    numbers: Tuple[float, ...] = ()
    comparator: Comparator = Comparator.UNKNOWN
    direction: Optional[Direction] = None
    intraday: bool = False
    time_bucket: Optional[str] = None
    tokens: List[str] = field(default_factory=list)


def extract_crypto_entity(title: str, metadata: Optional[Dict] = None) -> Optional[str]:
    tokens = set(tokenize(title))
    for entity, aliases in _ENTITY_TOKENS:
        if tokens & aliases:
            return entity
    ticker = str((metadata or {}).get("eventTicker") or (metadata or {}).get("event_ticker") or "").upper()
    for prefix, entity in _TICKER_PREFIXES:
        if ticker.startswith(prefix):
            return entity
    return None


def extract_settle_date(
    title: str, close_time: Optional[datetime] = None
) -> Tuple[Optional[date], CryptoDateType, Optional[str]]:
    """Resolve the settlement date as (date, date type, period key).

    Month-end and quarter markets carry a period key ("2026-01", "2026-Q1");
    day markets carry only the date.
    """
    lower = (title or "").lower()
    close = as_utc(close_time)
    fallback_year = close.year if close is not None else datetime.now().year

    m = _END_OF_MONTH_RE.search(lower)
    if m:
        month = _MONTHS[m.group(1)[:3]]
        year = int(m.group(2)) if m.group(2) else fallback_year
        return _month_end(year, month), CryptoDateType.MONTH_END, f"{year:04d}-{month:02d}"

    m = _QUARTER_RE.search(lower)
    if m:
        quarter = int(m.group(1)) if m.group(1) else _QUARTER_NAMES[m.group(2)]
        year = int(m.group(3)) if m.group(3) else fallback_year
        return _month_end(year, quarter * 3), CryptoDateType.QUARTER, f"{year:04d}-Q{quarter}"

    dates = extract_dates(title, reference=close)
    day = next((d for d in dates if d.precision == DatePrecision.DAY and d.month and d.day), None)
    if day is not None:
        try:
            return date(day.year, day.month, day.day), CryptoDateType.DAY_EXACT, None
        except ValueError:
            pass
    month = next((d for d in dates if d.precision == DatePrecision.MONTH and d.month), None)
    if month is not None:
        return _month_end(month.year, month.month), CryptoDateType.MONTH_END, f"{month.year:04d}-{month.month:02d}"

    if close is not None:
        return close.date(), CryptoDateType.CLOSE_TIME, None
    return None, CryptoDateType.UNKNOWN, None


def extract_crypto_numbers(title: str) -> Tuple[float, ...]:
    """Price levels in a crypto title, skipping day numbers and years."""
    text = title or ""
    lower = text.lower()
    blocked = [(m.start(), m.end()) for m in _MONTH_DAY_RE.finditer(lower)]
    for m in _YEAR_RE.finditer(lower):
        if _MONTH_OR_QUARTER_RE.search(lower[max(0, m.start() - 30): m.start()]):
            blocked.append((m.start(), m.end()))

    def in_date(pos: int) -> bool:
        return any(start <= pos < end for start, end in blocked)

    found: List[float] = []

    def add(value: Optional[float]) -> None:
        if value is not None and value not in found:
            found.append(value)

    for m in _DOLLAR_RE.finditer(text):
        value = _amount(m.group(1), m.group(2))
        if value is not None and value >= 1:
            add(value)

    for m in _SUFFIX_RE.finditer(text):
        if in_date(m.start()):
            continue
        value = _amount(m.group(1), m.group(2))
        if value is not None and value >= 1000:
            add(value)

    if _COMPARATOR_CONTEXT_RE.search(lower):
        for m in _PLAIN_RE.finditer(text):
            if m.group(2) or in_date(m.start()):
                continue
            value = _amount(m.group(1))
            if value is None or value < 100 or 2020 <= value <= 2100:
                continue
            add(value)

    return tuple(sorted(found))


def extract_direction(title: str) -> Optional[Direction]:
    lower = (title or "").lower()
    if _UP_OR_DOWN_RE.search(lower):
        return None
    if _UP_RE.search(lower):
        return Direction.UP
    if _DOWN_RE.search(lower):
        return Direction.DOWN
    return None


def is_intraday(market: Market) -> bool:
    if market.derived_topic == CanonicalTopic.CRYPTO_INTRADAY.value:
        return True
    if _INTRADAY_TITLE_RE.search((market.title or "").lower()):
        return True
    ticker = str(market.metadata.get("eventTicker") or market.metadata.get("event_ticker") or "").upper()
    return bool(_INTRADAY_TICKER_RE.match(ticker))


def extract_crypto_signals(market: Market) -> CryptoSignals:
    settle_date, date_type, period = extract_settle_date(market.title, market.close_time)
    close = as_utc(market.close_time)
    return CryptoSignals(
        entity=extract_crypto_entity(market.title, market.metadata),
        settle_date=settle_date,
        date_type=date_type,
        settle_period=period,
        numbers=extract_crypto_numbers(market.title),
        comparator=extract_comparator(market.title),
        direction=extract_direction(market.title),
        intraday=is_intraday(market),
        time_bucket=close.strftime("%Y-%m-%dT%H") if close is not None else None,
        tokens=tokenize(normalize_title(market.title)),
    )


def strike_score(a: Sequence[float], b: Sequence[float]) -> Tuple[float, Optional[float]]:
    """Overlap of two strike ranges as (score, relative gap); the gap is None when the ranges overlap."""
    if not a or not b:
        return 0.0, None
    a_lo, a_hi = min(a), max(a)
    b_lo, b_hi = min(b), max(b)
    if a_lo <= b_hi and b_lo <= a_hi:
        return 1.0, None
    gap = min(abs(a_hi - b_lo), abs(b_hi - a_lo)) / ((a_hi + b_hi) / 2)
    if gap < 0.01:
        return 0.9, gap
    if gap < 0.05:
        return 0.7, gap
    if gap < STRIKE_GAP_LIMIT:
        return 0.4, gap
    return 0.0, gap


def strikes_equal(a: Sequence[float], b: Sequence[float]) -> bool:
    if not a or len(a) != len(b):
        return False
    return all(abs(x - y) <= max(1.0, 0.001 * max(x, y)) for x, y in zip(sorted(a), sorted(b)))


class _CryptoPipeline(BasePipeline):
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    intraday = False

    def __init__(self) -> None:
        self._features: FeatureCache[CryptoSignals] = FeatureCache(extract_crypto_signals)

    def signals(self, market: Market) -> CryptoSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=CRYPTO_KEYWORDS)
        eligible: List[Market] = []
        for market in markets:
            if is_sports_like(market):
                continue
            sig = self.signals(market)
            if sig.entity is None or sig.intraday != self.intraday:
                continue
            eligible.append(market)
        logger.info("%s: %d/%d %s markets eligible", self.topic.value.lower(), len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def _index_keys(self, market: Market) -> List[str]:
        raise NotImplementedError


class CryptoDailyPipeline(_CryptoPipeline):
    """Daily threshold and bracket markets on a single coin, keyed by settlement date."""

    topic = CanonicalTopic.CRYPTO_DAILY
    algo_version = DAILY_ALGO_VERSION
    strong_threshold = 0.80

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        sig = self.signals(market)
        if not sig.entity or sig.settle_date is None:
            return []
        keys = [f"{sig.entity}|{(sig.settle_date + timedelta(days=d)).isoformat()}" for d in (0, -1, 1)]
        return index.collect(keys, exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.entity or not rs.entity:
            return gate_failed("crypto entity missing")
        if ls.entity != rs.entity:
            return gate_failed(f"entity mismatch: {ls.entity} vs {rs.entity}")
        if ls.intraday or rs.intraday:
            return gate_failed("intraday excluded")
        if not _date_types_compatible(ls.date_type, rs.date_type):
            return gate_failed(f"date type incompatible: {ls.date_type.value}/{rs.date_type.value}")
        if ls.date_type in _DAY_TYPES:
            days = abs((ls.settle_date - rs.settle_date).days)
            if days > 1:
                return gate_failed(f"settle date mismatch: {days} days apart")
        elif ls.settle_period != rs.settle_period:
            return gate_failed(f"settle period mismatch: {ls.settle_period} vs {rs.settle_period}")
        _, gap = strike_score(ls.numbers, rs.numbers)
        if gap is not None and gap >= STRIKE_GAP_LIMIT:
            return gate_failed(f"strike mismatch: {_fmt(ls.numbers)} vs {_fmt(rs.numbers)}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.entity or ls.entity != rs.entity or not _date_types_compatible(ls.date_type, rs.date_type):
            return None

        day_diff: Optional[int] = None
        if ls.date_type in _DAY_TYPES:
            day_diff = abs((ls.settle_date - rs.settle_date).days)
            if day_diff > 1:
                return None
            date_score = 1.0 if day_diff == 0 else 0.6
            exact = day_diff == 0
        else:
            if ls.settle_period != rs.settle_period:
                return None
            date_score = 1.0
            exact = True

        number, _ = strike_score(ls.numbers, rs.numbers)
        text = jaccard(ls.tokens, rs.tokens)
        score = clamp_score(
            DAILY_WEIGHTS["entity"]
            + DAILY_WEIGHTS["date"] * date_score
            + DAILY_WEIGHTS["number"] * number
            + DAILY_WEIGHTS["text"] * text
        )
        date_note = f"{day_diff}d" if day_diff is not None else ls.settle_period
        breakdown: Dict[str, float] = {
            "entity": 1.0,
            "date": date_score,
            "number": number,
            "text": round(text, 4),
        }
        if day_diff is not None:
            breakdown["day_diff"] = float(day_diff)
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if exact and number >= 0.6 else Tier.WEAK,
            breakdown=breakdown,
            reason=(
                f"entity={ls.entity} dateType={ls.date_type.value} date={date_score:.2f}({date_note}) "
                f"num={number:.2f}[{_fmt(ls.numbers)}/{_fmt(rs.numbers)}] text={text:.2f}"
            ),
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        ls = self.signals(left)
        rs = self.signals(right)
        if result.score < 0.90 or result.breakdown.get("day_diff") != 0.0:
            return NO_DECISION
        if ls.date_type != CryptoDateType.DAY_EXACT or rs.date_type != CryptoDateType.DAY_EXACT:
            return NO_DECISION
        if ls.comparator != rs.comparator:
            return NO_DECISION
        if not strikes_equal(ls.numbers, rs.numbers):
            return NO_DECISION
        if result.breakdown.get("text", 0.0) < 0.12:
            return NO_DECISION
        return Decision(apply=True, rule="CRYPTO_DAILY_EXACT_MATCH", confidence=result.score, reason=result.reason)

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.55:
            return Decision(apply=True, rule="CRYPTO_DAILY_LOW_SCORE", reason=f"score {result.score:.2f} < 0.55")
        ls = self.signals(left)
        rs = self.signals(right)
        if {ls.comparator, rs.comparator} == {Comparator.ABOVE, Comparator.BELOW}:
            return Decision(apply=True, rule="CRYPTO_DAILY_CONFLICTING_COMPARATOR", reason="above vs below")
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if not sig.entity or sig.settle_date is None:
            return []
        return [f"{sig.entity}|{sig.settle_date.isoformat()}"]


class CryptoIntradayPipeline(_CryptoPipeline):
    """Up/down markets on hourly or shorter windows, keyed by the close-time hour."""

    topic = CanonicalTopic.CRYPTO_INTRADAY
    algo_version = INTRADAY_ALGO_VERSION
    strong_threshold = 0.85
    intraday = True

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        return index.collect(self._index_keys(market), exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.entity or not rs.entity or ls.entity != rs.entity:
            return gate_failed(f"entity mismatch: {ls.entity} vs {rs.entity}")
        if not ls.time_bucket or ls.time_bucket != rs.time_bucket:
            return gate_failed(f"time bucket mismatch: {ls.time_bucket} vs {rs.time_bucket}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.entity or ls.entity != rs.entity or not ls.time_bucket or ls.time_bucket != rs.time_bucket:
            return None
        minutes = abs((as_utc(left.close_time) - as_utc(right.close_time)).total_seconds()) / 60.0
        time = 1.0 if minutes <= 1 else 0.7
        text = jaccard(ls.tokens, rs.tokens)
        direction_match = ls.direction is None or rs.direction is None or ls.direction == rs.direction
        score = clamp_score(
            INTRADAY_WEIGHTS["entity"] + INTRADAY_WEIGHTS["time"] * time + INTRADAY_WEIGHTS["text"] * text
        )
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if direction_match and score >= self.strong_threshold else Tier.WEAK,
            breakdown={
                "entity": 1.0,
                "time": time,
                "text": round(text, 4),
                "direction_match": 1.0 if direction_match else 0.0,
            },
            reason=(
                f"entity={ls.entity} bucket={ls.time_bucket} time={time:.2f} "
                f"direction={_direction(ls)}/{_direction(rs)} text={text:.2f}"
            ),
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score >= 0.92 and result.breakdown.get("direction_match") == 1.0:
            return Decision(
                apply=True, rule="CRYPTO_INTRADAY_EXACT_MATCH", confidence=result.score, reason=result.reason
            )
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.60:
            return Decision(apply=True, rule="CRYPTO_INTRADAY_LOW_SCORE", reason=f"score {result.score:.2f} < 0.60")
        if result.breakdown.get("direction_match") == 0.0:
            ls = self.signals(left)
            rs = self.signals(right)
            return Decision(
                apply=True,
                rule="CRYPTO_INTRADAY_DIRECTION_CONFLICT",
                reason=f"direction conflict: {_direction(ls)} vs {_direction(rs)}",
            )
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if not sig.entity or not sig.time_bucket:
            return []
        return [f"{sig.entity}|{sig.time_bucket}"]


def _date_types_compatible(a: CryptoDateType, b: CryptoDateType) -> bool:
    if a in _DAY_TYPES and b in _DAY_TYPES:
        return True
    return a == b and a in (CryptoDateType.MONTH_END, CryptoDateType.QUARTER)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _amount(raw: str, suffix: Optional[str] = None) -> Optional[float]:
    try:
        value = float(raw.replace(",", ""))
    except ValueError:
        return None
    if suffix:
        value *= _MULTIPLIERS[suffix.strip().lower()]
    return value


def _fmt(numbers: Sequence[float]) -> str:
    return ",".join(f"{n:g}" for n in numbers) or "-"


def _direction(sig: CryptoSignals) -> str:
    return sig.direction.value if sig.direction else "-"


CRYPTO_KEYWORDS: Tuple[str, ...] = (
    "bitcoin", "btc", "ethereum", "eth", "solana", "sol", "xrp", "ripple", "dogecoin", "doge",
)

_ENTITY_TOKENS: Tuple[Tuple[str, frozenset], ...] = (
    ("BITCOIN", frozenset({"bitcoin", "btc"})),
    ("ETHEREUM", frozenset({"ethereum", "eth"})),
    ("SOLANA", frozenset({"solana", "sol"})),
    ("XRP", frozenset({"xrp", "ripple"})),
    ("DOGECOIN", frozenset({"dogecoin", "doge"})),
)

_TICKER_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("KXBTC", "BITCOIN"),
    ("KXETH", "ETHEREUM"),
    ("KXSOL", "SOLANA"),
    ("KXXRP", "XRP"),
    ("KXDOGE", "DOGECOIN"),
)

_MONTHS: Dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_QUARTER_NAMES: Dict[str, int] = {"first": 1, "second": 2, "third": 3, "fourth": 4}
_MULTIPLIERS: Dict[str, float] = {
    "k": 1e3, "thousand": 1e3,
    "m": 1e6, "million": 1e6,
    "b": 1e9, "billion": 1e9,
    "t": 1e12, "trillion": 1e12,
}

_MONTH_NAME = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_END_OF_MONTH_RE = re.compile(r"\b(?:by end of|end of|month[- ]end)\s+" + _MONTH_NAME + r"\s*,?\s*(20\d{2})?\b")
_QUARTER_RE = re.compile(r"\b(?:q([1-4])|(first|second|third|fourth)\s+quarter)\s*(20\d{2})?\b")
_MONTH_DAY_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+\d{1,2}(?:st|nd|rd|th)?\b")
_YEAR_RE = re.compile(r"\b20\d{2}\b")
_MONTH_OR_QUARTER_RE = re.compile(r"\b" + _MONTH_NAME + r"\b|\bq[1-4]\b")

_SUFFIX_WORDS = r"(?:[kmbt]\b|\s*(?:thousand|million|billion|trillion)\b)"
_DOLLAR_RE = re.compile(r"\$([\d,]+(?:\.\d+)?)(" + _SUFFIX_WORDS + r")?", re.IGNORECASE)
_SUFFIX_RE = re.compile(r"(?<![\w$.,])([\d,]+(?:\.\d+)?)(" + _SUFFIX_WORDS + r")", re.IGNORECASE)
_PLAIN_RE = re.compile(r"(?<![\w$.,])(\d[\d,]*(?:\.\d+)?)(" + _SUFFIX_WORDS + r")?", re.IGNORECASE)
_COMPARATOR_CONTEXT_RE = re.compile(r"\b(?:above|below|over|under|exceeds?|reach|hit|between|from|to|price)\b")

_UP_OR_DOWN_RE = re.compile(r"\bup or down\b")
_UP_RE = re.compile(r"\b(?:up|higher|rise|rises)\b")
_DOWN_RE = re.compile(r"\b(?:down|lower|fall|falls)\b")

_INTRADAY_TITLE_RE = re.compile(
    r"\bup or down\b|\b(?:5|15|30)\s*-?\s*min(?:ute)?s?\b|\b1\s*-?\s*h(?:ou)?r\b|\bhourly\b|\bnext hour\b"
)
_INTRADAY_TICKER_RE = re.compile(r"^KX(?:BTC|ETH|SOL|DOGE|XRP).*(?:UPDOWN|15MIN|30MIN|1HR|INTRADAY)")

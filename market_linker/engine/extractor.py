from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from market_linker.knowledge.registry import AliasRegistry, AliasTable, default_registry

logger = logging.getLogger(__name__)


class Comparator(str, Enum):
    ABOVE = "ABOVE"
    BELOW = "BELOW"
    BETWEEN = "BETWEEN"
    EXACT = "EXACT"
    WIN = "WIN"
    UNKNOWN = "UNKNOWN"


class GameType(str, Enum):
    CS2 = "CS2"
    VALORANT = "VALORANT"
    LOL = "LOL"
    DOTA2 = "DOTA2"
    NBA = "NBA"
    NFL = "NFL"
    MLB = "MLB"
    NHL = "NHL"
    SOCCER = "SOCCER"
    TENNIS = "TENNIS"
    GOLF = "GOLF"
    UFC = "UFC"
    F1 = "F1"
    ELECTION = "ELECTION"
    CRYPTO = "CRYPTO"
    MACRO = "MACRO"
    ENTERTAINMENT = "ENTERTAINMENT"
    UNKNOWN = "UNKNOWN"


class MarketType(str, Enum):
    WINNER = "WINNER"
    SPREAD = "SPREAD"
    TOTAL = "TOTAL"
    PRICE_TARGET = "PRICE_TARGET"
    YES_NO = "YES_NO"
    UNKNOWN = "UNKNOWN"


class DatePrecision(str, Enum):
    DAY = "DAY"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


@dataclass(frozen=True)
class ExtractedNumber:
    value: float
    unit: Optional[str]
    context: Optional[str]
    raw: str


@dataclass(frozen=True)
class ExtractedDate:
    year: int
    precision: DatePrecision
    raw: str
    month: Optional[int] = None
    day: Optional[int] = None
    quarter: Optional[int] = None


@dataclass
class Signals:
    title: str
    title_normalized: str
    tokens: List[str]
    teams: List[str] = field(default_factory=list)
    people: List[str] = field(default_factory=list)
    organizations: List[str] = field(default_factory=list)
    numbers: List[ExtractedNumber] = field(default_factory=list)
    dates: List[ExtractedDate] = field(default_factory=list)
    comparator: Comparator = Comparator.UNKNOWN
    game_type: GameType = GameType.UNKNOWN
    market_type: MarketType = MarketType.UNKNOWN
    confidence: float = 0.5

    @property
    def entity_count(self) -> int:
        return len(self.teams) + len(self.people) + len(self.organizations)


@dataclass
class EntityOverlap:
    teams: List[str] = field(default_factory=list)
    people: List[str] = field(default_factory=list)
    organizations: List[str] = field(default_factory=list)
    numbers: List[Tuple[ExtractedNumber, ExtractedNumber]] = field(default_factory=list)
    dates: List[Tuple[ExtractedDate, ExtractedDate]] = field(default_factory=list)

    @property
    def entities(self) -> int:
        return len(self.teams) + len(self.people) + len(self.organizations)

    @property
    def total(self) -> int:
        return self.entities + len(self.numbers) + len(self.dates)


class SignalExtractor:
    def __init__(self, registry: Optional[AliasRegistry] = None):
        self._registry = registry or default_registry()

    @property
    def registry(self) -> AliasRegistry:
        return self._registry

    def extract(
        self,
        title: str,
        close_time: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Signals:
        title = title or ""
        normalized = normalize_title(title)
        tokens = tokenize(normalized)
        signals = Signals(title=title, title_normalized=normalized, tokens=tokens)
        if not tokens:
            return signals

        signals.teams = find_aliases(title, tokens, self._registry.teams)
        signals.people = find_aliases(title, tokens, self._registry.people)
        signals.organizations = find_aliases(title, tokens, self._registry.organizations)
        signals.numbers = extract_numbers(title)
        signals.dates = extract_dates(title, reference=close_time or now)
        signals.comparator = extract_comparator(title)
        signals.game_type = self._detect_game_type(title, tokens, signals.teams, signals.organizations)
        signals.market_type = detect_market_type(title, signals.comparator)

        confidence = 0.5
        if signals.teams:
            confidence += 0.15
        if signals.people:
            confidence += 0.1
        if signals.numbers:
            confidence += 0.1
        if signals.dates:
            confidence += 0.1
        if signals.game_type != GameType.UNKNOWN:
            confidence += 0.05
        signals.confidence = min(confidence, 1.0)
        return signals

    def _detect_game_type(self, title: str, tokens: Sequence[str], teams: Sequence[str], orgs: Sequence[str]) -> GameType:
        lower = title.lower()
        for pattern, game_type in _GAME_TYPE_PATTERNS:
            if pattern.search(lower):
                return game_type

        domains = [self._registry.team_domains.get(team, "") for team in teams]
        if any(d in _ESPORTS_DOMAINS for d in domains):
            if _VALORANT_HINT.search(lower):
                return GameType.VALORANT
            for d in domains:
                if d in _ESPORTS_DOMAINS:
                    return GameType(d)
        for domain in ("UFC", "TENNIS", "F1", "GOLF"):
            if domain in domains:
                return GameType(domain)

        if orgs:
            for league in find_aliases(title, tokens, self._registry.leagues):
                mapped = _LEAGUE_GAME_TYPES.get(league)
                if mapped is not None:
                    return mapped
        return GameType.UNKNOWN


def normalize_title(title: str) -> str:
    text = (title or "").lower().replace("’", "'").replace("‘", "'")
    text = re.sub(r"[^\w\s'-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def tokenize(text: str) -> List[str]:
    return re.sub(r"[^a-z0-9]+", " ", (text or "").lower()).split()


def find_aliases(title: str, tokens: Sequence[str], table: AliasTable) -> List[str]:
    found: List[str] = []
    token_set = set(tokens)
    title_lower = (title or "").lower()
    for alias in table.ordered:
        canonical = table.lookup[alias]
        if canonical in found:
            continue
        alias_tokens = table.alias_tokens[alias]
        if not alias_tokens:
            continue
        if len(alias_tokens) == 1:
            if alias_tokens[0] in token_set:
                found.append(canonical)
        elif _phrase_in_tokens(tokens, alias_tokens) or alias in title_lower:
            found.append(canonical)
    return found


def extract_numbers(title: str) -> List[ExtractedNumber]:
    numbers: List[ExtractedNumber] = []
    seen: set[float] = set()

    def add(value: float, unit: Optional[str], context: Optional[str], raw: str) -> None:
        seen.add(value)
        numbers.append(ExtractedNumber(value=value, unit=unit, context=context, raw=raw))

    for pattern in (_NUM_SUFFIX_RE, _NUM_WORD_RE):
        for m in pattern.finditer(title):
            value = _parse_amount(m.group(1))
            if value is None:
                continue
            value *= _MULTIPLIERS[m.group(2).lower()]
            has_dollar = m.group(0).startswith("$")
            if value >= 1 and value not in seen:
                add(value, "USD" if has_dollar else None, "price" if has_dollar else None, m.group(0))

    for m in _DOLLAR_RE.finditer(title):
        after = title[m.end():]
        if _FOLLOWED_BY_MULT_RE.match(after):
            continue
        value = _parse_amount(m.group(1))
        if value is None or value < 1 or value in seen:
            continue
        add(value, "USD", "price", m.group(0))

    for m in _PERCENT_RE.finditer(title):
        value = _parse_amount(m.group(1))
        if value is not None and value not in seen:
            add(value, "%", "rate", m.group(0))

    for m in _BPS_RE.finditer(title):
        value = float(int(m.group(1)))
        if value not in seen:
            add(value, "bps", "rate", m.group(0))

    for m in _SPREAD_RE.finditer(title):
        raw_value = m.group(1)
        if not m.group(2) and raw_value[0] not in "+-":
            continue
        value = _parse_amount(raw_value)
        if value is None or abs(value) in seen:
            continue
        if 1900 <= abs(value) <= 2100 or abs(value) > 1000:
            continue
        seen.add(abs(value))
        numbers.append(ExtractedNumber(value=value, unit="points", context="spread", raw=m.group(0).strip()))

    return numbers


def extract_dates(title: str, reference: Optional[datetime] = None) -> List[ExtractedDate]:
    dates: List[ExtractedDate] = []
    seen: set[tuple] = set()

    def add(d: ExtractedDate) -> None:
        key = (d.year, d.month, d.day)
        if key not in seen:
            seen.add(key)
            dates.append(d)

    for m in _MONTH_DAY_YEAR_RE.finditer(title):
        month = _month_number(m.group(1))
        day = int(m.group(2))
        year = int(m.group(3))
        if month and 1 <= day <= 31 and 2020 <= year <= 2035:
            add(ExtractedDate(year=year, month=month, day=day, precision=DatePrecision.DAY, raw=m.group(0)))

    ref = _reference_date(reference)
    for m in _MONTH_DAY_RE.finditer(title):
        month = _month_number(m.group(1))
        day = int(m.group(2))
        if not month or not 1 <= day <= 31:
            continue
        if any(d.month == month and d.day == day for d in dates):
            continue
        year = ref.year
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate < ref - timedelta(days=90):
            year += 1
        add(ExtractedDate(year=year, month=month, day=day, precision=DatePrecision.DAY, raw=m.group(0)))

    for m in _ISO_DATE_RE.finditer(title):
        year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if 2020 <= year <= 2035 and 1 <= month <= 12 and 1 <= day <= 31:
            add(ExtractedDate(year=year, month=month, day=day, precision=DatePrecision.DAY, raw=m.group(0)))

    for m in _MONTH_YEAR_RE.finditer(title):
        month = _month_number(m.group(1))
        year = int(m.group(2))
        if not month or not 2020 <= year <= 2035:
            continue
        if any(d.year == year and d.month == month and d.day for d in dates):
            continue
        add(ExtractedDate(year=year, month=month, precision=DatePrecision.MONTH, raw=m.group(0)))

    for m in _QUARTER_RE.finditer(title):
        quarter = int(m.group(1))
        year = int(m.group(2))
        if 2020 <= year <= 2035:
            add(
                ExtractedDate(
                    year=year, month=quarter * 3, quarter=quarter, precision=DatePrecision.QUARTER, raw=m.group(0)
                )
            )

    if not dates:
        for m in _BARE_YEAR_RE.finditer(title):
            before = title[max(0, m.start() - 20): m.start()].lower()
            if _DEADLINE_RE.search(before):
                add(ExtractedDate(year=int(m.group(1)), precision=DatePrecision.YEAR, raw=m.group(0)))

    return dates


def extract_comparator(title: str) -> Comparator:
    lower = (title or "").lower()
    for pattern in _BETWEEN_PATTERNS:
        if pattern.search(lower):
            return Comparator.BETWEEN
    if _NEGATED_ABOVE_RE.search(lower):
        return Comparator.BELOW
    if _ABOVE_RE.search(lower):
        return Comparator.ABOVE
    if _BELOW_RE.search(lower):
        return Comparator.BELOW
    if _WIN_RE.search(lower):
        return Comparator.WIN
    return Comparator.UNKNOWN


def detect_market_type(title: str, comparator: Comparator) -> MarketType:
    lower = (title or "").lower()
    if _SPREAD_TYPE_RE.search(lower):
        return MarketType.SPREAD
    if _TOTAL_TYPE_RE.search(lower):
        return MarketType.TOTAL
    if comparator in (Comparator.ABOVE, Comparator.BELOW) and _PRICE_TYPE_RE.search(lower):
        return MarketType.PRICE_TARGET
    if _WINNER_TYPE_RE.search(lower):
        return MarketType.WINNER
    if _YES_NO_TYPE_RE.search(lower):
        return MarketType.YES_NO
    return MarketType.UNKNOWN


def jaccard(a: Iterable[Any], b: Iterable[Any]) -> float:
    set_a = set(a)
    set_b = set(b)
    if not set_a and not set_b:
        return 0.0
    union = len(set_a | set_b)
    return len(set_a & set_b) / union if union else 0.0


def numbers_match(a: ExtractedNumber, b: ExtractedNumber, tolerance: float = 0.01) -> bool:
    if a.unit != b.unit:
        return False
    diff = abs(a.value - b.value)
    max_val = max(abs(a.value), abs(b.value))
    if max_val == 0:
        return diff == 0
    return diff / max_val <= tolerance


def dates_match(a: ExtractedDate, b: ExtractedDate) -> bool:
    if a.year != b.year:
        return False
    if a.month and b.month and a.month != b.month:
        return False
    a_day = a.precision == DatePrecision.DAY and bool(a.day)
    b_day = b.precision == DatePrecision.DAY and bool(b.day)
    if a_day or b_day:
        if not (a_day and b_day) or a.day != b.day:
            return False
    return bool(a.month and b.month and a.month == b.month)


def count_entity_overlap(a: Signals, b: Signals) -> EntityOverlap:
    overlap = EntityOverlap()
    overlap.teams = [t for t in b.teams if t in set(a.teams)]
    overlap.people = [p for p in b.people if p in set(a.people)]
    overlap.organizations = [o for o in b.organizations if o in set(a.organizations)]

    used: set[int] = set()
    for num_a in a.numbers:
        for idx, num_b in enumerate(b.numbers):
            if idx not in used and numbers_match(num_a, num_b):
                used.add(idx)
                overlap.numbers.append((num_a, num_b))
                break

    used = set()
    for date_a in a.dates:
        for idx, date_b in enumerate(b.dates):
            if idx not in used and dates_match(date_a, date_b):
                used.add(idx)
                overlap.dates.append((date_a, date_b))
                break
    return overlap


def _phrase_in_tokens(tokens: Sequence[str], phrase: Sequence[str]) -> bool:
    n = len(phrase)
    for i in range(len(tokens) - n + 1):
        if list(tokens[i: i + n]) == list(phrase):
            return True
    return False


def _parse_amount(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def _month_number(name: str) -> int:
    lower = (name or "").lower()
    return _MONTHS.get(lower) or _MONTHS.get(lower[:3], 0)


def _reference_date(reference: Optional[datetime]) -> date:
    if reference is None:
        return datetime.now(timezone.utc).date()
    return reference.date()


_MONTHS: Dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_MULTIPLIERS: Dict[str, float] = {
    "k": 1e3,
    "thousand": 1e3,
    "m": 1e6,
    "million": 1e6,
    "b": 1e9,
    "billion": 1e9,
    "t": 1e12,
    "trillion": 1e12,
}

_MONTH_NAME = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)

_NUM_SUFFIX_RE = re.compile(r"\$?([\d,]+(?:\.\d+)?)([kmbt])\b", re.IGNORECASE)
_NUM_WORD_RE = re.compile(r"\$?([\d,]+(?:\.\d+)?)\s*(thousand|million|billion|trillion)\b", re.IGNORECASE)
_DOLLAR_RE = re.compile(r"\$([\d,]+(?:\.\d+)?)\b")
_FOLLOWED_BY_MULT_RE = re.compile(r"(?:[kmbt]\b|\s*(?:thousand|million|billion|trillion)\b)", re.IGNORECASE)
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_BPS_RE = re.compile(r"(\d+)\s*(?:bps|basis\s+points?)\b", re.IGNORECASE)
_SPREAD_RE = re.compile(r"(?<![\w.,$-])([+-]?\d+(?:\.\d+)?)\s*(points?|pts)?\b", re.IGNORECASE)

_MONTH_DAY_YEAR_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+(\d{1,2})(?:st|nd|rd|th)?[,\s]+(\d{4})\b", re.IGNORECASE)
_MONTH_DAY_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+(\d{1,2})(?:st|nd|rd|th)?\b", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_MONTH_YEAR_RE = re.compile(r"\b" + _MONTH_NAME + r"\s+(\d{4})\b", re.IGNORECASE)
_QUARTER_RE = re.compile(r"\bq([1-4])\s*(\d{4})\b", re.IGNORECASE)
_BARE_YEAR_RE = re.compile(r"\b(202[0-9]|203[0-5])\b")
_DEADLINE_RE = re.compile(r"\b(by|in|before|during)\b")

_NUM_WITH_SUFFIX = r"\$?[\d,]+(?:\.\d+)?[kmb]?"
_BETWEEN_PATTERNS = [
    re.compile(rf"between\s+{_NUM_WITH_SUFFIX}\s+and\s+{_NUM_WITH_SUFFIX}"),
    re.compile(rf"from\s+{_NUM_WITH_SUFFIX}\s+to\s+{_NUM_WITH_SUFFIX}"),
    re.compile(rf"(?<![\d-]){_NUM_WITH_SUFFIX}\s*[-–]\s*{_NUM_WITH_SUFFIX}(?![\d-])"),
    re.compile(rf"{_NUM_WITH_SUFFIX}\s+to\s+{_NUM_WITH_SUFFIX}"),
]

_NEGATED_ABOVE_RE = re.compile(r"\b(not exceed|not reach|fail to reach)\b")
_ABOVE_RE = re.compile(
    r"\b(above|over|exceeds?|exceeding|reach(?:es|ing)?|hits?|at least|greater than|more than|higher than"
    r"|surpass(?:es)?|tops?)\b"
)
_BELOW_RE = re.compile(r"\b(below|under|less than|at most|lower than|falls? below|drops? below)\b")
_WIN_RE = re.compile(
    r"\b(win|wins|winning|winner|beat|beats|defeat|defeats|elected|election winner|victory"
    r"|champion|champions|championship)\b"
)

_SPREAD_TYPE_RE = re.compile(r"spread|handicap|(?<![\w-])[+-]\d+(?:\.\d+)?(?:\s*(?:point|pts))?")
_TOTAL_TYPE_RE = re.compile(r"over\s*/?\s*under|total\s+(?:points|goals|runs)|o/u")
_PRICE_TYPE_RE = re.compile(r"\$\d|price|target|reach|\bbtc\b|\beth\b|\bsol\b")
_WINNER_TYPE_RE = re.compile(r"\b(?:win|beat|defeat)s?\b|moneyline|winner|\bvs?\b\.?|@")
_YES_NO_TYPE_RE = re.compile(r"\byes\b|\bno\b|\bwill\b.+\?")

_GAME_TYPE_PATTERNS: List[Tuple[re.Pattern, GameType]] = [
    (re.compile(r"\b(cs2|csgo|cs:go|counter[\s-]?strike|counterstrike)\b"), GameType.CS2),
    (re.compile(r"\bvalorant\b"), GameType.VALORANT),
    (re.compile(r"\b(league\s+of\s+legends|lol|lck|lpl|lec|lcs)\b"), GameType.LOL),
    (re.compile(r"\b(dota\s*2?|the\s+international|ti\d+)\b"), GameType.DOTA2),
    (re.compile(r"\b(nba|basketball)\b"), GameType.NBA),
    (re.compile(r"\b(nfl|football|super\s+bowl)\b"), GameType.NFL),
    (re.compile(r"\b(mlb|baseball|world\s+series)\b"), GameType.MLB),
    (re.compile(r"\b(nhl|hockey|stanley\s+cup)\b"), GameType.NHL),
    (re.compile(r"\b(soccer|premier\s+league|la\s+liga|bundesliga|serie\s+a|champions\s+league|epl|ucl)\b"), GameType.SOCCER),
    (re.compile(r"\b(tennis|atp|wta|wimbledon|us\s+open|australian\s+open|french\s+open|grand\s+slam)\b"), GameType.TENNIS),
    (re.compile(r"\b(golf|pga|lpga|masters|ryder\s+cup)\b"), GameType.GOLF),
    (re.compile(r"\b(ufc|mma|fight\s+night|ppv)\b"), GameType.UFC),
    (re.compile(r"\b(f1|formula\s*1|grand\s+prix)\b"), GameType.F1),
    (re.compile(r"\b(election|president|senate|congress|governor|vote|ballot|electoral)\b"), GameType.ELECTION),
    (re.compile(r"\b(bitcoin|btc|ethereum|eth|crypto|solana|doge|xrp)\b"), GameType.CRYPTO),
    (re.compile(r"\b(cpi|gdp|inflation|fed|fomc|interest\s+rate|unemployment|nfp|payrolls|pce)\b"), GameType.MACRO),
    (re.compile(r"\b(oscars?|grammys?|emmys?|golden\s+globes?|movie|film|album|song)\b"), GameType.ENTERTAINMENT),
]

_ESPORTS_DOMAINS = {"CS2", "VALORANT", "LOL", "DOTA2"}
_VALORANT_HINT = re.compile(r"sentinels|loud|drx|paper\s+rex|gen\.?g")

_LEAGUE_GAME_TYPES: Dict[str, GameType] = {
    "NBA": GameType.NBA,
    "NCAA_BASKETBALL": GameType.NBA,
    "NFL": GameType.NFL,
    "NCAA_FOOTBALL": GameType.NFL,
    "MLB": GameType.MLB,
    "NHL": GameType.NHL,
    "EPL": GameType.SOCCER,
    "LA_LIGA": GameType.SOCCER,
    "BUNDESLIGA": GameType.SOCCER,
    "SERIE_A": GameType.SOCCER,
    "LIGUE_1": GameType.SOCCER,
    "UCL": GameType.SOCCER,
    "UEL": GameType.SOCCER,
    "MLS": GameType.SOCCER,
    "UFC": GameType.UFC,
    "BELLATOR": GameType.UFC,
    "ATP": GameType.TENNIS,
    "WTA": GameType.TENNIS,
    "GRAND_SLAM": GameType.TENNIS,
    "PGA": GameType.GOLF,
    "LPGA": GameType.GOLF,
    "F1": GameType.F1,
    "NASCAR": GameType.F1,
}

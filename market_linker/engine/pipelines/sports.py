from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

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
from market_linker.knowledge import aliases
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, Venue, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "sports@3.0.14"
STRONG_THRESHOLD = 0.85
LINE_TOLERANCE = 2.0


class SportsLeague(str, Enum):
    NBA = "NBA"
    NFL = "NFL"
    MLB = "MLB"
    NHL = "NHL"
    MLS = "MLS"
    EPL = "EPL"
    LA_LIGA = "LA_LIGA"
    BUNDESLIGA = "BUNDESLIGA"
    SERIE_A = "SERIE_A"
    LIGUE_1 = "LIGUE_1"
    UCL = "UCL"
    UEL = "UEL"
    NCAA_FB = "NCAA_FB"
    NCAA_BB = "NCAA_BB"
    UFC = "UFC"
    TENNIS = "TENNIS"
    GOLF = "GOLF"
    F1 = "F1"
    ESPORTS = "ESPORTS"
    UNKNOWN = "UNKNOWN"


class SportsMarketType(str, Enum):
    MONEYLINE = "MONEYLINE"
    SPREAD = "SPREAD"
    TOTAL = "TOTAL"
    PROP = "PROP"
    FUTURES = "FUTURES"
    PARLAY = "PARLAY"
    UNKNOWN = "UNKNOWN"


class SportsPeriod(str, Enum):
    FULL_GAME = "FULL_GAME"
    FIRST_HALF = "1H"
    SECOND_HALF = "2H"
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    OVERTIME = "OT"
    UNKNOWN = "UNKNOWN"


class SpreadSide(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"
    OVER = "OVER"
    UNDER = "UNDER"
    YES = "YES"
    NO = "NO"
    UNKNOWN = "UNKNOWN"


@dataclass
class SportsSignals:
    league: SportsLeague
    teams: Tuple[str, ...]
    market_type: SportsMarketType
    period: SportsPeriod
    line_value: Optional[float]
    side: SpreadSide
    start_time: Optional[datetime]
    start_bucket: Optional[str]
    event_id: Optional[str]
    excluded: bool
    exclude_reason: Optional[str]
    tokens: List[str] = field(default_factory=list)
    confidence: float = 1.0

    @property
    def team_key(self) -> Optional[str]:
        if len(self.teams) != 2:
            return None
        return "|".join(sorted(self.teams))

    @property
    def eligible(self) -> bool:
        return (
            not self.excluded
            and self.league != SportsLeague.UNKNOWN
            and self.team_key is not None
            and self.start_bucket is not None
            and self.market_type in _MATCHABLE_TYPES
            and self.period == SportsPeriod.FULL_GAME
        )


def extract_sports_signals(
    title: str,
    close_time: Optional[datetime] = None,
    open_time: Optional[datetime] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> SportsSignals:
    metadata = metadata or {}
    title = title or ""
    event_title = str(metadata.get("eventTitle") or metadata.get("event_title") or "")

    teams = extract_teams(event_title) if event_title else ()
    teams_from_event = bool(teams)
    if not teams:
        teams = extract_teams(title)

    league = detect_league(" ".join(filter(None, [title, event_title, str(metadata.get("seriesTicker") or "")])))
    market_type = detect_market_type(title)
    start_time, from_event = _start_time(metadata, open_time, close_time)
    excluded, reason = should_exclude(title)
    if market_type in (SportsMarketType.PROP, SportsMarketType.FUTURES, SportsMarketType.PARLAY):
        excluded = True
        reason = reason or f"{market_type.value.lower()} market"

    confidence = 1.0
    if not teams:
        confidence -= 0.4
    if start_time is None:
        confidence -= 0.2
    if league == SportsLeague.UNKNOWN:
        confidence -= 0.15
    if market_type == SportsMarketType.UNKNOWN:
        confidence -= 0.1
    period = detect_period(title)
    if period != SportsPeriod.FULL_GAME:
        confidence -= 0.1
    if teams_from_event:
        confidence += 0.05
    if from_event:
        confidence += 0.05
    if excluded:
        confidence = 0.0

    event_id = metadata.get("game_id") or metadata.get("eventTicker") or metadata.get("seriesTicker")
    return SportsSignals(
        league=league,
        teams=teams,
        market_type=market_type,
        period=period,
        line_value=extract_line_value(title, market_type),
        side=extract_side(title),
        start_time=start_time,
        start_bucket=time_bucket(start_time) if start_time else None,
        event_id=str(event_id) if event_id else None,
        excluded=excluded,
        exclude_reason=reason,
        tokens=tokenize(normalize_title(title)),
        confidence=min(1.0, max(0.0, confidence)),
    )


def detect_league(text: str) -> SportsLeague:
    lower = (text or "").lower()
    for pattern, league in _LEAGUE_PATTERNS:
        if pattern.search(lower):
            return league
    for league, keywords in _LEAGUE_KEYWORDS:
        if any(re.search(rf"\b{re.escape(kw)}\b", lower) for kw in keywords):
            return league
    return SportsLeague.UNKNOWN


def extract_teams(title: str) -> Tuple[str, ...]:
    text = (title or "").strip().rstrip("?")
    text = re.sub(r"^(?:will\s+)?", "", text, flags=re.IGNORECASE)
    for pattern in _MATCHUP_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        first = normalize_team(m.group(1))
        second = normalize_team(m.group(2))
        if first and second and first != second:
            return first, second
    return ()


def normalize_team(name: str) -> str:
    cleaned = re.sub(r"[^a-z0-9\s]", " ", (name or "").lower())
    cleaned = re.sub(r"\b(?:game|match|winner|moneyline|spread|total)\b.*$", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if not cleaned:
        return ""
    lookup = _team_lookup()
    if cleaned in lookup:
        return lookup[cleaned]
    head, _, rest = cleaned.partition(" ")
    city = aliases.CITY_ABBREVIATIONS.get(head)
    if city and rest:
        expanded = f"{city} {rest}"
        if expanded in lookup:
            return lookup[expanded]
    return cleaned.upper().replace(" ", "_")


def detect_market_type(title: str) -> SportsMarketType:
    lower = (title or "").lower()
    if _PARLAY_TYPE_RE.search(lower):
        return SportsMarketType.PARLAY
    if _PROP_TYPE_RE.search(lower):
        return SportsMarketType.PROP
    if _FUTURES_TYPE_RE.search(lower):
        return SportsMarketType.FUTURES
    if _SPREAD_TYPE_RE.search(lower):
        return SportsMarketType.SPREAD
    if _TOTAL_TYPE_RE.search(lower):
        return SportsMarketType.TOTAL
    if _MONEYLINE_TYPE_RE.search(lower) or _VS_LINE_RE.search(lower):
        return SportsMarketType.MONEYLINE
    return SportsMarketType.UNKNOWN


def detect_period(title: str) -> SportsPeriod:
    lower = (title or "").lower()
    for pattern, period in _PERIOD_PATTERNS:
        if pattern.search(lower):
            return period
    return SportsPeriod.FULL_GAME


def extract_line_value(title: str, market_type: SportsMarketType) -> Optional[float]:
    lower = (title or "").lower()
    if market_type == SportsMarketType.SPREAD:
        m = _SPREAD_VALUE_RE.search(lower)
    elif market_type == SportsMarketType.TOTAL:
        m = _TOTAL_VALUE_RE.search(lower)
    else:
        return None
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def extract_side(title: str) -> SpreadSide:
    lower = (title or "").lower()
    for word, side in _SIDE_WORDS:
        if re.search(rf"\b{word}\b", lower):
            return side
    return SpreadSide.UNKNOWN


def should_exclude(title: str) -> Tuple[bool, Optional[str]]:
    lower = (title or "").lower()
    for pattern, keyword in _EXCLUSION_PATTERNS:
        if pattern.search(lower):
            return True, f"excluded keyword: {keyword}"
    if _PLAYER_PROP_RE.search(title or ""):
        return True, "player prop pattern"
    for pattern, reason in _PARLAY_PATTERNS:
        if pattern.search(title or ""):
            return True, f"parlay: {reason}"
    if len((title or "").split(",")) >= 3:
        vs_count = len(re.findall(r"\bvs\.?\b", lower))
        win_count = len(re.findall(r"\bwin\b", lower))
        if vs_count >= 2 or win_count >= 2:
            return True, "multi-match parlay"
    return False, None


def time_bucket(value: datetime) -> str:
    utc = as_utc(value)
    minute = 0 if utc.minute < 30 else 30
    return utc.strftime("%Y-%m-%dT%H:") + f"{minute:02d}"


def buckets_adjacent(a: str, b: str) -> bool:
    delta = abs(_parse_bucket(a) - _parse_bucket(b))
    return delta <= timedelta(minutes=30)


class SportsPipeline(BasePipeline):
    topic = CanonicalTopic.SPORTS
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=20, max_per_right=5, min_winner_gap=0.10)
    strong_threshold = STRONG_THRESHOLD

    def __init__(self) -> None:
        self._features: FeatureCache[SportsSignals] = FeatureCache(
            lambda m: extract_sports_signals(m.title, m.close_time, m.open_time, m.metadata)
        )

    def signals(self, market: Market) -> SportsSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        if venue == Venue.KALSHI.value:
            markets = self._fetch(store, venue, lookback_hours, limit, derived_topic=CanonicalTopic.SPORTS.value)
        else:
            markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=SPORTS_KEYWORDS)
        eligible = [m for m in markets if self.signals(m).eligible]
        logger.info("sports: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        sig = self.signals(market)
        keys: List[str] = []
        if sig.team_key and sig.start_bucket:
            base = f"{sig.league.value}|{sig.team_key}"
            bucket = _parse_bucket(sig.start_bucket)
            for offset in (0, -30, 30):
                keys.append(f"{base}|{time_bucket(bucket + timedelta(minutes=offset))}")
        if sig.event_id:
            keys.append(f"EVENT_ID|{sig.event_id}")
        candidates = index.collect(keys, exclude=market)
        if not candidates and sig.team_key:
            candidates = index.collect([f"{sig.league.value}|{sig.team_key}"], exclude=market)
        return candidates

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if ls.league != rs.league:
            return gate_failed(f"league mismatch: {ls.league.value} vs {rs.league.value}")
        if ls.league == SportsLeague.UNKNOWN:
            return gate_failed("league unknown")
        if not ls.team_key or ls.team_key != rs.team_key:
            return gate_failed(f"teams mismatch: {ls.team_key} vs {rs.team_key}")
        if not ls.start_bucket or not rs.start_bucket:
            return gate_failed("start time missing")
        if ls.start_bucket != rs.start_bucket and not buckets_adjacent(ls.start_bucket, rs.start_bucket):
            return gate_failed(f"time bucket mismatch: {ls.start_bucket} vs {rs.start_bucket}")
        if ls.market_type != rs.market_type:
            return gate_failed(f"market type mismatch: {ls.market_type.value} vs {rs.market_type.value}")
        if ls.market_type in (SportsMarketType.SPREAD, SportsMarketType.TOTAL):
            if ls.line_value is not None and rs.line_value is not None:
                if abs(abs(ls.line_value) - abs(rs.line_value)) > LINE_TOLERANCE:
                    return gate_failed(f"line mismatch: {ls.line_value} vs {rs.line_value}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)

        league = 1.0 if ls.league == rs.league and ls.league != SportsLeague.UNKNOWN else 0.0
        teams = len(set(ls.teams) & set(rs.teams)) / 2.0
        if ls.start_bucket and rs.start_bucket and ls.start_bucket == rs.start_bucket:
            time = 1.0
        elif ls.start_bucket and rs.start_bucket and buckets_adjacent(ls.start_bucket, rs.start_bucket):
            time = 0.7
        else:
            time = 0.0
        event = (0.2 * league + 0.45 * teams + 0.1 * time) / 0.75

        market_type = 1.0 if ls.market_type == rs.market_type else 0.0
        line_diff: Optional[float] = None
        if ls.line_value is not None and rs.line_value is not None:
            line_diff = abs(abs(ls.line_value) - abs(rs.line_value))
            value = _line_band(line_diff)
        elif ls.line_value is None and rs.line_value is None:
            value = 1.0
        else:
            value = 0.5
        if ls.side != SpreadSide.UNKNOWN and rs.side != SpreadSide.UNKNOWN:
            side = 1.0 if ls.side == rs.side else 0.3
        else:
            side = 0.5
        line = (0.1 * market_type + 0.1 * value + 0.05 * side) / 0.25

        score = clamp_score(event * 0.75 + line * 0.25)
        text = jaccard(ls.tokens, rs.tokens)
        breakdown: Dict[str, float] = {
            "league": league,
            "teams": teams,
            "time": time,
            "event": round(event, 4),
            "market_type": market_type,
            "line_value": value,
            "side": side,
            "line": round(line, 4),
            "text": round(text, 4),
            "line_value_match": 1.0 if line_diff is not None and line_diff <= 0.5 else 0.0,
        }
        reason = (
            f"{ls.league.value} {' vs '.join(ls.teams)} @ {ls.start_bucket} "
            f"type={ls.market_type.value} event={event:.2f} line={line:.2f}"
        )
        if line_diff is not None:
            reason += f" lineDiff={line_diff:g}"
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if score >= STRONG_THRESHOLD else Tier.WEAK,
            breakdown=breakdown,
            reason=reason,
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        ls = self.signals(left)
        rs = self.signals(right)
        b = result.breakdown
        if (
            ls.market_type == SportsMarketType.MONEYLINE
            and rs.market_type == SportsMarketType.MONEYLINE
            and result.score >= 0.92
            and b.get("league") == 1.0
            and b.get("teams") == 1.0
            and b.get("time", 0.0) >= 0.7
            and b.get("text", 0.0) >= 0.10
        ):
            return Decision(
                apply=True, rule="MONEYLINE_EXACT_EVENT_MATCH", confidence=result.score, reason=result.reason
            )
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        b = result.breakdown
        if result.score < 0.55:
            return Decision(apply=True, rule="LOW_SCORE", reason=f"score {result.score:.2f} < 0.55")
        if b.get("league") != 1.0:
            return Decision(apply=True, rule="LEAGUE_MISMATCH", reason="leagues differ")
        if b.get("teams") != 1.0:
            return Decision(apply=True, rule="TEAMS_MISMATCH", reason="teams differ")
        if b.get("time", 0.0) == 0.0:
            return Decision(apply=True, rule="TIME_MISMATCH", reason="start times differ")
        if b.get("market_type") != 1.0:
            return Decision(apply=True, rule="MARKET_TYPE_MISMATCH", reason="market types differ")
        ls = self.signals(left)
        rs = self.signals(right)
        if ls.line_value is not None and rs.line_value is not None:
            if abs(abs(ls.line_value) - abs(rs.line_value)) > LINE_TOLERANCE:
                return Decision(apply=True, rule="LINE_VALUE_MISMATCH", reason="line values differ")
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        keys: List[str] = []
        if sig.team_key:
            base = f"{sig.league.value}|{sig.team_key}"
            keys.append(base)
            if sig.start_bucket:
                keys.append(f"{base}|{sig.start_bucket}")
        if sig.event_id:
            keys.append(f"EVENT_ID|{sig.event_id}")
        return keys


@lru_cache(maxsize=1)
def _team_lookup() -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for canonical, names in aliases.MATCHUP_TEAMS.items():
        team_id = canonical.upper().replace(" ", "_")
        lookup.setdefault(canonical, team_id)
        for name in names:
            lookup.setdefault(name, team_id)
    return lookup


def _start_time(
    metadata: Mapping[str, Any], open_time: Optional[datetime], close_time: Optional[datetime]
) -> Tuple[Optional[datetime], bool]:
    raw = metadata.get("eventStartTime") or metadata.get("event_start_time")
    if isinstance(raw, datetime):
        return as_utc(raw), True
    if isinstance(raw, str) and raw:
        try:
            return as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00"))), True
        except ValueError:
            logger.debug("unparseable eventStartTime %r", raw)
    if open_time is not None:
        return as_utc(open_time), False
    if close_time is not None:
        return as_utc(close_time), False
    return None, False


def _parse_bucket(bucket: str) -> datetime:
    return datetime.strptime(bucket, "%Y-%m-%dT%H:%M")


def _line_band(diff: float) -> float:
    if diff == 0:
        return 1.0
    if diff <= 0.5:
        return 0.9
    if diff <= 1.0:
        return 0.7
    if diff <= 2.0:
        return 0.4
    return 0.1


_MATCHABLE_TYPES = (SportsMarketType.MONEYLINE, SportsMarketType.SPREAD, SportsMarketType.TOTAL)

SPORTS_KEYWORDS: Tuple[str, ...] = (
    "vs", "versus", "nba", "nfl", "mlb", "nhl", "mls", "premier league", "la liga", "bundesliga",
    "serie a", "ligue 1", "champions league", "ufc", "mma", "moneyline", "spread", "handicap",
    "over", "under", "o/u", "total points", "total goals",
)

_LEAGUE_PATTERNS: List[Tuple[re.Pattern, SportsLeague]] = [
    (re.compile(r"\bnba\b"), SportsLeague.NBA),
    (re.compile(r"\bnfl\b"), SportsLeague.NFL),
    (re.compile(r"\bmlb\b"), SportsLeague.MLB),
    (re.compile(r"\bnhl\b"), SportsLeague.NHL),
    (re.compile(r"\bmls\b"), SportsLeague.MLS),
    (re.compile(r"\bepl\b|premier league"), SportsLeague.EPL),
    (re.compile(r"\bla liga\b"), SportsLeague.LA_LIGA),
    (re.compile(r"\bbundesliga\b"), SportsLeague.BUNDESLIGA),
    (re.compile(r"\bserie a\b"), SportsLeague.SERIE_A),
    (re.compile(r"\bligue 1\b"), SportsLeague.LIGUE_1),
    (re.compile(r"champions league|\bucl\b"), SportsLeague.UCL),
    (re.compile(r"europa league|\buel\b"), SportsLeague.UEL),
    (re.compile(r"\b(?:ncaa|college) football\b|\bcfb\b"), SportsLeague.NCAA_FB),
    (re.compile(r"\b(?:ncaa|college) basketball\b|march madness"), SportsLeague.NCAA_BB),
    (re.compile(r"\bufc\b|\bmma\b"), SportsLeague.UFC),
    (re.compile(r"\batp\b|\bwta\b|\btennis\b"), SportsLeague.TENNIS),
    (re.compile(r"\bpga\b|\bgolf\b"), SportsLeague.GOLF),
    (re.compile(r"\bf1\b|formula 1|grand prix"), SportsLeague.F1),
    (re.compile(r"\besports\b|\bvalorant\b|\bdota\b|league of legends"), SportsLeague.ESPORTS),
]

_LEAGUE_KEYWORDS: List[Tuple[SportsLeague, Tuple[str, ...]]] = [
    (SportsLeague.NBA, (
        "lakers", "celtics", "warriors", "knicks", "nets", "bulls", "heat", "bucks", "suns", "mavericks",
        "mavs", "nuggets", "76ers", "sixers", "grizzlies", "cavaliers", "cavs", "raptors", "clippers",
        "thunder", "timberwolves", "pelicans", "spurs", "rockets", "kings", "blazers", "jazz", "hawks",
        "hornets", "pistons", "pacers", "magic", "wizards",
    )),
    (SportsLeague.NFL, (
        "chiefs", "eagles", "cowboys", "49ers", "niners", "bills", "ravens", "bengals", "dolphins",
        "jets", "patriots", "steelers", "browns", "packers", "vikings", "bears", "lions", "seahawks",
        "rams", "chargers", "raiders", "broncos", "texans", "colts", "jaguars", "titans", "saints",
        "buccaneers", "falcons", "panthers", "commanders", "cardinals", "giants",
    )),
    (SportsLeague.MLB, (
        "yankees", "red sox", "dodgers", "mets", "cubs", "white sox", "astros", "braves", "phillies",
        "padres", "mariners", "orioles", "guardians", "twins", "blue jays", "rays", "brewers",
    )),
    (SportsLeague.NHL, (
        "bruins", "maple leafs", "canadiens", "oilers", "flames", "canucks", "penguins", "capitals",
        "lightning", "avalanche", "golden knights", "blackhawks", "red wings", "islanders", "flyers",
    )),
    (SportsLeague.EPL, (
        "arsenal", "chelsea", "liverpool", "manchester united", "man united", "manchester city",
        "man city", "tottenham", "spurs fc", "newcastle", "aston villa", "west ham", "everton",
    )),
    (SportsLeague.LA_LIGA, ("real madrid", "barcelona", "atletico madrid", "sevilla", "real sociedad", "villarreal")),
    (SportsLeague.BUNDESLIGA, ("bayern", "dortmund", "leverkusen", "rb leipzig")),
    (SportsLeague.SERIE_A, ("juventus", "inter milan", "ac milan", "napoli", "roma", "lazio", "atalanta")),
    (SportsLeague.MLS, ("inter miami", "la galaxy", "lafc", "seattle sounders", "atlanta united")),
]

_MATCHUP_PATTERNS = [
    re.compile(r"^(.+?)\s+(?:vs\.?|v\.?|versus)\s+(.+?)(?:\s*[-–—:]\s*|\s*$)", re.IGNORECASE),
    re.compile(r"^(.+?)\s+@\s+(.+?)(?:\s*[-–—:]\s*|\s*$)", re.IGNORECASE),
    re.compile(r"^(.+?)\s+at\s+(.+?)(?:\s*[-–—:]\s*|\s*$)", re.IGNORECASE),
]

_PARLAY_TYPE_RE = re.compile(r"parlay|\bmulti\b|\bcombo\b|accumulator|\bacca\b")
_PROP_TYPE_RE = re.compile(
    r"\bpoints\b.*\b\d+\+|\bpassing\s+yards|\brushing\s+yards|\breceiving\s+yards|\btouchdown|first\s+scorer"
    r"|\blast\s+scorer|\bgoals?\b.*\b\d+\+|\bassist|\brebound|\bstrikeout|\bhome\s+run|\bhr\b|\brbi\b"
)
_FUTURES_TYPE_RE = re.compile(
    r"\bchampion(?:ship)?\b|winner\s+of\s+the\s+(?:season|tournament|league|cup)|\bmvp\b|rookie|\bdraft\b|\baward"
    r"|playoffs?\s+berth|make\s+playoffs|win\s+total\s+(?:season|20\d\d)|next\s+(?:team|coach|manager)"
    r"|\bfired\b|\bhired\b"
)
_SPREAD_TYPE_RE = re.compile(r"spread|handicap|(?<![\w.])[+-]\d+(?:\.\d+)?")
_TOTAL_TYPE_RE = re.compile(
    r"over\s*/?\s*under|total\s+(?:points|goals|runs)|o/u|\bo\s*\d+\.?\d*\b|\bu\s*\d+\.?\d*\b"
    r"|\bover\s+\d+\.?\d*|\bunder\s+\d+\.?\d*"
)
_MONEYLINE_TYPE_RE = re.compile(r"\b(?:win|wins|beat|beats|defeat|defeats)\b|moneyline|money\s+line|winner")
_VS_LINE_RE = re.compile(r"^(.+?)\s+(?:vs\.?|v\.?|@)\s+(.+?)$")

_SPREAD_VALUE_RE = re.compile(r"(?<![\w.])([+-]?\d+(?:\.\d+)?)(?!\w)")
_TOTAL_VALUE_RE = re.compile(r"(?:over|under|o/u|total(?:\s+(?:points|goals|runs))?)\s*(\d+(?:\.\d+)?)")

_SIDE_WORDS: Tuple[Tuple[str, SpreadSide], ...] = (
    ("over", SpreadSide.OVER),
    ("under", SpreadSide.UNDER),
    ("home", SpreadSide.HOME),
    ("away", SpreadSide.AWAY),
    ("yes", SpreadSide.YES),
    ("no", SpreadSide.NO),
)

_PERIOD_PATTERNS: List[Tuple[re.Pattern, SportsPeriod]] = [
    (re.compile(r"\b(?:1st|first)\s+(?:half|h)\b|\b1h\b"), SportsPeriod.FIRST_HALF),
    (re.compile(r"\b(?:2nd|second)\s+(?:half|h)\b|\b2h\b"), SportsPeriod.SECOND_HALF),
    (re.compile(r"\b(?:1st|first)\s+(?:quarter|q)\b|\bq1\b"), SportsPeriod.Q1),
    (re.compile(r"\b(?:2nd|second)\s+(?:quarter|q)\b|\bq2\b"), SportsPeriod.Q2),
    (re.compile(r"\b(?:3rd|third)\s+(?:quarter|q)\b|\bq3\b"), SportsPeriod.Q3),
    (re.compile(r"\b(?:4th|fourth)\s+(?:quarter|q)\b|\bq4\b"), SportsPeriod.Q4),
    (re.compile(r"\b(?:1st|first)\s+period\b|\bp1\b"), SportsPeriod.P1),
    (re.compile(r"\b(?:2nd|second)\s+period\b|\bp2\b"), SportsPeriod.P2),
    (re.compile(r"\b(?:3rd|third)\s+period\b|\bp3\b"), SportsPeriod.P3),
    (re.compile(r"overtime|\bot\b"), SportsPeriod.OVERTIME),
]

_EXCLUSION_KEYWORDS: Tuple[str, ...] = (
    # player props
    "yards", "passing", "rushing", "receiving", "touchdown", "td",
    "first scorer", "last scorer", "anytime scorer", "goalscorer",
    "assist", "assists", "rebound", "rebounds", "block", "blocks", "steal", "steals",
    "double double", "triple double", "strikeout", "strikeouts", "home run", "hr", "rbi", "hits", "save", "saves",
    "shots on goal", "shots on target", "corner", "corners", "card", "cards", "booking",
    # futures
    "champion", "championship", "mvp", "rookie of the year", "draft pick",
    "win total", "playoff", "playoffs", "make playoffs", "division winner", "conference winner",
    "regular season", "postseason", "award",
    # parlays
    "parlay", "multi", "combo", "accumulator", "acca", "same game parlay", "sgp",
    # live
    "live", "in-play", "in play", "next point", "next goal", "current",
    # other
    "special", "novelty", "entertainment", "promotion", "boost",
    "correct score", "exact score", "first to score",
    "fired", "hired", "next coach", "next manager", "next team",
    "transfer", "trade", "signing",
)
_EXCLUSION_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(rf"(?<![\w-]){re.escape(kw)}(?![\w-])"), kw) for kw in _EXCLUSION_KEYWORDS
]

_PLAYER_PROP_RE = re.compile(r"\w+\s+\w+:\s*\d+\+")
_PARLAY_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"^yes\s+.+,\s*yes\s+", re.IGNORECASE), "yes X, yes Y"),
    (re.compile(r"\+\s*[a-z].*\+\s*[a-z]", re.IGNORECASE), "multiple + combinations"),
    (re.compile(r"\band\b.*\band\b.*\band\b", re.IGNORECASE), "triple and"),
    (re.compile(r"\bparlay\b|\baccumulator\b|\bsgp\b", re.IGNORECASE), "explicit parlay keyword"),
    (re.compile(r"\d+\s*-?\s*leg\b", re.IGNORECASE), "multi-leg"),
    (re.compile(r"\ball\s+\d+\b", re.IGNORECASE), "all N"),
]

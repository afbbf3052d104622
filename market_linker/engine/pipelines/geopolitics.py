from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
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
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "geopolitics@3.1.0"

WEIGHTS = {
    "region": 0.30,
    "countries": 0.25,
    "event_type": 0.20,
    "actors": 0.15,
    "text": 0.10,
}
STRONG_THRESHOLD = 0.75


class Region(str, Enum):
    UKRAINE = "UKRAINE"
    RUSSIA = "RUSSIA"
    CHINA = "CHINA"
    MIDDLE_EAST = "MIDDLE_EAST"
    EUROPE = "EUROPE"
    ASIA = "ASIA"
    AMERICAS = "AMERICAS"
    AFRICA = "AFRICA"
    UNKNOWN = "UNKNOWN"


class EventType(str, Enum):
    WAR = "WAR"
    PEACE = "PEACE"
    SANCTIONS = "SANCTIONS"
    LEADERSHIP = "LEADERSHIP"
    TERRITORY = "TERRITORY"
    MILITARY = "MILITARY"
    DIPLOMACY = "DIPLOMACY"
    UNKNOWN = "UNKNOWN"


@dataclass
class GeopoliticsSignals:
    region: Region
    regions: List[Region]
    countries: List[str]
    event_type: EventType
    actors: List[str]
    year: Optional[int]
    deadline: Optional[str]
    tokens: List[str] = field(default_factory=list)


def extract_geopolitics_signals(title: str, close_time: Optional[datetime] = None) -> GeopoliticsSignals:
    lower = (title or "").lower()
    regions = [region for region, pattern in _REGION_PATTERNS if pattern.search(lower)]
    event_type = EventType.UNKNOWN
    for candidate, pattern in _EVENT_PATTERNS:
        if pattern.search(lower):
            event_type = candidate
            break

    year_match = _YEAR_RE.search(lower)
    if year_match:
        year: Optional[int] = int(year_match.group(1))
    elif close_time is not None:
        year = as_utc(close_time).year
    else:
        year = None

    deadline = None
    for pattern in _DEADLINE_PATTERNS:
        m = pattern.search(lower)
        if m:
            deadline = m.group(0)
            break

    return GeopoliticsSignals(
        region=regions[0] if regions else Region.UNKNOWN,
        regions=regions,
        countries=[name for name, pattern in _COUNTRY_PATTERNS if pattern.search(lower)],
        event_type=event_type,
        actors=[name for name, pattern in _ACTOR_PATTERNS if pattern.search(lower)],
        year=year,
        deadline=deadline,
        tokens=tokenize(normalize_title(title)),
    )


def is_geopolitics_market(title: str) -> bool:
    lower = (title or "").lower()
    return bool(_GEOPOLITICS_RE.search(lower))


def event_types_compatible(a: EventType, b: EventType) -> bool:
    if a == b or EventType.UNKNOWN in (a, b):
        return True
    return frozenset((a, b)) in _COMPATIBLE_EVENT_TYPES


def event_types_conflict(a: EventType, b: EventType) -> bool:
    return {a, b} == {EventType.WAR, EventType.PEACE}


class GeopoliticsPipeline(BasePipeline):
    topic = CanonicalTopic.GEOPOLITICS
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.02)
    strong_threshold = STRONG_THRESHOLD

    def __init__(self, exclude_sports: bool = True):
        self._exclude_sports = exclude_sports
        self._features: FeatureCache[GeopoliticsSignals] = FeatureCache(
            lambda m: extract_geopolitics_signals(m.title, m.close_time)
        )

    def signals(self, market: Market) -> GeopoliticsSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=GEOPOLITICS_KEYWORDS)
        eligible: List[Market] = []
        for market in markets:
            lower = market.title.lower()
            if self._exclude_sports and _SPORTS_RE.search(lower):
                continue
            if not is_geopolitics_market(market.title):
                continue
            sig = self.signals(market)
            if sig.region == Region.UNKNOWN and not sig.countries:
                continue
            eligible.append(market)
        logger.info("geopolitics: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        return index.collect(self._index_keys(market), exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not set(ls.regions) & set(rs.regions) and not set(ls.countries) & set(rs.countries):
            return gate_failed(
                "no region or country overlap: regions=[%s] vs [%s]"
                % (",".join(r.value for r in ls.regions), ",".join(r.value for r in rs.regions))
            )
        if event_types_conflict(ls.event_type, rs.event_type):
            return gate_failed(f"conflicting event types: {ls.event_type.value} vs {rs.event_type.value}")
        if ls.year is not None and rs.year is not None and ls.year != rs.year:
            return gate_failed(f"year mismatch: {ls.year} vs {rs.year}")
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)

        region_union = set(ls.regions) | set(rs.regions)
        region_overlap = len(set(ls.regions) & set(rs.regions))
        region = region_overlap / len(region_union) if region_union else 0.0
        countries, country_overlap = _set_overlap(ls.countries, rs.countries)
        actors, actor_overlap = _set_overlap(ls.actors, rs.actors)
        if ls.event_type == rs.event_type and ls.event_type != EventType.UNKNOWN:
            event = 1.0
        elif event_types_compatible(ls.event_type, rs.event_type):
            event = 0.6
        else:
            event = 0.0
        text = jaccard(ls.tokens, rs.tokens)

        raw = (
            WEIGHTS["region"] * region
            + WEIGHTS["countries"] * countries
            + WEIGHTS["event_type"] * event
            + WEIGHTS["actors"] * actors
            + WEIGHTS["text"] * text
        )
        if country_overlap >= 2:
            raw = min(1.0, raw + 0.05)
        if actor_overlap >= 1:
            raw = min(1.0, raw + 0.05)
        score = clamp_score(raw)

        strong = region >= 0.5 and country_overlap >= 1 and event >= 0.6
        reason = " ".join(
            [
                f"region={region:.2f}[{region_overlap}/{len(region_union)}]",
                f"countries={countries:.2f}({country_overlap} overlap)",
                f"eventType={event:.2f}[{ls.event_type.value}/{rs.event_type.value}]",
                f"actors={actors:.2f}({actor_overlap} overlap)",
                f"text={text:.2f}",
            ]
        )
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if strong else Tier.WEAK,
            breakdown={
                "region": round(region, 4),
                "countries": round(countries, 4),
                "event_type": event,
                "actors": round(actors, 4),
                "text": round(text, 4),
                "country_overlap": float(country_overlap),
                "actor_overlap": float(actor_overlap),
            },
            reason=reason,
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.90:
            return NO_DECISION
        ls = self.signals(left)
        rs = self.signals(right)
        b = result.breakdown
        if ls.region != rs.region or ls.region == Region.UNKNOWN:
            return NO_DECISION
        if b.get("country_overlap", 0.0) < 1 or ls.event_type != rs.event_type:
            return NO_DECISION
        if b.get("actor_overlap", 0.0) >= 1:
            return Decision(apply=True, rule="GEOPOLITICS_ACTOR_MATCH", confidence=result.score, reason=result.reason)
        if b.get("region", 0.0) >= 0.8 and b.get("countries", 0.0) >= 0.8:
            return Decision(apply=True, rule="GEOPOLITICS_HIGH_OVERLAP", confidence=result.score, reason=result.reason)
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.55:
            return Decision(apply=True, rule="LOW_SCORE", reason=f"score {result.score:.2f} < 0.55")
        if result.breakdown.get("region", 0.0) == 0:
            return Decision(apply=True, rule="NO_REGION_OVERLAP", reason="no overlapping regions")
        ls = self.signals(left)
        rs = self.signals(right)
        if event_types_conflict(ls.event_type, rs.event_type):
            return Decision(
                apply=True,
                rule="CONFLICTING_EVENT_TYPES",
                reason=f"conflicting: {ls.event_type.value} vs {rs.event_type.value}",
            )
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        year = sig.year or "unknown"
        keys = [
            f"{sig.region.value}|{sig.event_type.value}|{year}",
            f"{sig.region.value}|{year}",
        ]
        keys.extend(f"country|{c}|{year}" for c in sig.countries)
        keys.extend(f"actor|{a}|{year}" for a in sig.actors)
        return keys


def _set_overlap(a: Sequence[str], b: Sequence[str]) -> Tuple[float, int]:
    if not a and not b:
        return 0.5, 0
    if not a or not b:
        return 0.3, 0
    sa, sb = set(a), set(b)
    shared = len(sa & sb)
    return shared / len(sa | sb), shared


def _keyword_pattern(keywords: Sequence[str]) -> re.Pattern:
    alternatives = "|".join(r"\s+".join(re.escape(part) for part in k.split()) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})\b")


GEOPOLITICS_KEYWORDS: Tuple[str, ...] = (
    "war", "peace", "ceasefire", "invasion", "conflict", "sanctions",
    "ukraine", "russia", "china", "taiwan", "israel", "gaza", "iran",
    "nato", "military", "troops", "territory", "treaty", "negotiation",
    "putin", "zelensky", "xi", "netanyahu", "hezbollah", "hamas",
    "syria", "yemen", "korea", "nuclear", "missile", "tariff",
)
_GEOPOLITICS_RE = _keyword_pattern(GEOPOLITICS_KEYWORDS)

_SPORTS_KEYWORDS: Tuple[str, ...] = (
    "nba", "nfl", "mlb", "nhl", "soccer", "football game",
    "points", "rebounds", "assists", "touchdowns",
    "esports", "dota", "league of legends",
)
_SPORTS_RE = _keyword_pattern(_SPORTS_KEYWORDS)

_REGION_KEYWORDS: Dict[Region, Tuple[str, ...]] = {
    Region.UKRAINE: (
        "ukraine", "ukrainian", "kyiv", "kiev", "zelensky", "zelenskyy",
        "donbas", "donbass", "crimea", "kharkiv", "odessa", "lviv",
    ),
    Region.RUSSIA: ("russia", "russian", "moscow", "putin", "kremlin", "soviet", "siberia", "medvedev"),
    Region.CHINA: (
        "china", "chinese", "beijing", "xi jinping", "xi", "ccp",
        "taiwan", "prc", "hong kong", "tibet", "xinjiang",
    ),
    Region.MIDDLE_EAST: (
        "israel", "israeli", "gaza", "hamas", "iran", "iranian",
        "yemen", "hezbollah", "syria", "syrian", "lebanon", "lebanese",
        "iraq", "iraqi", "saudi", "saudi arabia", "turkey", "turkish",
        "palestine", "palestinian", "west bank", "netanyahu",
    ),
    Region.EUROPE: (
        "eu", "european union", "nato", "france", "french", "macron",
        "germany", "german", "merkel", "scholz", "uk", "britain", "british",
        "poland", "polish", "italy", "italian", "spain", "spanish",
    ),
    Region.ASIA: (
        "india", "indian", "modi", "pakistan", "pakistani",
        "north korea", "kim jong", "pyongyang", "south korea", "korean", "seoul",
        "japan", "japanese", "tokyo", "philippines", "vietnam", "thailand",
    ),
    Region.AMERICAS: (
        "canada", "canadian", "trudeau", "mexico", "mexican",
        "brazil", "brazilian", "venezuela", "cuba", "latin america",
    ),
    Region.AFRICA: (
        "africa", "african", "egypt", "egyptian", "south africa",
        "nigeria", "ethiopia", "sudan", "libya", "libyan",
    ),
}
_REGION_PATTERNS: List[Tuple[Region, re.Pattern]] = [
    (region, _keyword_pattern(keywords)) for region, keywords in _REGION_KEYWORDS.items()
]

# checked in order, most specific first
_EVENT_KEYWORDS: Tuple[Tuple[EventType, Tuple[str, ...]], ...] = (
    (EventType.PEACE, (
        "peace", "ceasefire", "truce", "armistice", "negotiation", "negotiate", "deal", "treaty",
        "agreement", "settlement", "diplomatic", "talks", "summit",
    )),
    (EventType.SANCTIONS, (
        "sanction", "sanctions", "embargo", "tariff", "tariffs", "trade war", "trade ban",
        "economic pressure", "restriction",
    )),
    (EventType.LEADERSHIP, (
        "resign", "resignation", "step down", "overthrow", "overthrown", "coup", "election", "leader",
        "president", "prime minister", "removed", "removal", "impeach", "impeachment", "succession",
    )),
    (EventType.TERRITORY, (
        "territory", "territorial", "annex", "annexation", "occupation", "occupy", "occupied", "border",
        "borders", "sovereignty", "independence", "secession", "separatist",
    )),
    (EventType.WAR, (
        "war", "warfare", "invasion", "invade", "invading", "conflict", "attack", "offensive", "battle",
        "combat", "fighting", "hostilities", "assault",
    )),
    (EventType.MILITARY, (
        "military", "troops", "soldiers", "army", "forces", "deploy", "deployment", "mobilization",
        "missile", "missiles", "nuclear", "weapon", "weapons", "defense", "defence",
    )),
    (EventType.DIPLOMACY, (
        "diplomacy", "diplomat", "diplomatic", "embassy", "ambassador", "relations", "alliance", "ally",
        "allies", "cooperation", "partnership",
    )),
)
_EVENT_PATTERNS: List[Tuple[EventType, re.Pattern]] = [
    (event_type, _keyword_pattern(keywords)) for event_type, keywords in _EVENT_KEYWORDS
]

_ACTORS: Dict[str, Tuple[str, ...]] = {
    "PUTIN": ("putin", "vladimir putin"),
    "ZELENSKY": ("zelensky", "zelenskyy", "volodymyr zelensky"),
    "LAVROV": ("lavrov", "sergei lavrov"),
    "XI": ("xi jinping", "xi", "jinping"),
    "NETANYAHU": ("netanyahu", "bibi"),
    "SINWAR": ("sinwar", "yahya sinwar"),
    "KHAMENEI": ("khamenei", "ayatollah"),
    "MACRON": ("macron", "emmanuel macron"),
    "SCHOLZ": ("scholz", "olaf scholz"),
    "TRUMP": ("trump", "donald trump"),
    "BIDEN": ("biden", "joe biden"),
}
_ACTOR_PATTERNS: List[Tuple[str, re.Pattern]] = [(name, _keyword_pattern(kws)) for name, kws in _ACTORS.items()]

_COUNTRIES: Dict[str, Tuple[str, ...]] = {
    "UKRAINE": ("ukraine", "ukrainian"),
    "RUSSIA": ("russia", "russian"),
    "CHINA": ("china", "chinese"),
    "TAIWAN": ("taiwan", "taiwanese"),
    "ISRAEL": ("israel", "israeli"),
    "IRAN": ("iran", "iranian"),
    "GAZA": ("gaza",),
    "YEMEN": ("yemen", "yemeni"),
    "SYRIA": ("syria", "syrian"),
    "LEBANON": ("lebanon", "lebanese"),
    "NORTH_KOREA": ("north korea", "dprk"),
    "SOUTH_KOREA": ("south korea", "rok"),
    "INDIA": ("india", "indian"),
    "PAKISTAN": ("pakistan", "pakistani"),
    "TURKEY": ("turkey", "turkish", "turkiye"),
    "POLAND": ("poland", "polish"),
    "GERMANY": ("germany", "german"),
    "FRANCE": ("france", "french"),
    "UK": ("uk", "britain", "british", "england"),
    "NATO": ("nato",),
    "EU": ("eu", "european union"),
}
_COUNTRY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    (name, _keyword_pattern(kws)) for name, kws in _COUNTRIES.items()
]

_COMPATIBLE_EVENT_TYPES = {
    frozenset((EventType.WAR, EventType.MILITARY)),
    frozenset((EventType.PEACE, EventType.DIPLOMACY)),
    frozenset((EventType.TERRITORY, EventType.WAR)),
    frozenset((EventType.TERRITORY, EventType.PEACE)),
}

_MONTHS = r"(?:january|february|march|april|may|june|july|august|september|october|november|december)"
_YEAR_RE = re.compile(r"\b(202[4-9]|203[0-9])\b")
_DEADLINE_PATTERNS = [
    re.compile(rf"\bby\s+{_MONTHS}\b"),
    re.compile(rf"\bbefore\s+{_MONTHS}\b"),
    re.compile(r"\bby\s+(?:spring|summer|fall|autumn|winter)\b"),
    re.compile(r"\bbefore\s+(?:spring|summer|fall|autumn|winter)\b"),
    re.compile(rf"\bby\s+end\s+of\s+(?:{_MONTHS}|\d{{4}})\b"),
    re.compile(r"\bbefore\s+\d{4}\b"),
    re.compile(r"\bby\s+\d{4}\b"),
    re.compile(r"\bin\s+\d{4}\b"),
]

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from market_linker.engine.extractor import find_aliases, jaccard, normalize_title, tokenize
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
from market_linker.knowledge.registry import AliasTable, default_registry
from market_linker.models import CanonicalTopic, Market, ScoreResult, Tier, clamp_score

logger = logging.getLogger(__name__)

ALGO_VERSION = "elections@3.0.0"

WEIGHTS = {
    "country": 0.20,
    "office": 0.20,
    "year": 0.15,
    "candidates": 0.25,
    "text": 0.20,
}
STATE_MATCH_BONUS = 0.05


class ElectionOffice(str, Enum):
    PRESIDENT = "PRESIDENT"
    VICE_PRESIDENT = "VICE_PRESIDENT"
    SENATE = "SENATE"
    HOUSE = "HOUSE"
    GOVERNOR = "GOVERNOR"
    PRIME_MINISTER = "PRIME_MINISTER"
    MAYOR = "MAYOR"
    PARTY_CONTROL = "PARTY_CONTROL"
    UNKNOWN = "UNKNOWN"


class ElectionIntent(str, Enum):
    WINNER = "WINNER"
    MARGIN = "MARGIN"
    TURNOUT = "TURNOUT"
    PARTY_CONTROL = "PARTY_CONTROL"
    NOMINEE = "NOMINEE"
    UNKNOWN = "UNKNOWN"


@dataclass
class ElectionSignals:
    country: Optional[str]
    office: ElectionOffice = ElectionOffice.UNKNOWN
    year: Optional[int] = None
    state: Optional[str] = None
    candidates: FrozenSet[str] = frozenset()
    intent: ElectionIntent = ElectionIntent.UNKNOWN
    party: Optional[str] = None
    tokens: List[str] = field(default_factory=list)

    @property
    def has_race(self) -> bool:
        return self.office != ElectionOffice.UNKNOWN or bool(self.candidates)


def extract_office(title: str) -> ElectionOffice:
    lower = (title or "").lower()
    for office, pattern in _OFFICE_PATTERNS:
        if pattern.search(lower):
            return office
    return ElectionOffice.UNKNOWN


def extract_intent(title: str, office: ElectionOffice = ElectionOffice.UNKNOWN) -> ElectionIntent:
    lower = (title or "").lower()
    for intent, pattern in _INTENT_PATTERNS:
        if pattern.search(lower):
            return intent
    return ElectionIntent.WINNER if office != ElectionOffice.UNKNOWN else ElectionIntent.UNKNOWN


def extract_state(title: str) -> Optional[str]:
    m = _STATE_RE.search((title or "").lower())
    return _STATE_NAMES[m.group(1)] if m else None


def extract_country(title: str, state: Optional[str] = None) -> Optional[str]:
    # a US state name wins over country words it contains ("New Mexico")
    if state:
        return "US"
    lower = (title or "").lower()
    for country, pattern in _COUNTRY_PATTERNS:
        if pattern.search(lower):
            return country
    if _US_OFFICE_RE.search(lower):
        return "US"
    return None


def extract_party(title: str) -> Optional[str]:
    lower = (title or "").lower()
    for party, pattern in _PARTY_PATTERNS:
        if pattern.search(lower):
            return party
    return None


def extract_election_signals(
    title: str, close_time: Optional[datetime] = None, people: Optional[AliasTable] = None
) -> ElectionSignals:
    text = title or ""
    tokens = tokenize(normalize_title(text))
    office = extract_office(text)
    state = extract_state(text)

    m = _YEAR_RE.search(text)
    close = as_utc(close_time)
    year = int(m.group(1)) if m else (close.year if close is not None else None)

    table = people if people is not None else default_registry().people
    return ElectionSignals(
        country=extract_country(text, state),
        office=office,
        year=year,
        state=state,
        candidates=frozenset(find_aliases(text, tokens, table)),
        intent=extract_intent(text, office),
        party=extract_party(text),
        tokens=tokens,
    )


def offices_compatible(a: ElectionOffice, b: ElectionOffice) -> bool:
    if a == b or ElectionOffice.UNKNOWN in (a, b):
        return True
    return {a, b} in _CONTROL_PAIRS


class ElectionsPipeline(BasePipeline):
    topic = CanonicalTopic.ELECTIONS
    algo_version = ALGO_VERSION
    default_limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.03)
    strong_threshold = 0.75

    def __init__(self, people: Optional[AliasTable] = None):
        self._people = people if people is not None else default_registry().people
        self._features: FeatureCache[ElectionSignals] = FeatureCache(self._extract)

    def _extract(self, market: Market) -> ElectionSignals:
        return extract_election_signals(market.title, market.close_time, self._people)

    def signals(self, market: Market) -> ElectionSignals:
        return self._features.get(market)

    def fetch_eligible(self, store: MarketStore, venue: str, lookback_hours: int, limit: int) -> List[Market]:
        markets = self._fetch(store, venue, lookback_hours, limit, title_keywords=ELECTION_KEYWORDS)
        eligible: List[Market] = []
        for market in markets:
            if is_sports_like(market):
                continue
            sig = self.signals(market)
            if sig.office == ElectionOffice.UNKNOWN and not _ELECTION_CUE_RE.search(market.title.lower()):
                continue
            if sig.year is None:
                continue
            eligible.append(market)
        logger.info("elections: %d/%d %s markets eligible", len(eligible), len(markets), venue)
        return eligible

    def build_index(self, markets: Sequence[Market]) -> MarketIndex:
        return build_index(markets, self._index_keys)

    def find_candidates(self, market: Market, index: MarketIndex) -> List[Market]:
        return index.collect(self._index_keys(market), exclude=market)

    def check_hard_gates(self, left: Market, right: Market) -> GateResult:
        ls = self.signals(left)
        rs = self.signals(right)
        if not ls.has_race or not rs.has_race:
            return gate_failed("no office or candidate")
        if ls.country and rs.country and ls.country != rs.country:
            return gate_failed(f"country mismatch: {ls.country} vs {rs.country}")
        if not offices_compatible(ls.office, rs.office):
            return gate_failed(f"office mismatch: {ls.office.value} vs {rs.office.value}")
        if ls.year and rs.year and ls.year != rs.year:
            return gate_failed(f"year mismatch: {ls.year} vs {rs.year}")
        if ls.state and rs.state and ls.state != rs.state:
            return gate_failed(f"state mismatch: {ls.state} vs {rs.state}")
        if ls.candidates and rs.candidates and not ls.candidates & rs.candidates:
            return gate_failed(
                f"no candidate overlap: {','.join(sorted(ls.candidates))} vs {','.join(sorted(rs.candidates))}"
            )
        return PASSED

    def score(self, left: Market, right: Market) -> Optional[ScoreResult]:
        ls = self.signals(left)
        rs = self.signals(right)

        country = _field_score(ls.country, rs.country)
        if ls.office == rs.office and ls.office != ElectionOffice.UNKNOWN:
            office = 1.0
        elif offices_compatible(ls.office, rs.office) and ElectionOffice.UNKNOWN not in (ls.office, rs.office):
            office = 0.7
        else:
            office = 0.5 if offices_compatible(ls.office, rs.office) else 0.0
        year = _field_score(ls.year, rs.year)

        shared = ls.candidates & rs.candidates
        if ls.candidates and rs.candidates:
            candidates = len(shared) / len(ls.candidates | rs.candidates)
        elif ls.candidates or rs.candidates:
            candidates = 0.3
        else:
            candidates = 0.5

        text = jaccard(ls.tokens, rs.tokens)
        raw = (
            WEIGHTS["country"] * country
            + WEIGHTS["office"] * office
            + WEIGHTS["year"] * year
            + WEIGHTS["candidates"] * candidates
            + WEIGHTS["text"] * text
        )
        if ls.state and ls.state == rs.state:
            raw += STATE_MATCH_BONUS
        score = clamp_score(raw)

        strong = office >= 0.7 and year >= 0.5 and bool(shared)
        return ScoreResult(
            score=score,
            tier=Tier.STRONG if strong else Tier.WEAK,
            breakdown={
                "country": country,
                "office": office,
                "year": year,
                "candidates": round(candidates, 4),
                "text": round(text, 4),
                "candidate_overlap": float(len(shared)),
            },
            reason=(
                f"race={_race(ls)}/{_race(rs)} candidates={','.join(sorted(shared)) or '-'} "
                f"intent={ls.intent.value}/{rs.intent.value} text={text:.2f}"
            ),
        )

    def should_auto_confirm(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        """Election pairs are left for review; candidate and resolution wording vary too much between venues."""
        return NO_DECISION

    def should_auto_reject(self, left: Market, right: Market, result: ScoreResult) -> Decision:
        if result.score < 0.50:
            return Decision(apply=True, rule="ELECTIONS_LOW_SCORE", reason=f"score {result.score:.2f} < 0.50")
        ls = self.signals(left)
        rs = self.signals(right)
        if ls.candidates and rs.candidates and not ls.candidates & rs.candidates:
            return Decision(apply=True, rule="NO_CANDIDATE_OVERLAP", reason="different candidates")
        if {ls.intent, rs.intent} in _CONFLICTING_INTENTS:
            return Decision(
                apply=True, rule="INTENT_MISMATCH", reason=f"intent {ls.intent.value} vs {rs.intent.value}"
            )
        if (
            ElectionIntent.PARTY_CONTROL in (ls.intent, rs.intent)
            and ls.party and rs.party and ls.party != rs.party
        ):
            return Decision(apply=True, rule="PARTY_MISMATCH", reason=f"party {ls.party} vs {rs.party}")
        return NO_DECISION

    def _index_keys(self, market: Market) -> List[str]:
        sig = self.signals(market)
        if sig.year is None:
            return []
        keys = [f"race|{sig.country or '-'}|{sig.year}"]
        keys.extend(f"cand|{candidate}|{sig.year}" for candidate in sorted(sig.candidates))
        return keys


def _field_score(a, b) -> float:
    if a is None or b is None:
        return 0.5
    return 1.0 if a == b else 0.0


def _race(sig: ElectionSignals) -> str:
    parts = [sig.country or "-", sig.office.value, str(sig.year or "-")]
    if sig.state:
        parts.append(sig.state)
    return ":".join(parts)


ELECTION_KEYWORDS: Tuple[str, ...] = (
    "election", "elected", "president", "senate", "governor", "mayor", "congress", "house",
    "prime minister", "primary", "nominee", "nomination", "parliament", "vote", "ballot", "turnout",
)

_CONTROL_PAIRS = (
    {ElectionOffice.HOUSE, ElectionOffice.PARTY_CONTROL},
    {ElectionOffice.SENATE, ElectionOffice.PARTY_CONTROL},
)

_CONFLICTING_INTENTS = (
    {ElectionIntent.WINNER, ElectionIntent.TURNOUT},
    {ElectionIntent.MARGIN, ElectionIntent.TURNOUT},
)

_YEAR_RE = re.compile(r"\b(202[4-9]|203\d)\b")
_ELECTION_CUE_RE = re.compile(r"\b(?:elections?|elected|primary|nominee|nomination|ballot|vote|turnout|referendum)\b")
_US_OFFICE_RE = re.compile(
    r"\b(?:president(?:ial|cy)?|congress(?:ional)?|senate|senator|governor|gubernatorial|electoral)\b"
)

# vice president, prime minister and governor before the shorter titles they contain
_OFFICE_PATTERNS: List[Tuple[ElectionOffice, re.Pattern]] = [
    (ElectionOffice.VICE_PRESIDENT, re.compile(r"\bvice[- ]president(?:ial)?\b|\brunning mate\b|\bveep\b")),
    (ElectionOffice.PRIME_MINISTER, re.compile(r"\bprime minister\b|\bpremier\b")),
    (ElectionOffice.GOVERNOR, re.compile(r"\bgovernor(?:ship)?\b|\bgubernatorial\b")),
    (ElectionOffice.MAYOR, re.compile(r"\bmayor(?:al)?\b|\bcity hall\b")),
    (ElectionOffice.SENATE, re.compile(r"\bsenate\b|\bsenator(?:ial)?\b")),
    (ElectionOffice.HOUSE, re.compile(r"(?<!white )\bhouse\b|\bcongress(?:ional)?\b|\brepresentatives\b")),
    (
        ElectionOffice.PRESIDENT,
        re.compile(r"\bpresident(?:ial|cy)?\b|\bpotus\b|\bwhite house\b|\boval office\b"),
    ),
    (ElectionOffice.PARTY_CONTROL, re.compile(r"\bcontrol\b|\bmajority\b|\bflip\b|\btrifecta\b")),
]

# margin, nominee and turnout cues outrank the generic win words
_INTENT_PATTERNS: List[Tuple[ElectionIntent, re.Pattern]] = [
    (
        ElectionIntent.MARGIN,
        re.compile(r"\bmargin\b|\bpopular vote\b|\belectoral votes?\b|\blandslide\b|\bvote share\b|\bby how many\b"),
    ),
    (ElectionIntent.NOMINEE, re.compile(r"\bnominee\b|\bnomination\b|\bprimary\b|\bnominated\b")),
    (ElectionIntent.TURNOUT, re.compile(r"\bturnout\b|\bparticipation\b")),
    (ElectionIntent.PARTY_CONTROL, re.compile(r"\bcontrol\b|\bmajority\b|\bflip\b|\bhold\b|\bkeep\b")),
    (ElectionIntent.WINNER, re.compile(r"\bwins?\b|\bwinner\b|\bwinning\b|\belected\b|\bbecome\b|\bnext\b")),
]

_COUNTRY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("US", re.compile(r"\bunited states\b|\bu\.s\.|\busa?\b|\bamerican?\b|\bwhite house\b")),
    ("UK", re.compile(r"\bunited kingdom\b|\buk\b|\bbritain\b|\bbritish\b|\bwestminster\b|\bdowning street\b")),
    ("FRANCE", re.compile(r"\bfrance\b|\bfrench\b|\belysee\b")),
    ("GERMANY", re.compile(r"\bgermany\b|\bgerman\b|\bbundestag\b")),
    ("CANADA", re.compile(r"\bcanada\b|\bcanadian\b")),
    ("AUSTRALIA", re.compile(r"\baustralian?\b")),
    ("MEXICO", re.compile(r"\bmexican?\b|\bmexico\b")),
    ("BRAZIL", re.compile(r"\bbrazil(?:ian)?\b")),
    ("INDIA", re.compile(r"\bindian?\b|\blok sabha\b")),
    ("JAPAN", re.compile(r"\bjapan(?:ese)?\b")),
    ("SOUTH_KOREA", re.compile(r"\bsouth korea(?:n)?\b")),
    ("PHILIPPINES", re.compile(r"\bphilippines\b|\bfilipino\b")),
]

_PARTY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("REPUBLICAN", re.compile(r"\brepublicans?\b|\bgop\b")),
    ("DEMOCRAT", re.compile(r"\bdemocrats?\b|\bdemocratic\b")),
    ("LABOUR", re.compile(r"\blabour\b")),
    ("CONSERVATIVE", re.compile(r"\bconservatives?\b|\btory\b|\btories\b")),
    ("REFORM", re.compile(r"\breform uk\b")),
]

_STATE_NAMES: Dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR", "california": "CA",
    "colorado": "CO", "connecticut": "CT", "delaware": "DE", "florida": "FL", "georgia": "GA",
    "hawaii": "HI", "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS", "missouri": "MO",
    "montana": "MT", "nebraska": "NE", "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ",
    "new mexico": "NM", "new york": "NY", "north carolina": "NC", "north dakota": "ND", "ohio": "OH",
    "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT", "vermont": "VT",
    "virginia": "VA", "washington": "WA", "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
    "district of columbia": "DC", "washington dc": "DC", "washington d.c.": "DC",
}
_STATE_RE = re.compile(
    r"\b(" + "|".join(re.escape(name) for name in sorted(_STATE_NAMES, key=len, reverse=True)) + r")(?!\w)"
)

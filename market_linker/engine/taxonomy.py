from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from market_linker.models import CanonicalTopic, Classification, ClassificationSource, Venue

logger = logging.getLogger(__name__)

T = CanonicalTopic


@dataclass(frozen=True)
class TopicRule:
    pattern: re.Pattern
    topic: CanonicalTopic
    confidence: float
    description: str


def classify(
    venue: str,
    title: str,
    category: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Classification:
    metadata = metadata or {}
    venue_key = (venue or "").strip().lower()
    result: Optional[Classification] = None
    if venue_key == Venue.KALSHI.value:
        result = _classify_kalshi(title or "", category, metadata)
    elif venue_key == Venue.POLYMARKET.value:
        result = _classify_polymarket(title or "", category, metadata)
    if result is not None and result.topic != T.UNKNOWN:
        return result

    title_result = _first_rule(_FALLBACK_TITLE_RULES, title or "")
    if title_result is not None:
        rule = title_result
        return Classification(
            topic=rule.topic, confidence=rule.confidence, source=ClassificationSource.TITLE, reason=rule.description
        )

    return Classification(
        topic=T.UNKNOWN, confidence=0.0, source=ClassificationSource.FALLBACK, reason="No classification rule matched"
    )


def is_compatible(a: Classification | CanonicalTopic, b: Classification | CanonicalTopic) -> bool:
    topic_a = a.topic if isinstance(a, Classification) else CanonicalTopic(a)
    topic_b = b.topic if isinstance(b, Classification) else CanonicalTopic(b)
    if T.UNKNOWN in (topic_a, topic_b):
        return False
    if {topic_a, topic_b} == {T.CRYPTO_DAILY, T.CRYPTO_INTRADAY}:
        return False
    return topic_a == topic_b


def classify_kalshi_ticker(ticker: str) -> Optional[Classification]:
    rule = _first_rule(KALSHI_TICKER_RULES, ticker or "")
    if rule is None:
        return None
    return Classification(
        topic=rule.topic, confidence=rule.confidence, source=ClassificationSource.TICKER, reason=rule.description
    )


def series_ticker_from_event(event_ticker: str) -> str:
    if not event_ticker:
        return ""
    m = _EVENT_TICKER_RE.match(event_ticker)
    if m:
        return m.group(1)
    return event_ticker.split("-", 1)[0]


def market_tags(metadata: Mapping[str, Any]) -> List[str]:
    tags = metadata.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    out: List[str] = []
    for tag in tags:
        if isinstance(tag, str) and tag.strip():
            out.append(tag.strip())
        elif isinstance(tag, dict):
            label = str(tag.get("label") or tag.get("slug") or "").strip()
            if label:
                out.append(label)
    return out


def _classify_kalshi(title: str, category: Optional[str], metadata: Mapping[str, Any]) -> Optional[Classification]:
    tickers = _kalshi_tickers(metadata, category)
    for ticker in tickers:
        hit = classify_kalshi_ticker(ticker)
        if hit is not None and hit.confidence >= 0.85:
            return hit

    tags = market_tags(metadata)
    lowered_tags = [t.lower() for t in tags]
    if any(tag in COMMODITY_TAGS for tag in lowered_tags):
        return Classification(
            topic=T.COMMODITIES,
            confidence=0.90,
            source=ClassificationSource.TAG,
            reason="COMMODITIES: tags contain commodity keywords",
        )
    for tag, lowered in zip(tags, lowered_tags):
        topic = KALSHI_TAG_MAP.get(lowered)
        if topic is not None and topic != T.UNKNOWN:
            return Classification(topic=topic, confidence=0.85, source=ClassificationSource.TAG, reason=f"Tag: {tag}")

    series_category = str(metadata.get("category") or category or "").strip()
    topic = KALSHI_CATEGORY_MAP.get(series_category.lower()) if series_category else None
    if topic is not None and topic != T.UNKNOWN:
        if topic == T.MACRO:
            if _RATE_KEYWORDS_RE.search(title):
                return Classification(
                    topic=T.RATES,
                    confidence=0.90,
                    source=ClassificationSource.TITLE,
                    reason=f"RATES override: title contains rate keywords (category was {series_category})",
                )
            if _RATE_TAG_RE.search(" ".join(lowered_tags)):
                return Classification(
                    topic=T.RATES,
                    confidence=0.90,
                    source=ClassificationSource.TAG,
                    reason=f"RATES override: tags contain rate keywords (category was {series_category})",
                )
        return Classification(
            topic=topic, confidence=0.80, source=ClassificationSource.CATEGORY, reason=f"Category: {series_category}"
        )

    for ticker in tickers:
        hit = classify_kalshi_ticker(ticker)
        if hit is not None:
            return Classification(
                topic=hit.topic,
                confidence=round(hit.confidence * 0.9, 4),
                source=ClassificationSource.TICKER,
                reason=f"Ticker fallback: {hit.reason}",
            )
    return None


def _kalshi_tickers(metadata: Mapping[str, Any], category: Optional[str]) -> List[str]:
    tickers: List[str] = []
    series = str(metadata.get("seriesTicker") or metadata.get("series_ticker") or "").strip()
    if series:
        tickers.append(series)
    event = str(metadata.get("eventTicker") or metadata.get("event_ticker") or "").strip()
    if event:
        tickers.append(series_ticker_from_event(event))
        tickers.append(event)
    ticker = str(metadata.get("ticker") or "").strip()
    if ticker:
        tickers.append(series_ticker_from_event(ticker))
    if category and category.strip().upper().startswith("KX"):
        tickers.append(series_ticker_from_event(category.strip()))
    seen: set[str] = set()
    return [t for t in tickers if t and not (t in seen or seen.add(t))]


def _classify_polymarket(title: str, category: Optional[str], metadata: Mapping[str, Any]) -> Optional[Classification]:
    category = category or metadata.get("category")
    if category:
        hit = _polymarket_category(str(category))
        if hit is not None and hit.confidence >= 0.80:
            return hit

    group = metadata.get("groupItemTitle")
    if isinstance(group, str) and group.strip():
        hit = _polymarket_category(group)
        if hit is not None:
            return Classification(
                topic=hit.topic,
                confidence=round(hit.confidence * 0.9, 4),
                source=ClassificationSource.CATEGORY,
                reason=f"Group: {group}",
            )

    rule = _first_rule(POLYMARKET_TITLE_RULES, title)
    if rule is not None:
        return Classification(
            topic=rule.topic, confidence=rule.confidence, source=ClassificationSource.TITLE, reason=rule.description
        )

    for tag in market_tags(metadata):
        topic = POLYMARKET_CATEGORY_MAP.get(tag.lower())
        if topic is not None:
            return Classification(topic=topic, confidence=0.70, source=ClassificationSource.TAG, reason=f"Tag: {tag}")
    return None


def _polymarket_category(category: str) -> Optional[Classification]:
    base = category.lower().strip()
    variants = [base]
    if "-" in base:
        variants.append(base.replace("-", " "))
    if " " in base:
        variants.append(re.sub(r"\s+", "-", base))
    for variant in variants:
        topic = POLYMARKET_CATEGORY_MAP.get(variant)
        if topic is not None:
            return Classification(
                topic=topic, confidence=0.85, source=ClassificationSource.CATEGORY, reason=f"Category: {category}"
            )

    for word in base.replace("-", " ").split():
        topic = POLYMARKET_CATEGORY_MAP.get(word)
        if topic is not None and topic != T.UNKNOWN:
            return Classification(
                topic=topic,
                confidence=0.70,
                source=ClassificationSource.CATEGORY,
                reason=f"Category word: {word} (from {category})",
            )
    return None


def _first_rule(rules: Iterable[TopicRule], text: str) -> Optional[TopicRule]:
    for rule in rules:
        if rule.pattern.search(text):
            return rule
    return None


def _rules(entries: Iterable[Tuple[str, CanonicalTopic, float, str]]) -> List[TopicRule]:
    return [TopicRule(re.compile(p, re.IGNORECASE), topic, conf, desc) for p, topic, conf, desc in entries]


def _expand(mapping: Dict[str, CanonicalTopic]) -> Dict[str, CanonicalTopic]:
    out = dict(mapping)
    for key, topic in mapping.items():
        if " " in key:
            out.setdefault(key.replace(" ", "-"), topic)
    return out


_EVENT_TICKER_RE = re.compile(r"^([A-Z0-9]+?)(?:-[0-9]{2}[A-Z]{3}|-[SE][0-9]{4}|-[A-Z0-9]+$)", re.IGNORECASE)

_RATE_KEYWORDS_RE = re.compile(
    r"\b(fed(?:eral)?\s+reserve|fomc|rate\s+cut|rate\s+hike|interest\s+rate|basis\s+points?|bps|fed\s+funds?)\b",
    re.IGNORECASE,
)
_RATE_TAG_RE = re.compile(r"\b(fed|fomc|interest|rate|central bank)\b")

# Exact lowercase tag matches only. "energy" and "gas" are too broad.
COMMODITY_TAGS = frozenset(
    {
        "oil", "crude", "crude oil", "wti", "brent", "oil and energy",
        "gold", "silver", "platinum", "palladium", "metals", "precious metals",
        "natural gas", "commodities", "commodity",
        "agriculture", "wheat", "corn", "soybeans", "coffee", "sugar",
        "copper", "aluminum", "iron",
    }
)

_CRYPTO = r"(BTC|ETH|SOL|DOGE|XRP)"
_INTRADAY = r"(?!UPDOWN|15MIN|1HR|30MIN)"

KALSHI_TICKER_RULES: List[TopicRule] = _rules(
    [
        (rf"^KXBTC{_INTRADAY}", T.CRYPTO_DAILY, 0.95, "Bitcoin daily price"),
        (rf"^KXETH{_INTRADAY}", T.CRYPTO_DAILY, 0.95, "Ethereum daily price"),
        (rf"^KXSOL{_INTRADAY}", T.CRYPTO_DAILY, 0.95, "Solana daily price"),
        (rf"^KXDOGE{_INTRADAY}", T.CRYPTO_DAILY, 0.95, "Dogecoin daily price"),
        (rf"^KXXRP{_INTRADAY}", T.CRYPTO_DAILY, 0.95, "XRP daily price"),
        (rf"^KX{_CRYPTO}.*UPDOWN", T.CRYPTO_INTRADAY, 0.98, "Crypto up/down intraday"),
        (rf"^KX{_CRYPTO}.*15MIN", T.CRYPTO_INTRADAY, 0.98, "Crypto 15-minute"),
        (rf"^KX{_CRYPTO}.*30MIN", T.CRYPTO_INTRADAY, 0.98, "Crypto 30-minute"),
        (rf"^KX{_CRYPTO}.*1HR", T.CRYPTO_INTRADAY, 0.98, "Crypto 1-hour"),
        (rf"^KX{_CRYPTO}.*INTRADAY", T.CRYPTO_INTRADAY, 0.98, "Crypto intraday"),
        (r"^KXCRYPTO.*INTRADAY", T.CRYPTO_INTRADAY, 0.98, "Crypto intraday generic"),
        (r"^KXCPI", T.MACRO, 0.98, "CPI inflation"),
        (r"^KXGDP", T.MACRO, 0.98, "GDP growth"),
        (r"^KXNFP", T.MACRO, 0.98, "Non-farm payrolls"),
        (r"^KXPCE", T.MACRO, 0.98, "PCE inflation"),
        (r"^KXPMI", T.MACRO, 0.98, "PMI data"),
        (r"^KXJOBLESS", T.MACRO, 0.98, "Jobless claims"),
        (r"^KXUNEMP", T.MACRO, 0.98, "Unemployment rate"),
        (r"^KXFEDFUNDS", T.RATES, 0.98, "Fed funds rate"),
        (r"^FOMC", T.RATES, 0.98, "FOMC decision"),
        (r"^KXFED", T.RATES, 0.95, "Fed related"),
        (r"FED.*RATE", T.RATES, 0.90, "Fed rate"),
        (r"RATE.*CUT", T.RATES, 0.85, "Rate cut"),
        (r"RATE.*HIKE", T.RATES, 0.85, "Rate hike"),
        (r"^PRES", T.ELECTIONS, 0.95, "Presidential"),
        (r"^KXPRES", T.ELECTIONS, 0.95, "Presidential (KX)"),
        (r"^SENATE", T.ELECTIONS, 0.95, "Senate"),
        (r"^HOUSE", T.ELECTIONS, 0.90, "House"),
        (r"^GOV", T.ELECTIONS, 0.90, "Governor"),
        (r"ELECTION", T.ELECTIONS, 0.85, "Election"),
        (r"^KXTRUMP", T.ELECTIONS, 0.90, "Trump related"),
        (r"^KXBIDEN", T.ELECTIONS, 0.90, "Biden related"),
        (r"^KXPOLITICS", T.ELECTIONS, 0.90, "Politics"),
        (r"^KXCONGRESS", T.ELECTIONS, 0.90, "Congress"),
        (r"^KXPOLICY", T.ELECTIONS, 0.85, "Policy"),
        (r"^KXOIL", T.COMMODITIES, 0.95, "Oil price"),
        (r"^OIL", T.COMMODITIES, 0.95, "Oil price (legacy)"),
        (r"^KXCRUDE", T.COMMODITIES, 0.95, "Crude oil"),
        (r"^KXWTI", T.COMMODITIES, 0.95, "WTI oil"),
        (r"^WTI", T.COMMODITIES, 0.95, "WTI oil (legacy)"),
        (r"^KXBRENT", T.COMMODITIES, 0.95, "Brent oil"),
        # KXNGAS only: KXGAS* also covers Georgia election series.
        (r"^KXNGAS", T.COMMODITIES, 0.95, "Natural gas"),
        (r"^KXAAAGASM?", T.COMMODITIES, 0.95, "AAA gas price"),
        (r"^AAAGASM?", T.COMMODITIES, 0.95, "AAA gas price (legacy)"),
        (r"^KXSPR", T.COMMODITIES, 0.95, "SPR petroleum"),
        (r"^SPR", T.COMMODITIES, 0.95, "SPR petroleum (legacy)"),
        (r"^KXGOLD(?!CARD|EN)", T.COMMODITIES, 0.95, "Gold price"),
        (r"^KXSILVER(?!STATE|APPROVE)", T.COMMODITIES, 0.95, "Silver price"),
        (r"^KXCOPPER", T.COMMODITIES, 0.95, "Copper"),
        (r"^KXENERGY", T.COMMODITIES, 0.90, "Energy"),
        (r"^KXHUR", T.CLIMATE, 0.95, "Hurricane"),
        (r"^HUR", T.CLIMATE, 0.95, "Hurricane (legacy)"),
        (r"^KXHIGH", T.CLIMATE, 0.90, "High temperature"),
        (r"^KXLOW", T.CLIMATE, 0.90, "Low temperature"),
        (r"^KXSNOW", T.CLIMATE, 0.95, "Snowfall"),
        (r"^KXHEAT", T.CLIMATE, 0.95, "Heat"),
        (r"^KXRAIN", T.CLIMATE, 0.95, "Rainfall"),
        (r"^KXFLOOD", T.CLIMATE, 0.95, "Flood"),
        (r"^KXWILDFIRE", T.CLIMATE, 0.95, "Wildfire"),
        (r"^KXTORNADO", T.CLIMATE, 0.95, "Tornado"),
        (r"^KXEVSHARE", T.CLIMATE, 0.90, "EV market share"),
        (r"^EVSHARE", T.CLIMATE, 0.90, "EV market share (legacy)"),
        (r"^EVMKT", T.CLIMATE, 0.90, "EV market"),
        (r"^KXMVESPORT", T.SPORTS, 0.98, "Esports"),
        (r"^KXMVENBASI", T.SPORTS, 0.98, "Basketball"),
        (r"^KXNCAAMBGA", T.SPORTS, 0.98, "NCAA"),
        (r"^KXTABLETEN", T.SPORTS, 0.98, "Table tennis"),
        (r"^KXNBA", T.SPORTS, 0.98, "NBA"),
        (r"^KXNFL", T.SPORTS, 0.98, "NFL"),
        (r"^KXMLB", T.SPORTS, 0.98, "MLB"),
        (r"^KXNHL", T.SPORTS, 0.98, "NHL"),
    ]
)

KALSHI_CATEGORY_MAP: Dict[str, CanonicalTopic] = {
    "crypto": T.CRYPTO_DAILY,
    "cryptocurrency": T.CRYPTO_DAILY,
    "economics": T.MACRO,
    "economy": T.MACRO,
    "financial": T.RATES,
    "financials": T.RATES,
    "politics": T.ELECTIONS,
    "elections": T.ELECTIONS,
    "sports": T.SPORTS,
    "entertainment": T.ENTERTAINMENT,
    "climate": T.CLIMATE,
    "weather": T.CLIMATE,
    "climate and weather": T.CLIMATE,
    "tech": T.UNKNOWN,
    "technology": T.UNKNOWN,
    "world": T.GEOPOLITICS,
    "geopolitics": T.GEOPOLITICS,
}

KALSHI_TAG_MAP: Dict[str, CanonicalTopic] = {
    "bitcoin": T.CRYPTO_DAILY,
    "ethereum": T.CRYPTO_DAILY,
    "solana": T.CRYPTO_DAILY,
    "crypto": T.CRYPTO_DAILY,
    "cpi": T.MACRO,
    "gdp": T.MACRO,
    "inflation": T.MACRO,
    "jobs": T.MACRO,
    "employment": T.MACRO,
    "nfp": T.MACRO,
    "pce": T.MACRO,
    "pmi": T.MACRO,
    "unemployment": T.MACRO,
    "fed": T.RATES,
    "fomc": T.RATES,
    "interest rates": T.RATES,
    "federal reserve": T.RATES,
    "election": T.ELECTIONS,
    "president": T.ELECTIONS,
    "presidential": T.ELECTIONS,
    "congress": T.ELECTIONS,
    "senate": T.ELECTIONS,
    "governor": T.ELECTIONS,
    "nba": T.SPORTS,
    "nfl": T.SPORTS,
    "mlb": T.SPORTS,
    "nhl": T.SPORTS,
    "ncaa": T.SPORTS,
    "soccer": T.SPORTS,
    "olympics": T.SPORTS,
    "ufc": T.SPORTS,
    "mma": T.SPORTS,
    "tennis": T.SPORTS,
    "golf": T.SPORTS,
    "f1": T.SPORTS,
    "formula 1": T.SPORTS,
    "movies": T.ENTERTAINMENT,
    "tv": T.ENTERTAINMENT,
    "oscars": T.ENTERTAINMENT,
    "grammys": T.ENTERTAINMENT,
    "emmys": T.ENTERTAINMENT,
    "awards": T.ENTERTAINMENT,
    "hurricane": T.CLIMATE,
    "hurricanes": T.CLIMATE,
    "temperature": T.CLIMATE,
    "daily temperature": T.CLIMATE,
    "weather": T.CLIMATE,
    "snow": T.CLIMATE,
    "snow and rain": T.CLIMATE,
    "rainfall": T.CLIMATE,
    "natural disasters": T.CLIMATE,
    "storm": T.CLIMATE,
    "tornado": T.CLIMATE,
    "flood": T.CLIMATE,
    "drought": T.CLIMATE,
    "wildfire": T.CLIMATE,
    "heat": T.CLIMATE,
    "cold": T.CLIMATE,
    "ev": T.CLIMATE,
    "electric vehicles": T.CLIMATE,
    "electric vehicle": T.CLIMATE,
}

POLYMARKET_CATEGORY_MAP: Dict[str, CanonicalTopic] = _expand(
    {
        "us current affairs": T.ELECTIONS,
        "world current affairs": T.GEOPOLITICS,
        "pop culture": T.ENTERTAINMENT,
        "science tech": T.UNKNOWN,
        "business": T.MACRO,
        "crypto": T.CRYPTO_DAILY,
        "cryptocurrency": T.CRYPTO_DAILY,
        "bitcoin": T.CRYPTO_DAILY,
        "ethereum": T.CRYPTO_DAILY,
        "btc": T.CRYPTO_DAILY,
        "eth": T.CRYPTO_DAILY,
        "defi": T.CRYPTO_DAILY,
        "web3": T.CRYPTO_DAILY,
        "solana": T.CRYPTO_DAILY,
        "sol": T.CRYPTO_DAILY,
        "doge": T.CRYPTO_DAILY,
        "dogecoin": T.CRYPTO_DAILY,
        "xrp": T.CRYPTO_DAILY,
        "ripple": T.CRYPTO_DAILY,
        "economics": T.MACRO,
        "economy": T.MACRO,
        "inflation": T.MACRO,
        "cpi": T.MACRO,
        "gdp": T.MACRO,
        "jobs": T.MACRO,
        "employment": T.MACRO,
        "unemployment": T.MACRO,
        "labor": T.MACRO,
        "nfp": T.MACRO,
        "payrolls": T.MACRO,
        "recession": T.MACRO,
        "fed": T.RATES,
        "fomc": T.RATES,
        "federal reserve": T.RATES,
        "interest rate": T.RATES,
        "interest rates": T.RATES,
        "central bank": T.RATES,
        "ecb": T.RATES,
        "bank of england": T.RATES,
        "rate cut": T.RATES,
        "rate hike": T.RATES,
        "politics": T.ELECTIONS,
        "election": T.ELECTIONS,
        "elections": T.ELECTIONS,
        "political": T.ELECTIONS,
        "president": T.ELECTIONS,
        "presidential": T.ELECTIONS,
        "senate": T.ELECTIONS,
        "congress": T.ELECTIONS,
        "house": T.ELECTIONS,
        "governor": T.ELECTIONS,
        "2024 election": T.ELECTIONS,
        "2025 election": T.ELECTIONS,
        "2026 election": T.ELECTIONS,
        "2028 election": T.ELECTIONS,
        "trump": T.ELECTIONS,
        "biden": T.ELECTIONS,
        "harris": T.ELECTIONS,
        "midterms": T.ELECTIONS,
        "primary": T.ELECTIONS,
        "primaries": T.ELECTIONS,
        "democratic": T.ELECTIONS,
        "republican": T.ELECTIONS,
        "gop": T.ELECTIONS,
        "geopolitics": T.GEOPOLITICS,
        "international": T.GEOPOLITICS,
        "war": T.GEOPOLITICS,
        "conflict": T.GEOPOLITICS,
        "ukraine": T.GEOPOLITICS,
        "russia": T.GEOPOLITICS,
        "china": T.GEOPOLITICS,
        "israel": T.GEOPOLITICS,
        "gaza": T.GEOPOLITICS,
        "middle east": T.GEOPOLITICS,
        "nato": T.GEOPOLITICS,
        "sanctions": T.GEOPOLITICS,
        "sports": T.SPORTS,
        "esports": T.SPORTS,
        "e-sports": T.SPORTS,
        "nba": T.SPORTS,
        "nfl": T.SPORTS,
        "mlb": T.SPORTS,
        "nhl": T.SPORTS,
        "soccer": T.SPORTS,
        "football": T.SPORTS,
        "basketball": T.SPORTS,
        "baseball": T.SPORTS,
        "hockey": T.SPORTS,
        "tennis": T.SPORTS,
        "golf": T.SPORTS,
        "boxing": T.SPORTS,
        "mma": T.SPORTS,
        "ufc": T.SPORTS,
        "olympics": T.SPORTS,
        "super bowl": T.SPORTS,
        "world cup": T.SPORTS,
        "march madness": T.SPORTS,
        "ncaa": T.SPORTS,
        "f1": T.SPORTS,
        "formula 1": T.SPORTS,
        "entertainment": T.ENTERTAINMENT,
        "awards": T.ENTERTAINMENT,
        "oscars": T.ENTERTAINMENT,
        "grammys": T.ENTERTAINMENT,
        "emmys": T.ENTERTAINMENT,
        "golden globes": T.ENTERTAINMENT,
        "tv": T.ENTERTAINMENT,
        "movies": T.ENTERTAINMENT,
        "music": T.ENTERTAINMENT,
        "celebrity": T.ENTERTAINMENT,
        "celebrities": T.ENTERTAINMENT,
        "climate": T.CLIMATE,
        "weather": T.CLIMATE,
        "hurricane": T.CLIMATE,
        "temperature": T.CLIMATE,
        "global warming": T.CLIMATE,
        "commodities": T.COMMODITIES,
        "oil": T.COMMODITIES,
        "gold": T.COMMODITIES,
    }
)

POLYMARKET_TITLE_RULES: List[TopicRule] = _rules(
    [
        (r"\$(?:BTC|ETH|SOL|DOGE|XRP)\b", T.CRYPTO_DAILY, 0.95, "Crypto ticker symbol"),
        (r"\bbitcoin\b", T.CRYPTO_DAILY, 0.90, "Bitcoin in title"),
        (r"\bbtc\b", T.CRYPTO_DAILY, 0.85, "BTC in title"),
        (r"\bethereum\b", T.CRYPTO_DAILY, 0.90, "Ethereum in title"),
        (r"\beth\b(?!nic|ics|er)", T.CRYPTO_DAILY, 0.80, "ETH in title"),
        (r"\bsolana\b", T.CRYPTO_DAILY, 0.90, "Solana in title"),
        (r"\bcpi\b", T.MACRO, 0.95, "CPI in title"),
        (r"\binflation\b", T.MACRO, 0.90, "Inflation in title"),
        (r"\bgdp\b", T.MACRO, 0.95, "GDP in title"),
        (r"\bnon-?farm payrolls?\b", T.MACRO, 0.95, "NFP in title"),
        (r"\bnfp\b", T.MACRO, 0.95, "NFP abbreviation"),
        (r"\bunemployment rate\b", T.MACRO, 0.95, "Unemployment rate"),
        (r"\bjobless claims\b", T.MACRO, 0.95, "Jobless claims"),
        (r"\bpce\b", T.MACRO, 0.95, "PCE in title"),
        (r"\bpmi\b", T.MACRO, 0.90, "PMI in title"),
        (r"\bfed(?:eral reserve)?\b.*\brate", T.RATES, 0.95, "Fed rate"),
        (r"\bfomc\b", T.RATES, 0.95, "FOMC in title"),
        (r"\bfed funds?\b", T.RATES, 0.95, "Fed funds"),
        (r"\binterest rate\b", T.RATES, 0.85, "Interest rate"),
        (r"\brate (?:cut|hike|hold)\b", T.RATES, 0.85, "Rate action"),
        (r"\bcentral bank\b", T.RATES, 0.85, "Central bank"),
        (r"\becb\b", T.RATES, 0.90, "ECB in title"),
        (r"\bbank of england\b", T.RATES, 0.90, "BoE in title"),
        (r"\bbasis points?\b", T.RATES, 0.80, "Basis points"),
        (r"\b\d+\s*bps?\b", T.RATES, 0.75, "BPS value"),
        (r"\bwin\s+(?:the\s+)?(?:\d{4}\s+)?(?:presidential\s+)?election\b", T.ELECTIONS, 0.90, "Win election"),
        (r"\bpresident(?:ial)?\b", T.ELECTIONS, 0.85, "Presidential"),
        (r"\belection\b", T.ELECTIONS, 0.80, "Election"),
        (r"\bsenate\b", T.ELECTIONS, 0.85, "Senate"),
        (r"\bcongress(?:man|woman|ional)?\b", T.ELECTIONS, 0.80, "Congress"),
        (r"\bgovernor\b", T.ELECTIONS, 0.85, "Governor"),
        (r"\btrump\b", T.ELECTIONS, 0.75, "Trump"),
        (r"\bbiden\b", T.ELECTIONS, 0.75, "Biden"),
        (r"\bharris\b", T.ELECTIONS, 0.75, "Harris"),
    ]
)

_FALLBACK_TITLE_RULES: List[TopicRule] = _rules(
    [
        (r"\bbitcoin\b|\$btc\b", T.CRYPTO_DAILY, 0.85, "Bitcoin"),
        (r"\bethereum\b|\$eth\b", T.CRYPTO_DAILY, 0.85, "Ethereum"),
        (r"\bcrypto(?:currency)?\b", T.CRYPTO_DAILY, 0.70, "Crypto keyword"),
        (r"\b(?:cpi|inflation|gdp|nfp|pce|pmi)\b", T.MACRO, 0.85, "Macro indicator"),
        (r"\bunemployment\b", T.MACRO, 0.80, "Unemployment"),
        (r"\b(?:fomc|fed(?:eral reserve)?|interest rate)\b", T.RATES, 0.80, "Rates keyword"),
        (r"\brate (?:cut|hike|decision)\b", T.RATES, 0.75, "Rate action"),
        (r"\b(?:election|president(?:ial)?|senate|congress)\b", T.ELECTIONS, 0.75, "Election keyword"),
    ]
)

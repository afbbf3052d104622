from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from market_linker.connectors.kalshi_series import KalshiSeriesLookup
from market_linker.engine.taxonomy import classify
from market_linker.models import Classification, Market

logger = logging.getLogger(__name__)


class ClassifiableStore(Protocol):
    def list_eligible_markets(self, venue: str, lookback_hours: int, limit: int) -> List[Market]: ...

    def set_derived_topic(self, venue: str, market_id: str, classification: Classification) -> None: ...


def classify_markets(
    store: ClassifiableStore,
    venue: str,
    lookback_hours: int,
    limit: int,
    series_lookup: Optional[KalshiSeriesLookup] = None,
) -> Dict[str, int]:
    """Classify stored markets and persist the derived topic on each one."""
    counts: Dict[str, int] = {}
    markets = store.list_eligible_markets(venue, lookback_hours=lookback_hours, limit=limit)
    for market in markets:
        metadata = market.metadata
        if series_lookup is not None:
            try:
                metadata = series_lookup.enrich_metadata(market)
            except Exception as exc:
                logger.warning("Series lookup failed for %s: %s", market.key, exc)
        result = classify(market.venue, market.title, market.category, metadata)
        store.set_derived_topic(market.venue, market.market_id, result)
        counts[result.topic.value] = counts.get(result.topic.value, 0) + 1

    logger.info("Classified %d %s markets", len(markets), venue, extra={"venue": venue, "topics": counts})
    return counts

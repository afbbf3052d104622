from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from market_linker.clients.http_client import HttpClient, NotFoundError
from market_linker.engine.taxonomy import market_tags, series_ticker_from_event
from market_linker.models import Market, Venue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesInfo:
    ticker: str
    title: str = ""
    category: str = ""
    tags: List[str] = field(default_factory=list)


class KalshiSeriesLookup:
    """Series metadata for Kalshi tickers, cached per series for the process lifetime."""

    def __init__(self, http: HttpClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self._cache: Dict[str, Optional[SeriesInfo]] = {}
        self._lock = threading.Lock()

    def get(self, series_ticker: str) -> Optional[SeriesInfo]:
        ticker = (series_ticker or "").strip().upper()
        if not ticker:
            return None
        with self._lock:
            if ticker in self._cache:
                return self._cache[ticker]

        info = self._fetch(ticker)
        with self._lock:
            self._cache[ticker] = info
        return info

    def enrich_metadata(self, market: Market) -> Dict[str, Any]:
        metadata = dict(market.metadata or {})
        if market.venue != Venue.KALSHI.value:
            return metadata
        series = _series_ticker(metadata)
        if not series:
            return metadata
        info = self.get(series)
        if info is None:
            return metadata

        metadata.setdefault("seriesTicker", info.ticker)
        if info.category and not metadata.get("category"):
            metadata["category"] = info.category
        if info.tags:
            merged = market_tags(metadata)
            for tag in info.tags:
                if tag not in merged:
                    merged.append(tag)
            metadata["tags"] = merged
        return metadata

    def _fetch(self, ticker: str) -> Optional[SeriesInfo]:
        url = f"{self.base_url}/series/{ticker}"
        try:
            payload = self.http.get_json(url)
        except NotFoundError:
            logger.debug("Series %s not found", ticker)
            return None

        series = payload.get("series") if isinstance(payload, dict) else None
        if not isinstance(series, dict) or not series:
            return None
        tags = series.get("tags") or []
        return SeriesInfo(
            ticker=str(series.get("ticker") or ticker),
            title=str(series.get("title") or ""),
            category=str(series.get("category") or ""),
            tags=[str(t).strip() for t in tags if isinstance(t, str) and t.strip()],
        )


def _series_ticker(metadata: Dict[str, Any]) -> str:
    series = str(metadata.get("seriesTicker") or metadata.get("series_ticker") or "").strip()
    if series:
        return series
    event = str(metadata.get("eventTicker") or metadata.get("event_ticker") or metadata.get("ticker") or "").strip()
    return series_ticker_from_event(event)

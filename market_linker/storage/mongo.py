from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, UpdateOne
from pymongo.collection import Collection

from market_linker.models import Classification, LinkStatus, LinkWriteRequest, Market

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("active", "open", "initialized")


class MongoStore:
    def __init__(self, uri: str, db_name: str):
        # Ensure datetimes read from Mongo are timezone-aware (UTC).
        self.client = MongoClient(uri, tz_aware=True)
        self.db = self.client[db_name]
        self.markets_col: Collection = self.db["markets"]
        self.links_col: Collection = self.db["market_links"]
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        self.markets_col.create_index(
            [("venue", ASCENDING), ("market_id", ASCENDING)],
            unique=True,
            name="markets_venue_market_unique",
        )
        self.markets_col.create_index([("venue", ASCENDING), ("status", ASCENDING), ("close_time", ASCENDING)])
        self.markets_col.create_index([("venue", ASCENDING), ("derived_topic", ASCENDING)])

        self.links_col.create_index(
            [
                ("left_venue", ASCENDING),
                ("left_market_id", ASCENDING),
                ("right_venue", ASCENDING),
                ("right_market_id", ASCENDING),
                ("topic", ASCENDING),
            ],
            unique=True,
            name="market_links_pair_topic_unique",
        )
        self.links_col.create_index([("status", ASCENDING), ("score", DESCENDING)])

    def upsert_markets(self, markets: Iterable[Market]) -> int:
        now = datetime.now(timezone.utc)
        operations = []
        for market in markets:
            doc = market.model_dump()
            doc["updated_at"] = now
            operations.append(
                UpdateOne(
                    {"venue": market.venue, "market_id": market.market_id},
                    {"$set": doc, "$setOnInsert": {"created_at": now}},
                    upsert=True,
                )
            )
        if not operations:
            return 0
        self.markets_col.bulk_write(operations, ordered=False)
        return len(operations)

    def list_eligible_markets(
        self,
        venue: str,
        lookback_hours: int,
        limit: int,
        title_keywords: Optional[Sequence[str]] = None,
        derived_topic: Optional[str] = None,
    ) -> List[Market]:
        cutoff = datetime.now(timezone.utc) - timedelta(hours=lookback_hours)
        query: Dict[str, Any] = {
            "venue": venue,
            "status": {"$in": list(OPEN_STATUSES)},
            "$or": [{"close_time": None}, {"close_time": {"$gte": cutoff}}],
        }
        if title_keywords:
            pattern = "|".join(re.escape(kw) for kw in title_keywords if kw)
            if pattern:
                query["title"] = {"$regex": pattern, "$options": "i"}
        if derived_topic:
            query["derived_topic"] = derived_topic

        cursor = self.markets_col.find(query).sort("close_time", ASCENDING).limit(int(limit))
        markets: List[Market] = []
        for doc in cursor:
            market = _to_market(doc)
            if market is not None:
                markets.append(market)
        return markets

    def get_market(self, venue: str, market_id: str) -> Optional[Market]:
        doc = self.markets_col.find_one({"venue": venue, "market_id": market_id})
        return _to_market(doc) if doc else None

    def set_derived_topic(self, venue: str, market_id: str, classification: Classification) -> None:
        self.markets_col.update_one(
            {"venue": venue, "market_id": market_id},
            {
                "$set": {
                    "derived_topic": classification.topic.value,
                    "derived_topic_confidence": classification.confidence,
                    "derived_topic_source": classification.source.value,
                    "derived_topic_at": datetime.now(timezone.utc),
                }
            },
        )

    def upsert_link(self, request: LinkWriteRequest) -> str:
        """Write a link keyed by venue pair, market pair and topic.

        A confirmed link is never downgraded by a later run; the call is
        reported as "skipped" instead.
        """
        key = {
            "left_venue": request.left_venue,
            "left_market_id": request.left_market_id,
            "right_venue": request.right_venue,
            "right_market_id": request.right_market_id,
            "topic": request.topic,
        }
        existing = self.links_col.find_one(key, {"status": 1})
        if (
            existing
            and existing.get("status") == LinkStatus.CONFIRMED.value
            and request.status != LinkStatus.CONFIRMED
        ):
            return "skipped"

        now = datetime.now(timezone.utc)
        result = self.links_col.update_one(
            key,
            {
                "$set": {
                    "status": request.status.value,
                    "score": float(request.score),
                    "reason": request.reason,
                    "algo_version": request.algo_version,
                    "updated_at": now,
                },
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
        )
        return "created" if result.upserted_id is not None else "updated"

    def list_links(
        self,
        status: LinkStatus = LinkStatus.SUGGESTED,
        topic: Optional[str] = None,
        min_score: float = 0.0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"status": status.value, "score": {"$gte": float(min_score)}}
        if topic:
            query["topic"] = topic
        cursor = self.links_col.find(query).sort("score", DESCENDING).limit(int(limit))
        links: List[Dict[str, Any]] = []
        for doc in cursor:
            doc["id"] = str(doc.pop("_id", ""))
            links.append(doc)
        return links

    def update_link_status(self, link_id: str, status: LinkStatus, reason: str) -> bool:
        try:
            oid = ObjectId(link_id)
        except (InvalidId, TypeError):
            logger.warning("Invalid link id: %s", link_id)
            return False
        result = self.links_col.update_one(
            {"_id": oid},
            {"$set": {"status": status.value, "reason": reason, "updated_at": datetime.now(timezone.utc)}},
        )
        return result.matched_count > 0


def _to_market(doc: Dict[str, Any]) -> Optional[Market]:
    doc = dict(doc)
    doc.pop("_id", None)
    for name in ("close_time", "open_time"):
        doc[name] = _as_utc(doc.get(name))
    if not isinstance(doc.get("metadata"), dict):
        doc["metadata"] = {}
    try:
        return Market(
            venue=str(doc.get("venue") or ""),
            market_id=str(doc.get("market_id") or ""),
            title=str(doc.get("title") or ""),
            category=doc.get("category"),
            close_time=doc.get("close_time"),
            open_time=doc.get("open_time"),
            status=str(doc.get("status") or "active"),
            metadata=doc["metadata"],
            derived_topic=doc.get("derived_topic"),
        )
    except ValueError as exc:
        logger.warning("Skipping malformed market %s:%s: %s", doc.get("venue"), doc.get("market_id"), exc)
        return None


def _as_utc(value: object) -> Optional[datetime]:
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

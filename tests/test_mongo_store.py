from __future__ import annotations

import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from bson import ObjectId

from market_linker.models import (
    CanonicalTopic,
    Classification,
    ClassificationSource,
    LinkStatus,
    LinkWriteRequest,
    Market,
)
from market_linker.storage.mongo import MongoStore


def _request(status: LinkStatus = LinkStatus.SUGGESTED) -> LinkWriteRequest:
    return LinkWriteRequest(
        left_venue="kalshi",
        left_market_id="k1",
        right_venue="polymarket",
        right_market_id="p1",
        topic="MACRO",
        status=status,
        score=0.81,
        reason="entities=CPI",
        algo_version="macro@3.0.6",
    )


class MongoStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.markets = MagicMock(name="markets")
        self.links = MagicMock(name="market_links")
        db = MagicMock(name="db")
        db.__getitem__.side_effect = {"markets": self.markets, "market_links": self.links}.__getitem__

        patcher = patch("market_linker.storage.mongo.MongoClient")
        self.client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client_cls.return_value.__getitem__.return_value = db

        self.store = MongoStore("mongodb://example:27017", "linker_test")

    def test_connects_tz_aware_and_builds_indexes(self) -> None:
        self.client_cls.assert_called_once_with("mongodb://example:27017", tz_aware=True)
        market_index_names = [c.kwargs.get("name") for c in self.markets.create_index.call_args_list]
        link_index_names = [c.kwargs.get("name") for c in self.links.create_index.call_args_list]
        self.assertIn("markets_venue_market_unique", market_index_names)
        self.assertIn("market_links_pair_topic_unique", link_index_names)

    def test_upsert_markets_bulk(self) -> None:
        count = self.store.upsert_markets(
            [
                Market(venue="kalshi", market_id="k1", title="CPI in March 2026"),
                Market(venue="kalshi", market_id="k2", title="GDP in Q1 2026"),
            ]
        )
        self.assertEqual(count, 2)
        args, kwargs = self.markets.bulk_write.call_args
        self.assertEqual(len(args[0]), 2)
        self.assertFalse(kwargs["ordered"])

        self.assertEqual(self.store.upsert_markets([]), 0)
        self.assertEqual(self.markets.bulk_write.call_count, 1)

    def test_list_eligible_markets_query(self) -> None:
        close = datetime(2026, 3, 31)
        cursor = self.markets.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter(
            [
                {"_id": "x", "venue": "kalshi", "market_id": "k1", "title": "CPI in March 2026", "close_time": close},
                {"_id": "y", "venue": "kalshi", "market_id": "k2", "title": "bad", "derived_topic": 5},
            ]
        )

        markets = self.store.list_eligible_markets(
            "kalshi", lookback_hours=24, limit=50, title_keywords=["cpi", "gdp"], derived_topic="MACRO"
        )

        query = self.markets.find.call_args.args[0]
        self.assertEqual(query["venue"], "kalshi")
        self.assertEqual(query["status"], {"$in": ["active", "open", "initialized"]})
        self.assertEqual(query["title"], {"$regex": "cpi|gdp", "$options": "i"})
        self.assertEqual(query["derived_topic"], "MACRO")
        self.assertEqual(query["$or"][0], {"close_time": None})
        self.markets.find.return_value.sort.return_value.limit.assert_called_once_with(50)

        self.assertEqual([m.market_id for m in markets], ["k1"])
        self.assertEqual(markets[0].close_time.tzinfo, timezone.utc)

    def test_set_derived_topic(self) -> None:
        classification = Classification(
            topic=CanonicalTopic.RATES, confidence=0.9, source=ClassificationSource.TITLE, reason="override"
        )
        self.store.set_derived_topic("kalshi", "k1", classification)
        selector, update = self.markets.update_one.call_args.args
        self.assertEqual(selector, {"venue": "kalshi", "market_id": "k1"})
        self.assertEqual(update["$set"]["derived_topic"], "RATES")
        self.assertEqual(update["$set"]["derived_topic_source"], "title")

    def test_upsert_link_created_and_updated(self) -> None:
        self.links.find_one.return_value = None
        self.links.update_one.return_value = SimpleNamespace(upserted_id=ObjectId())
        self.assertEqual(self.store.upsert_link(_request()), "created")

        self.links.find_one.return_value = {"status": "suggested"}
        self.links.update_one.return_value = SimpleNamespace(upserted_id=None)
        self.assertEqual(self.store.upsert_link(_request()), "updated")

        key, update = self.links.update_one.call_args.args
        self.assertEqual(key["topic"], "MACRO")
        self.assertEqual(update["$set"]["status"], "suggested")
        self.assertIn("created_at", update["$setOnInsert"])
        self.assertTrue(self.links.update_one.call_args.kwargs["upsert"])

    def test_confirmed_link_is_not_downgraded(self) -> None:
        self.links.find_one.return_value = {"status": "confirmed"}
        self.assertEqual(self.store.upsert_link(_request(LinkStatus.SUGGESTED)), "skipped")
        self.links.update_one.assert_not_called()

        self.links.update_one.return_value = SimpleNamespace(upserted_id=None)
        self.assertEqual(self.store.upsert_link(_request(LinkStatus.CONFIRMED)), "updated")

    def test_list_links_exposes_string_id(self) -> None:
        oid = ObjectId()
        cursor = self.links.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([{"_id": oid, "status": "suggested", "score": 0.8}])

        links = self.store.list_links(min_score=0.75, limit=10, topic="MACRO")
        self.assertEqual(links, [{"id": str(oid), "status": "suggested", "score": 0.8}])
        query = self.links.find.call_args.args[0]
        self.assertEqual(query, {"status": "suggested", "score": {"$gte": 0.75}, "topic": "MACRO"})

    def test_update_link_status(self) -> None:
        self.assertFalse(self.store.update_link_status("not-an-id", LinkStatus.CONFIRMED, "r"))
        self.links.update_one.assert_not_called()

        self.links.update_one.return_value = SimpleNamespace(matched_count=1)
        oid = ObjectId()
        self.assertTrue(self.store.update_link_status(str(oid), LinkStatus.REJECTED, "llm"))
        selector, update = self.links.update_one.call_args.args
        self.assertEqual(selector, {"_id": oid})
        self.assertEqual(update["$set"]["status"], "rejected")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest

from market_linker.engine.pipelines.commodities import (
    CommoditiesPipeline,
    CommodityDateType,
    extract_target_month,
    extract_thresholds,
    extract_underlying,
    month_distance,
)
from market_linker.models import Market, Tier

GOLD_LEFT = "Will gold settle above $2,500 at end of June 2026?"
GOLD_RIGHT = "Gold (GC) above $2,500 on the final trading day of June 2026?"


def _market(venue: str, market_id: str, title: str) -> Market:
    return Market(venue=venue, market_id=market_id, title=title)


class _FakeStore:
    def __init__(self, markets):
        self.markets = markets

    def list_eligible_markets(self, venue, lookback_hours, limit, title_keywords=None, derived_topic=None):
        return list(self.markets)


class CommoditySignalTests(unittest.TestCase):
    def test_underlying(self) -> None:
        self.assertEqual(extract_underlying("WTI crude oil above $80?"), ("OIL_WTI", "CL"))
        self.assertEqual(extract_underlying("Brent above $85?"), ("OIL_BRENT", None))
        self.assertEqual(extract_underlying(GOLD_RIGHT), ("GOLD", "GC"))
        self.assertEqual(extract_underlying("Golden State Warriors win the title?"), (None, None))

    def test_thresholds_keep_prices_in_year_range(self) -> None:
        self.assertEqual(extract_thresholds("Gold above $1,950 in June 2026?"), (1950.0,))
        self.assertEqual(extract_thresholds("Will oil close above 75 in June 2026?"), (75.0,))
        self.assertEqual(extract_thresholds("Copper between $4.50 and $5 in July 2026?"), (4.5, 5.0))

    def test_target_month(self) -> None:
        self.assertEqual(extract_target_month(GOLD_LEFT), ("2026-06", CommodityDateType.MONTH_END))
        self.assertEqual(
            extract_target_month("Gold above $2,500 on June 30, 2026?"), ("2026-06", CommodityDateType.DAY_EXACT)
        )
        self.assertEqual(
            extract_target_month("Corn futures above $5 in July 2026?"), ("2026-07", CommodityDateType.CONTRACT)
        )
        self.assertEqual(extract_target_month("Corn futures above $5?"), (None, None))

    def test_month_distance(self) -> None:
        self.assertEqual(month_distance("2025-12", "2026-01"), 1)
        self.assertEqual(month_distance("2026-06", "2026-09"), 3)


class CommoditiesPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = CommoditiesPipeline()

    def test_gold_pair_confirms(self) -> None:
        left = _market("kalshi", "k1", GOLD_LEFT)
        right = _market("polymarket", "p1", GOLD_RIGHT)

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.tier, Tier.STRONG)
        self.assertGreaterEqual(result.score, 0.90)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "COMMODITIES_EXACT_MATCH")

    def test_gates(self) -> None:
        gold = _market("kalshi", "k1", GOLD_LEFT)

        silver = _market("polymarket", "p1", "Will silver settle above $30 at end of June 2026?")
        self.assertEqual(self.pipeline.check_hard_gates(gold, silver).reason, "underlying mismatch: GOLD vs SILVER")

        september = _market("polymarket", "p2", "Will gold settle above $2,500 at end of September 2026?")
        self.assertEqual(
            self.pipeline.check_hard_gates(gold, september).reason, "date too far: 2026-06 vs 2026-09"
        )

        higher = _market("polymarket", "p3", "Will gold settle above $3,000 at end of June 2026?")
        self.assertTrue(self.pipeline.check_hard_gates(gold, higher).reason.startswith("strike mismatch"))

    def test_above_vs_below_is_rejected(self) -> None:
        left = _market("kalshi", "k1", "Will WTI crude oil settle above $80 at end of June 2026?")
        right = _market("polymarket", "p1", "Will WTI crude oil settle below $80 at end of June 2026?")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["comparator"], 0.0)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "COMMODITIES_CONFLICTING_COMPARATOR")

    def test_candidates_span_adjacent_months(self) -> None:
        right = [
            _market("polymarket", "p-jun", GOLD_RIGHT),
            _market("polymarket", "p-jul", "Gold above $2,500 at end of July 2026?"),
            _market("polymarket", "p-sep", "Gold above $2,500 at end of September 2026?"),
            _market("polymarket", "p-silver", "Silver above $30 at end of June 2026?"),
        ]
        index = self.pipeline.build_index(right)
        found = [m.market_id for m in self.pipeline.find_candidates(_market("kalshi", "k1", GOLD_LEFT), index)]
        self.assertEqual(sorted(found), ["p-jul", "p-jun"])

    def test_fetch_requires_underlying(self) -> None:
        store = _FakeStore(
            [
                _market("kalshi", "k1", GOLD_LEFT),
                _market("kalshi", "k2", "Golden State Warriors win the title?"),
            ]
        )
        eligible = self.pipeline.fetch_eligible(store, "kalshi", lookback_hours=720, limit=100)
        self.assertEqual([m.market_id for m in eligible], ["k1"])


if __name__ == "__main__":
    unittest.main()

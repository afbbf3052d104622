from __future__ import annotations

import unittest
from datetime import datetime, timezone
from typing import List

from market_linker.engine.extractor import extract_numbers
from market_linker.engine.pipelines import periods
from market_linker.engine.pipelines.macro import (
    MacroPipeline,
    extract_macro_signals,
    is_sports_like,
    threshold_agreement,
)
from market_linker.models import Market, Tier

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _market(venue: str, market_id: str, title: str, **kwargs) -> Market:
    return Market(venue=venue, market_id=market_id, title=title, **kwargs)


class _FakeStore:
    def __init__(self, markets: List[Market]):
        self.markets = markets
        self.calls: List[dict] = []

    def list_eligible_markets(self, venue, lookback_hours, limit, title_keywords=None, derived_topic=None):
        self.calls.append({"venue": venue, "title_keywords": title_keywords, "derived_topic": derived_topic})
        return [m for m in self.markets if m.venue == venue]


class MacroSignalTests(unittest.TestCase):
    def test_day_collapses_to_month(self) -> None:
        sig = extract_macro_signals(_market("kalshi", "k1", "CPI report on March 12, 2026"))
        self.assertEqual(sig.entities, frozenset({"CPI"}))
        self.assertEqual(sig.period_key, "2026-03")
        self.assertEqual(sig.year, 2026)

    def test_close_time_fallback(self) -> None:
        sig = extract_macro_signals(
            _market("kalshi", "k1", "Unemployment above 4.5%?", close_time=datetime(2026, 5, 8, tzinfo=timezone.utc))
        )
        self.assertEqual(sig.entities, frozenset({"UNEMPLOYMENT_RATE"}))
        self.assertEqual(sig.period_key, "2026-05")

    def test_sports_like(self) -> None:
        self.assertTrue(is_sports_like(_market("kalshi", "k1", "Player: 5+ assists")))
        self.assertTrue(
            is_sports_like(_market("kalshi", "k2", "Will CPI rise?", metadata={"eventTicker": "KXNFLGAME-26"}))
        )
        self.assertTrue(is_sports_like(_market("polymarket", "p1", "Dota 2 CPI invitational")))
        self.assertFalse(is_sports_like(_market("polymarket", "p2", "March 2026 CPI above 3%")))


class MacroPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = MacroPipeline(now=NOW)

    def test_same_release_is_strong_and_confirms(self) -> None:
        left = _market("kalshi", "k1", "CPI above 3% in March 2026")
        right = _market("polymarket", "p1", "March 2026 CPI YoY above 3.0%")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.tier, Tier.STRONG)
        self.assertEqual(result.breakdown["period_exact"], 1.0)
        self.assertGreaterEqual(result.score, 0.88)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "MACRO_EXACT_MATCH")

    def test_different_thresholds_are_not_confirmed(self) -> None:
        left = _market("kalshi", "k1", "CPI above 3.0% in March 2026")
        right = _market("polymarket", "p1", "March 2026 CPI above 3.5%")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["number"], 0.0)
        self.assertEqual(result.tier, Tier.WEAK)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)

    def test_above_vs_below_is_rejected(self) -> None:
        left = _market("kalshi", "k1", "CPI above 3% in March 2026")
        right = _market("polymarket", "p1", "March 2026 CPI below 3%")

        result = self.pipeline.score(left, right)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "MACRO_CONFLICTING_COMPARATOR")

    def test_threshold_agreement(self) -> None:
        three = extract_numbers("above 3%")
        self.assertEqual(threshold_agreement((), ()), 1.0)
        self.assertEqual(threshold_agreement(three, ()), 0.5)
        self.assertEqual(threshold_agreement(three, extract_numbers("above 3.0%")), 1.0)
        self.assertEqual(threshold_agreement(three, extract_numbers("above 3.5%")), 0.0)

    def test_month_inside_quarter_is_compatible(self) -> None:
        left = _market("kalshi", "k1", "US GDP growth in Q1 2026")
        right = _market("polymarket", "p1", "GDP growth above 2% in March 2026")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["period"], 0.6)
        self.assertEqual(result.tier, Tier.WEAK)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)

    def test_gates(self) -> None:
        gdp = _market("kalshi", "k1", "GDP in March 2026")
        cpi = _market("polymarket", "p1", "CPI in March 2026")
        self.assertIn("no entity overlap", self.pipeline.check_hard_gates(gdp, cpi).reason)

        april = _market("polymarket", "p2", "GDP in April 2026")
        self.assertIn("period mismatch", self.pipeline.check_hard_gates(gdp, april).reason)

        vague = _market("polymarket", "p3", "Will the economy improve?")
        self.assertEqual(self.pipeline.check_hard_gates(gdp, vague).reason, "macro entity missing")

    def test_fetch_eligible_filters(self) -> None:
        store = _FakeStore(
            [
                _market("kalshi", "k1", "CPI above 3% in March 2026"),
                _market("kalshi", "k2", "Lakers vs Celtics rebounds"),
                _market("kalshi", "k3", "CPI in March 2029"),
                _market("kalshi", "k4", "Inflation outlook"),
                _market("polymarket", "p1", "CPI in March 2026"),
            ]
        )
        eligible = self.pipeline.fetch_eligible(store, "kalshi", lookback_hours=720, limit=100)

        self.assertEqual([m.market_id for m in eligible], ["k1"])
        self.assertIn("cpi", store.calls[0]["title_keywords"])

    def test_candidates_include_coarser_and_finer_periods(self) -> None:
        right = [
            _market("polymarket", "p-q1", "GDP in Q1 2026"),
            _market("polymarket", "p-mar", "GDP in March 2026"),
            _market("polymarket", "p-cpi", "CPI in March 2026"),
        ]
        index = self.pipeline.build_index(right)

        month = _market("kalshi", "k1", "GDP in March 2026")
        from_month = {m.market_id for m in self.pipeline.find_candidates(month, index)}
        self.assertEqual(from_month, {"p-q1", "p-mar"})

        quarter = _market("kalshi", "k2", "GDP in Q1 2026")
        from_quarter = {m.market_id for m in self.pipeline.find_candidates(quarter, index)}
        self.assertEqual(from_quarter, {"p-q1", "p-mar"})
        self.assertIn("2026-03", periods.finer_keys("2026-Q1"))


if __name__ == "__main__":
    unittest.main()

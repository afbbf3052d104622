from __future__ import annotations

import unittest
from datetime import datetime, timezone

from market_linker.engine.pipelines.rates import (
    RateAction,
    RatesPipeline,
    extract_rates_signals,
    is_rates_market,
)
from market_linker.models import Market, Tier


def _market(venue: str, market_id: str, title: str, close_time: datetime | None = None) -> Market:
    return Market(venue=venue, market_id=market_id, title=title, close_time=close_time)


class RatesSignalTests(unittest.TestCase):
    def test_extracts_fed_cut(self) -> None:
        sig = extract_rates_signals("Fed cuts rates by 25 bps in March 2026")
        self.assertEqual(sig.central_bank, "FED")
        self.assertEqual(sig.action, RateAction.CUT)
        self.assertEqual(sig.basis_points, 25)
        self.assertEqual(sig.meeting_month, "2026-03")
        self.assertEqual(sig.year, 2026)

    def test_quarter_point_and_range(self) -> None:
        sig = extract_rates_signals("Will the ECB hold rates between 2.0% and 2.25% on June 5, 2026?")
        self.assertEqual(sig.central_bank, "ECB")
        self.assertEqual(sig.action, RateAction.HOLD)
        self.assertEqual(sig.target_range, (2.0, 2.25))
        self.assertEqual(sig.meeting_date.isoformat(), "2026-06-05")

    def test_banks_come_from_shared_alias_table(self) -> None:
        self.assertEqual(extract_rates_signals("Will the People's Bank of China cut rates in 2026?").central_bank, "PBOC")
        self.assertEqual(extract_rates_signals("Reserve Bank of New Zealand hike in May 2026?").central_bank, "RBNZ")
        self.assertEqual(extract_rates_signals("Will Powell cut in June 2026?").central_bank, "FED")
        self.assertEqual(extract_rates_signals("Will Lagarde hold in July 2026?").central_bank, "ECB")

    def test_action_count(self) -> None:
        self.assertEqual(extract_rates_signals("Will the Fed deliver three cuts in 2026?").action_count, 3)

    def test_rates_market_filter(self) -> None:
        self.assertTrue(is_rates_market("Fed cuts by 50 basis points?"))
        self.assertFalse(is_rates_market("Lakers vs Celtics total points over 220.5"))
        self.assertFalse(is_rates_market("Who wins the NBA title?"))


class RatesPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = RatesPipeline()

    def test_fed_example_is_strong(self) -> None:
        left = _market("kalshi", "k1", "Fed cuts rates by 25 bps in March 2026")
        right = _market("polymarket", "p1", "FOMC 25bps cut March 2026")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertIsNotNone(result)
        self.assertGreaterEqual(result.score, 0.85)
        self.assertEqual(result.tier, Tier.STRONG)

    def test_cut_vs_hike_is_rejected(self) -> None:
        left = _market("kalshi", "k1", "Fed cuts rates by 25 bps in March 2026")
        right = _market("polymarket", "p1", "Fed hikes rates by 25 bps in March 2026")

        result = self.pipeline.score(left, right)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "ACTION_CONFLICT")
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)

    def test_gates(self) -> None:
        fed = _market("kalshi", "k1", "Fed cut in March 2026")
        ecb = _market("polymarket", "p1", "ECB cut in March 2026")
        self.assertFalse(self.pipeline.check_hard_gates(fed, ecb).passed)

        far = _market("polymarket", "p2", "FOMC cut in June 2026")
        gate = self.pipeline.check_hard_gates(fed, far)
        self.assertFalse(gate.passed)
        self.assertIn("meeting month", gate.reason)

        d1 = _market("kalshi", "k2", "Fed decision on March 18, 2026")
        d2 = _market("polymarket", "p3", "Fed decision on March 30, 2026")
        self.assertFalse(self.pipeline.check_hard_gates(d1, d2).passed)

    def test_exact_match_auto_confirms(self) -> None:
        left = _market("kalshi", "k1", "Fed cuts rates by 25 bps on March 18, 2026")
        right = _market("polymarket", "p1", "Fed cuts 25 bps on March 18, 2026?")

        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["day_diff"], 0.0)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "RATES_EXACT_MATCH")

    def test_candidates_span_adjacent_months(self) -> None:
        close = datetime(2026, 4, 29, tzinfo=timezone.utc)
        right = [
            _market("polymarket", "p-apr", "Fed cut at April meeting?", close),
            _market("polymarket", "p-may", "Fed cut in May 2026"),
            _market("polymarket", "p-ecb", "ECB cut in March 2026"),
        ]
        index = self.pipeline.build_index(right)
        left = _market("kalshi", "k1", "Fed cut in March 2026")

        found = {m.market_id for m in self.pipeline.find_candidates(left, index)}
        self.assertIn("p-apr", found)
        self.assertNotIn("p-ecb", found)


if __name__ == "__main__":
    unittest.main()

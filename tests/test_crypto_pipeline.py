from __future__ import annotations

import unittest
from datetime import date, datetime, timezone

from market_linker.engine.pipelines.crypto import (
    CryptoDailyPipeline,
    CryptoDateType,
    CryptoIntradayPipeline,
    Direction,
    extract_crypto_numbers,
    extract_direction,
    extract_settle_date,
    strike_score,
)
from market_linker.models import Market, Tier

BTC_LEFT = "Bitcoin above $100,000 on January 31, 2026"
BTC_RIGHT = "Will BTC be above $100k on Jan 31, 2026?"
THREE_PM = datetime(2026, 1, 31, 15, tzinfo=timezone.utc)


def _market(venue: str, market_id: str, title: str, **kwargs) -> Market:
    return Market(venue=venue, market_id=market_id, title=title, **kwargs)


class _FakeStore:
    def __init__(self, markets):
        self.markets = markets

    def list_eligible_markets(self, venue, lookback_hours, limit, title_keywords=None, derived_topic=None):
        return list(self.markets)


class CryptoSignalTests(unittest.TestCase):
    def test_numbers_skip_days_and_years(self) -> None:
        self.assertEqual(extract_crypto_numbers(BTC_LEFT), (100000.0,))
        self.assertEqual(extract_crypto_numbers(BTC_RIGHT), (100000.0,))
        self.assertEqual(extract_crypto_numbers("ETH price between 3,800 and 4,000 on March 3, 2026"), (3800.0, 4000.0))

    def test_settle_date_types(self) -> None:
        self.assertEqual(
            extract_settle_date(BTC_LEFT), (date(2026, 1, 31), CryptoDateType.DAY_EXACT, None)
        )
        self.assertEqual(
            extract_settle_date("Bitcoin above $100k by end of January 2026?"),
            (date(2026, 1, 31), CryptoDateType.MONTH_END, "2026-01"),
        )
        self.assertEqual(
            extract_settle_date("Bitcoin above $100k in Q2 2026?"),
            (date(2026, 6, 30), CryptoDateType.QUARTER, "2026-Q2"),
        )
        self.assertEqual(
            extract_settle_date("Bitcoin above $100k?", THREE_PM),
            (date(2026, 1, 31), CryptoDateType.CLOSE_TIME, None),
        )

    def test_direction(self) -> None:
        self.assertEqual(extract_direction("Will Bitcoin go up in the next hour?"), Direction.UP)
        self.assertEqual(extract_direction("Bitcoin lower at 3pm?"), Direction.DOWN)
        self.assertIsNone(extract_direction("Bitcoin up or down at 3pm?"))

    def test_strike_score_bands(self) -> None:
        self.assertEqual(strike_score([100000.0], [100000.0]), (1.0, None))
        self.assertEqual(strike_score([3800.0, 4000.0], [3900.0]), (1.0, None))
        score, gap = strike_score([1950.0], [2050.0])
        self.assertEqual(score, 0.4)
        self.assertAlmostEqual(gap, 0.05)
        self.assertEqual(strike_score([100000.0], [120000.0])[0], 0.0)
        self.assertEqual(strike_score([], [100000.0]), (0.0, None))


class CryptoDailyPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = CryptoDailyPipeline()

    def test_same_strike_same_day_confirms(self) -> None:
        left = _market("kalshi", "KXBTCD-26JAN31-T100000", BTC_LEFT)
        right = _market("polymarket", "btc-100k-jan-31", BTC_RIGHT)

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.tier, Tier.STRONG)
        self.assertGreaterEqual(result.score, 0.90)
        self.assertEqual(result.breakdown["number"], 1.0)
        self.assertEqual(result.breakdown["day_diff"], 0.0)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "CRYPTO_DAILY_EXACT_MATCH")

    def test_far_strikes_fail_the_gate(self) -> None:
        left = _market("kalshi", "k1", BTC_LEFT)
        right = _market("polymarket", "p1", "Will BTC be above $120,000 on Jan 31, 2026?")
        gate = self.pipeline.check_hard_gates(left, right)
        self.assertFalse(gate.passed)
        self.assertTrue(gate.reason.startswith("strike mismatch"))

    def test_near_strikes_are_weak_and_not_confirmed(self) -> None:
        left = _market("kalshi", "k1", "Will ETH close above $1,950 on March 3, 2026?")
        right = _market("polymarket", "p1", "Will ETH close above $2,050 on March 3, 2026?")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["number"], 0.4)
        self.assertEqual(result.tier, Tier.WEAK)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)

    def test_above_vs_below_is_rejected(self) -> None:
        left = _market("kalshi", "k1", BTC_LEFT)
        right = _market("polymarket", "p1", "Bitcoin below $100,000 on January 31, 2026")

        result = self.pipeline.score(left, right)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "CRYPTO_DAILY_CONFLICTING_COMPARATOR")

    def test_gates(self) -> None:
        btc = _market("kalshi", "k1", BTC_LEFT)

        eth = _market("polymarket", "p1", "Will ETH be above $4k on Jan 31, 2026?")
        self.assertEqual(self.pipeline.check_hard_gates(btc, eth).reason, "entity mismatch: BITCOIN vs ETHEREUM")

        month_end = _market("polymarket", "p2", "Bitcoin above $100k by end of January 2026?")
        self.assertIn("date type incompatible", self.pipeline.check_hard_gates(btc, month_end).reason)

        later = _market("polymarket", "p3", "Bitcoin above $100k on Feb 3, 2026?")
        self.assertEqual(self.pipeline.check_hard_gates(btc, later).reason, "settle date mismatch: 3 days apart")

        hourly = _market("polymarket", "p4", BTC_RIGHT, derived_topic="CRYPTO_INTRADAY")
        self.assertEqual(self.pipeline.check_hard_gates(btc, hourly).reason, "intraday excluded")

    def test_month_end_markets_match_on_period(self) -> None:
        left = _market("kalshi", "k1", "Bitcoin above $100k by end of January 2026?")
        right = _market("polymarket", "p1", "Will Bitcoin be above $100,000 at month-end January 2026?")
        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["date"], 1.0)
        self.assertNotIn("day_diff", result.breakdown)

    def test_candidates_by_entity_and_adjacent_day(self) -> None:
        right = [
            _market("polymarket", "p-same", BTC_RIGHT),
            _market("polymarket", "p-next", "Will BTC be above $100k on Feb 1, 2026?"),
            _market("polymarket", "p-far", "Will BTC be above $100k on Feb 9, 2026?"),
            _market("polymarket", "p-eth", "Will ETH be above $4k on Jan 31, 2026?"),
        ]
        index = self.pipeline.build_index(right)
        found = [m.market_id for m in self.pipeline.find_candidates(_market("kalshi", "k1", BTC_LEFT), index)]
        self.assertEqual(sorted(found), ["p-next", "p-same"])

    def test_fetch_splits_daily_from_intraday(self) -> None:
        store = _FakeStore(
            [
                _market("kalshi", "k1", BTC_LEFT),
                _market("kalshi", "k2", "Will Bitcoin go up in the next hour?", close_time=THREE_PM),
                _market("kalshi", "k3", "Will the Lakers win on Jan 31, 2026?"),
            ]
        )
        daily = self.pipeline.fetch_eligible(store, "kalshi", lookback_hours=168, limit=100)
        self.assertEqual([m.market_id for m in daily], ["k1"])
        intraday = CryptoIntradayPipeline().fetch_eligible(store, "kalshi", lookback_hours=24, limit=100)
        self.assertEqual([m.market_id for m in intraday], ["k2"])


class CryptoIntradayPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = CryptoIntradayPipeline()

    def _pair(self, left_title: str, right_title: str, right_close: datetime = THREE_PM):
        left = _market("kalshi", "k1", left_title, close_time=THREE_PM, derived_topic="CRYPTO_INTRADAY")
        right = _market("polymarket", "p1", right_title, close_time=right_close, derived_topic="CRYPTO_INTRADAY")
        return left, right

    def test_same_window_confirms(self) -> None:
        left, right = self._pair("Bitcoin up or down 3pm ET?", "Bitcoin up or down - 3PM ET")
        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["time"], 1.0)
        self.assertEqual(result.tier, Tier.STRONG)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "CRYPTO_INTRADAY_EXACT_MATCH")

    def test_opposite_directions_are_rejected(self) -> None:
        left, right = self._pair("Will Bitcoin go up in the next hour?", "Will Bitcoin go down in the next hour?")
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["direction_match"], 0.0)
        self.assertEqual(result.tier, Tier.WEAK)
        self.assertFalse(self.pipeline.should_auto_confirm(left, right, result).apply)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "CRYPTO_INTRADAY_DIRECTION_CONFLICT")

    def test_different_hours_fail_the_gate(self) -> None:
        left, right = self._pair(
            "Bitcoin up or down 3pm ET?", "Bitcoin up or down 4pm ET?", right_close=THREE_PM.replace(hour=16)
        )
        gate = self.pipeline.check_hard_gates(left, right)
        self.assertFalse(gate.passed)
        self.assertTrue(gate.reason.startswith("time bucket mismatch"))
        self.assertEqual(self.pipeline.find_candidates(left, self.pipeline.build_index([right])), [])


if __name__ == "__main__":
    unittest.main()

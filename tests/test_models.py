from __future__ import annotations

import math
import unittest

from market_linker.models import Market, ScoreResult, clamp_score


class ClampScoreTests(unittest.TestCase):
    def test_non_finite_inputs(self) -> None:
        self.assertEqual(clamp_score(math.nan), 0.0)
        self.assertEqual(clamp_score(math.inf), 1.0)
        self.assertEqual(clamp_score(-math.inf), 0.0)

    def test_range(self) -> None:
        self.assertEqual(clamp_score(1.7), 1.0)
        self.assertEqual(clamp_score(-0.2), 0.0)
        self.assertEqual(clamp_score(0.42), 0.42)
        self.assertEqual(clamp_score("not a number"), 0.0)

    def test_score_result_clamps(self) -> None:
        self.assertEqual(ScoreResult(score=1.3).score, 1.0)
        self.assertEqual(ScoreResult(score=float("nan")).score, 0.0)


class MarketTests(unittest.TestCase):
    def test_key(self) -> None:
        market = Market(venue="kalshi", market_id="KXBTC-26JAN31-B100000", title="BTC")
        self.assertEqual(market.key, "kalshi:KXBTC-26JAN31-B100000")


if __name__ == "__main__":
    unittest.main()

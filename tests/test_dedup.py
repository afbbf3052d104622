from __future__ import annotations

import unittest

from market_linker.engine.pipelines.base import (
    DedupLimits,
    FeatureCache,
    ScoredCandidate,
    build_index,
    deduplicate,
)
from market_linker.models import Market, ScoreResult


def _m(venue: str, market_id: str) -> Market:
    return Market(venue=venue, market_id=market_id, title=market_id)


def _cand(left: str, right: str, score: float) -> ScoredCandidate:
    return ScoredCandidate(left=_m("kalshi", left), right=_m("polymarket", right), result=ScoreResult(score=score))


class DeduplicateTests(unittest.TestCase):
    def test_respects_per_side_caps(self) -> None:
        candidates = [
            _cand(f"k{i}", f"p{j}", 0.9 - 0.01 * (i + j))
            for i in range(4)
            for j in range(4)
        ]
        kept = deduplicate(candidates, DedupLimits(max_per_left=2, max_per_right=1, min_winner_gap=1.0))

        left_counts: dict = {}
        right_counts: dict = {}
        for cand in kept:
            left_counts[cand.left.key] = left_counts.get(cand.left.key, 0) + 1
            right_counts[cand.right.key] = right_counts.get(cand.right.key, 0) + 1
        self.assertTrue(all(n <= 2 for n in left_counts.values()))
        self.assertTrue(all(n <= 1 for n in right_counts.values()))

    def test_highest_score_wins(self) -> None:
        kept = deduplicate(
            [_cand("k1", "p1", 0.70), _cand("k2", "p1", 0.95)],
            DedupLimits(max_per_left=5, max_per_right=1, min_winner_gap=0.02),
        )
        self.assertEqual(len(kept), 1)
        self.assertEqual(kept[0].left.market_id, "k2")

    def test_winner_gap(self) -> None:
        limits = DedupLimits(max_per_left=5, max_per_right=5, min_winner_gap=0.05)
        near_tie = deduplicate([_cand("k1", "p1", 0.90), _cand("k2", "p1", 0.88)], limits)
        self.assertEqual(len(near_tie), 2)

        clear_winner = deduplicate([_cand("k1", "p1", 0.90), _cand("k2", "p1", 0.80)], limits)
        self.assertEqual([c.left.market_id for c in clear_winner], ["k1"])

    def test_empty(self) -> None:
        self.assertEqual(deduplicate([], DedupLimits()), [])


class IndexTests(unittest.TestCase):
    def test_collect_dedups_and_excludes(self) -> None:
        a, b, c = _m("polymarket", "a"), _m("polymarket", "b"), _m("polymarket", "c")
        keys = {"a": ["x", "y"], "b": ["y"], "c": ["z"]}
        index = build_index([a, b, c], lambda m: keys[m.market_id])

        self.assertEqual(index.size, 3)
        self.assertIn("y", index)
        found = index.collect(["x", "y", "z"], exclude=c)
        self.assertEqual([m.market_id for m in found], ["a", "b"])


class FeatureCacheTests(unittest.TestCase):
    def test_computes_once_until_cleared(self) -> None:
        calls = []

        def compute(market: Market) -> str:
            calls.append(market.key)
            return market.title.upper()

        cache: FeatureCache[str] = FeatureCache(compute)
        market = _m("kalshi", "abc")
        self.assertEqual(cache.get(market), "ABC")
        self.assertEqual(cache.get(market), "ABC")
        self.assertEqual(len(calls), 1)

        cache.clear()
        cache.get(market)
        self.assertEqual(len(calls), 2)


if __name__ == "__main__":
    unittest.main()

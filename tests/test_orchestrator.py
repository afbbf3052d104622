from __future__ import annotations

import unittest
from typing import Dict, List, Optional
from unittest.mock import patch

from tenacity import wait_none

from market_linker.engine import orchestrator
from market_linker.engine.orchestrator import run_pipeline, score_bucket
from market_linker.engine.pipelines.base import (
    NO_DECISION,
    PASSED,
    BasePipeline,
    Decision,
    FeatureCache,
    build_index,
    gate_failed,
)
from market_linker.models import CanonicalTopic, LinkStatus, Market, ScoreResult

SCORES = {"p1": 0.97, "p2": 0.82, "p3": 0.65, "p4": 0.30, "x5": 0.99}


class _StubPipeline(BasePipeline):
    topic = CanonicalTopic.ELECTIONS
    algo_version = "stub@1.0"

    def __init__(self) -> None:
        self._features = FeatureCache(lambda m: m.title)

    def fetch_eligible(self, store, venue, lookback_hours, limit):
        return self._fetch(store, venue, lookback_hours, limit)

    def build_index(self, markets):
        return build_index(markets, lambda m: ["all"])

    def find_candidates(self, market, index):
        return index.collect(["all"], exclude=market)

    def check_hard_gates(self, left, right):
        if right.market_id.startswith("x"):
            return gate_failed("blocked: x-prefixed id")
        return PASSED

    def score(self, left, right):
        return ScoreResult(score=SCORES[right.market_id], reason=f"stub {right.market_id}")

    def should_auto_confirm(self, left, right, result):
        if result.score >= 0.95:
            return Decision(apply=True, rule="STUB_CONFIRM", confidence=result.score)
        return NO_DECISION

    def should_auto_reject(self, left, right, result):
        if result.score < 0.7:
            return Decision(apply=True, rule="STUB_REJECT", reason="too low")
        return NO_DECISION


class _ExplodingPipeline(_StubPipeline):
    def score(self, left, right):
        if right.market_id == "p2":
            raise ValueError("bad title")
        return super().score(left, right)


class _FakeStore:
    def __init__(
        self,
        markets: Optional[Dict[str, List[Market]]] = None,
        fail_fetch: bool = False,
        fail_write: bool = False,
        flaky_writes: int = 0,
    ):
        self.markets = markets or {}
        self.fail_fetch = fail_fetch
        self.fail_write = fail_write
        self.flaky_writes = flaky_writes
        self.write_attempts = 0
        self.links = []

    def list_eligible_markets(self, venue, lookback_hours, limit, title_keywords=None, derived_topic=None):
        if self.fail_fetch:
            raise RuntimeError("mongo down")
        return list(self.markets.get(venue, []))[:limit]

    def upsert_link(self, request):
        self.write_attempts += 1
        if self.flaky_writes:
            self.flaky_writes -= 1
            raise RuntimeError("connection reset")
        if self.fail_write:
            raise RuntimeError("write refused")
        self.links.append(request)
        return "created"


def _markets() -> Dict[str, List[Market]]:
    return {
        "kalshi": [Market(venue="kalshi", market_id="k1", title="left")],
        "polymarket": [Market(venue="polymarket", market_id=mid, title=mid) for mid in SCORES],
    }


class RunPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        no_wait = patch.object(orchestrator, "_write_link", orchestrator._write_link.retry_with(wait=wait_none()))
        no_wait.start()
        self.addCleanup(no_wait.stop)

    def test_dry_run_counts_and_decisions(self) -> None:
        store = _FakeStore(_markets())
        result = run_pipeline(_StubPipeline(), store, "kalshi", "polymarket", min_score=0.6, workers=1)

        self.assertEqual(result.errors, [])
        self.assertEqual((result.left_count, result.right_count), (1, 5))
        stats = result.stats
        self.assertEqual(stats.candidates_considered, 5)
        self.assertEqual(stats.hard_gate_failed, 1)
        self.assertEqual(stats.gate_failures_by_reason, {"blocked": 1})
        self.assertEqual(stats.scored, 4)
        self.assertEqual(stats.below_min_score, 1)
        self.assertEqual(stats.after_dedup, 3)
        self.assertEqual(
            stats.score_distribution,
            {"0.9+": 1, "0.8-0.9": 1, "0.7-0.8": 0, "0.6-0.7": 1, "<0.6": 1},
        )

        statuses = {w.right_market_id: w.status for w in result.writes}
        self.assertEqual(
            statuses,
            {"p1": LinkStatus.CONFIRMED, "p2": LinkStatus.SUGGESTED, "p3": LinkStatus.REJECTED},
        )
        self.assertEqual((result.auto_confirmed, result.suggestions_created, result.auto_rejected), (1, 1, 1))
        self.assertEqual(store.links, [])

        confirmed = next(w for w in result.writes if w.right_market_id == "p1")
        self.assertTrue(confirmed.reason.startswith("STUB_CONFIRM: "))
        self.assertEqual(confirmed.topic, "ELECTIONS")
        self.assertEqual(confirmed.algo_version, "stub@1.0")

    def test_apply_writes_every_kept_pair(self) -> None:
        store = _FakeStore(_markets())
        result = run_pipeline(_StubPipeline(), store, "kalshi", "polymarket", dry_run=False, workers=4)
        self.assertEqual(len(store.links), len(result.writes))
        self.assertEqual({r.right_market_id for r in store.links}, {"p1", "p2", "p3"})

    def test_auto_decisions_can_be_disabled(self) -> None:
        result = run_pipeline(
            _StubPipeline(), _FakeStore(_markets()), "kalshi", "polymarket", auto_confirm=False, auto_reject=False
        )
        self.assertTrue(all(w.status == LinkStatus.SUGGESTED for w in result.writes))
        self.assertEqual(result.suggestions_created, 3)

    def test_dedup_cap_override(self) -> None:
        result = run_pipeline(_StubPipeline(), _FakeStore(_markets()), "kalshi", "polymarket", max_per_left=1)
        self.assertEqual([w.right_market_id for w in result.writes], ["p1"])

    def test_fetch_failure(self) -> None:
        result = run_pipeline(_StubPipeline(), _FakeStore(fail_fetch=True), "kalshi", "polymarket")
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("Fetch failed: "))
        self.assertEqual(result.writes, [])

    def test_empty_sides(self) -> None:
        markets = _markets()
        no_left = run_pipeline(_StubPipeline(), _FakeStore({"polymarket": markets["polymarket"]}), "kalshi", "polymarket")
        self.assertEqual(no_left.errors, ["No left markets found"])

        no_right = run_pipeline(_StubPipeline(), _FakeStore({"kalshi": markets["kalshi"]}), "kalshi", "polymarket")
        self.assertEqual(no_right.errors, ["No right markets found"])
        self.assertEqual(no_right.left_count, 1)

    def test_write_failure_is_recorded(self) -> None:
        store = _FakeStore(_markets(), fail_write=True)
        result = run_pipeline(_StubPipeline(), store, "kalshi", "polymarket", dry_run=False)
        self.assertEqual(len(result.errors), 3)
        self.assertTrue(all(e.startswith("Failed to write suggestion") for e in result.errors))
        self.assertEqual(result.stats.errors_count, 3)
        self.assertEqual(store.write_attempts, 9)

    def test_transient_write_failure_is_retried(self) -> None:
        store = _FakeStore(_markets(), flaky_writes=1)
        result = run_pipeline(_StubPipeline(), store, "kalshi", "polymarket", dry_run=False)
        self.assertEqual(result.errors, [])
        self.assertEqual(result.stats.errors_count, 0)
        self.assertEqual(len(store.links), 3)
        self.assertEqual(store.write_attempts, 4)

    def test_score_exception_counts_as_error(self) -> None:
        result = run_pipeline(_ExplodingPipeline(), _FakeStore(_markets()), "kalshi", "polymarket", workers=2)
        self.assertEqual(result.stats.errors_count, 1)
        self.assertEqual(result.stats.scored, 3)
        self.assertEqual({w.right_market_id for w in result.writes}, {"p1", "p3"})
        self.assertEqual(result.errors, [])


class ScoreBucketTests(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertEqual(score_bucket(0.9), "0.9+")
        self.assertEqual(score_bucket(0.85), "0.8-0.9")
        self.assertEqual(score_bucket(0.7), "0.7-0.8")
        self.assertEqual(score_bucket(0.6), "0.6-0.7")
        self.assertEqual(score_bucket(0.59), "<0.6")


if __name__ == "__main__":
    unittest.main()

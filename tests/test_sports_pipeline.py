from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from market_linker.engine.pipelines.sports import (
    SportsLeague,
    SportsMarketType,
    SportsPipeline,
    buckets_adjacent,
    detect_market_type,
    extract_line_value,
    extract_sports_signals,
    normalize_team,
    should_exclude,
    time_bucket,
)
from market_linker.models import Market, Tier

TIPOFF = datetime(2026, 3, 14, 0, 10, tzinfo=timezone.utc)


def _market(venue: str, market_id: str, title: str, start: datetime | None = TIPOFF, metadata: dict | None = None) -> Market:
    return Market(
        venue=venue,
        market_id=market_id,
        title=title,
        open_time=start,
        close_time=start + timedelta(hours=3) if start else None,
        metadata=metadata or {},
    )


class SportsSignalTests(unittest.TestCase):
    def test_moneyline_matchup(self) -> None:
        sig = extract_sports_signals("Lakers vs Celtics", open_time=TIPOFF)
        self.assertEqual(sig.league, SportsLeague.NBA)
        self.assertEqual(set(sig.teams), {"LOS_ANGELES_LAKERS", "BOSTON_CELTICS"})
        self.assertEqual(sig.market_type, SportsMarketType.MONEYLINE)
        self.assertEqual(sig.start_bucket, "2026-03-14T00:00")
        self.assertTrue(sig.eligible)

    def test_city_abbreviation_expands(self) -> None:
        self.assertEqual(normalize_team("LA Lakers"), "LOS_ANGELES_LAKERS")
        self.assertEqual(normalize_team("Bos Celtics"), "BOSTON_CELTICS")
        self.assertEqual(normalize_team("Springfield Isotopes"), "SPRINGFIELD_ISOTOPES")

    def test_event_title_metadata_supplies_teams(self) -> None:
        sig = extract_sports_signals(
            "Winner?",
            metadata={"eventTitle": "Lakers vs Celtics", "eventStartTime": "2026-03-14T00:05:00Z"},
        )
        self.assertEqual(set(sig.teams), {"LOS_ANGELES_LAKERS", "BOSTON_CELTICS"})
        self.assertEqual(sig.start_bucket, "2026-03-14T00:00")

    def test_exclusions(self) -> None:
        self.assertTrue(should_exclude("LeBron James: 25+ points")[0])
        self.assertTrue(should_exclude("Lakers vs Celtics rebounds leader")[0])
        self.assertTrue(should_exclude("Will the Celtics win the championship?")[0])
        self.assertFalse(should_exclude("Real Madrid vs Arsenal - Champions League")[0])

    def test_market_types_and_lines(self) -> None:
        self.assertEqual(detect_market_type("Lakers vs Celtics spread -5.5"), SportsMarketType.SPREAD)
        self.assertEqual(detect_market_type("Lakers vs Celtics over 221.5"), SportsMarketType.TOTAL)
        self.assertEqual(extract_line_value("76ers vs Knicks spread +3.5", SportsMarketType.SPREAD), 3.5)
        self.assertEqual(extract_line_value("Lakers vs Celtics over 221.5", SportsMarketType.TOTAL), 221.5)

    def test_buckets(self) -> None:
        a = time_bucket(datetime(2026, 3, 14, 0, 29, tzinfo=timezone.utc))
        b = time_bucket(datetime(2026, 3, 14, 0, 31, tzinfo=timezone.utc))
        c = time_bucket(datetime(2026, 3, 14, 2, 0, tzinfo=timezone.utc))
        self.assertTrue(buckets_adjacent(a, b))
        self.assertFalse(buckets_adjacent(a, c))


class SportsPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = SportsPipeline()

    def test_same_game_moneyline_confirms(self) -> None:
        left = _market("kalshi", "k1", "Lakers vs Celtics")
        right = _market("polymarket", "p1", "Los Angeles Lakers vs Boston Celtics")

        self.assertTrue(self.pipeline.check_hard_gates(left, right).passed)
        result = self.pipeline.score(left, right)
        self.assertGreaterEqual(result.score, 0.92)
        self.assertEqual(result.tier, Tier.STRONG)
        decision = self.pipeline.should_auto_confirm(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "MONEYLINE_EXACT_EVENT_MATCH")

    def test_gate_failures(self) -> None:
        base = _market("kalshi", "k1", "Lakers vs Celtics")

        other_teams = _market("polymarket", "p1", "Lakers vs Knicks")
        self.assertIn("teams mismatch", self.pipeline.check_hard_gates(base, other_teams).reason)

        next_day = _market("polymarket", "p2", "Lakers vs Celtics", start=TIPOFF + timedelta(days=1))
        self.assertIn("time bucket", self.pipeline.check_hard_gates(base, next_day).reason)

        spread = _market("polymarket", "p3", "Lakers vs Celtics spread -5.5")
        self.assertIn("market type", self.pipeline.check_hard_gates(base, spread).reason)

        wide = _market("kalshi", "k2", "Lakers vs Celtics spread -9.5")
        self.assertIn("line mismatch", self.pipeline.check_hard_gates(spread, wide).reason)

    def test_candidates_use_bucket_and_event_keys(self) -> None:
        right = [
            _market("polymarket", "p1", "Los Angeles Lakers vs Boston Celtics", start=TIPOFF + timedelta(minutes=25)),
            _market("polymarket", "p2", "Lakers vs Knicks"),
        ]
        index = self.pipeline.build_index(right)
        found = self.pipeline.find_candidates(_market("kalshi", "k1", "Lakers vs Celtics"), index)
        self.assertEqual([m.market_id for m in found], ["p1"])

    def test_team_mismatch_rejected(self) -> None:
        left = _market("kalshi", "k1", "Lakers vs Celtics")
        right = _market("polymarket", "p1", "Lakers vs Knicks")
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["teams"], 0.5)
        decision = self.pipeline.should_auto_reject(left, right, result)
        self.assertTrue(decision.apply)
        self.assertEqual(decision.rule, "TEAMS_MISMATCH")

    def test_close_lines_not_rejected(self) -> None:
        left = _market("kalshi", "k1", "Lakers vs Celtics spread -5.5")
        right = _market("polymarket", "p1", "Lakers vs Celtics spread -6.0")
        result = self.pipeline.score(left, right)
        self.assertEqual(result.breakdown["line_value_match"], 1.0)
        self.assertFalse(self.pipeline.should_auto_reject(left, right, result).apply)


if __name__ == "__main__":
    unittest.main()

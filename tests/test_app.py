from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import patch

from market_linker.app import build_parser, cmd_classify, cmd_link, cmd_validate, format_run_result, has_fatal_errors
from market_linker.config import Settings
from market_linker.models import RunResult, RunStats


def _settings(**overrides) -> Settings:
    return Settings(**{"OPENAI_API_KEY": "", "LINKER_WORKERS": 2, "LINKER_LOOKBACK_HOURS": None, **overrides})


class ParserTests(unittest.TestCase):
    def test_link_defaults_to_dry_run(self) -> None:
        args = build_parser().parse_args(["link", "--topic", "rates"])
        self.assertEqual(args.command, "link")
        self.assertFalse(args.apply)
        self.assertIsNone(args.min_score)
        self.assertEqual((args.left_venue, args.right_venue), ("kalshi", "polymarket"))
        self.assertEqual(args.limit_left, 5000)

    def test_apply_and_dry_run_are_exclusive(self) -> None:
        with self.assertRaises(SystemExit):
            build_parser().parse_args(["link", "--topic", "rates", "--apply", "--dry-run"])

    def test_classify_requires_known_venue(self) -> None:
        args = build_parser().parse_args(["classify", "--venue", "polymarket"])
        self.assertEqual(args.limit, 10000)
        with self.assertRaises(SystemExit):
            build_parser().parse_args(["classify", "--venue", "betfair"])


class FormatRunResultTests(unittest.TestCase):
    def test_summary_lines(self) -> None:
        result = RunResult(
            topic="RATES",
            algo_version="rates@3.0.0",
            left_count=3,
            right_count=4,
            suggestions_created=2,
            auto_confirmed=1,
            errors=["No right markets found"],
            stats=RunStats(
                candidates_considered=9,
                hard_gate_failed=5,
                gate_failures_by_reason={"meeting month mismatch": 5},
            ),
        )
        text = format_run_result(result, dry_run=True)

        self.assertIn("RATES [rates@3.0.0] DRY RUN", text)
        self.assertIn("Markets: left=3 right=4", text)
        self.assertIn("Suggested: 2 | Auto-confirmed: 1 | Auto-rejected: 0", text)
        self.assertIn("  meeting month mismatch: 5", text)
        self.assertIn("Score distribution:", text)
        self.assertIn("  No right markets found", text)

    def test_fatal_errors(self) -> None:
        self.assertTrue(has_fatal_errors(RunResult(topic="T", algo_version="v", errors=["Fetch failed: timeout"])))
        self.assertTrue(has_fatal_errors(RunResult(topic="T", algo_version="v", errors=["Failed to write suggestion: x"])))
        self.assertFalse(has_fatal_errors(RunResult(topic="T", algo_version="v", errors=["No left markets found"])))


class CommandTests(unittest.TestCase):
    def test_unknown_topic(self) -> None:
        args = build_parser().parse_args(["link", "--topic", "astrology"])
        with patch("builtins.print"):
            self.assertEqual(cmd_link(args, _settings()), 1)

    def test_link_uses_topic_defaults(self) -> None:
        args = build_parser().parse_args(["link", "--topic", "sports", "--apply"])
        fake_result = RunResult(topic="SPORTS", algo_version="sports@3.1.0")
        with patch("market_linker.app.MongoStore") as store_cls, patch(
            "market_linker.app.run_pipeline", return_value=fake_result
        ) as run, patch("builtins.print"):
            code = cmd_link(args, _settings())

        self.assertEqual(code, 0)
        store_cls.assert_called_once()
        kwargs = run.call_args.kwargs
        self.assertEqual(kwargs["lookback_hours"], 168)
        self.assertEqual(kwargs["min_score"], 0.60)
        self.assertFalse(kwargs["dry_run"])
        self.assertEqual(kwargs["workers"], 2)

    def _link_lookback(self, argv, settings) -> int:
        args = build_parser().parse_args(argv)
        fake_result = RunResult(topic="SPORTS", algo_version="sports@3.1.0")
        with patch("market_linker.app.MongoStore"), patch(
            "market_linker.app.run_pipeline", return_value=fake_result
        ) as run, patch("builtins.print"):
            cmd_link(args, settings)
        return run.call_args.kwargs["lookback_hours"]

    def test_link_lookback_setting_overrides_topic_default(self) -> None:
        settings = _settings(LINKER_LOOKBACK_HOURS=48)
        self.assertEqual(self._link_lookback(["link", "--topic", "sports"], settings), 48)
        self.assertEqual(self._link_lookback(["link", "--topic", "sports", "--lookback-hours", "12"], settings), 12)

    def test_classify_lookback_precedence(self) -> None:
        for argv, overrides, expected in (
            (["classify", "--venue", "polymarket"], {}, 720),
            (["classify", "--venue", "polymarket"], {"LINKER_LOOKBACK_HOURS": 96}, 96),
            (["classify", "--venue", "polymarket", "--lookback-hours", "6"], {"LINKER_LOOKBACK_HOURS": 96}, 6),
        ):
            with self.subTest(argv=argv, overrides=overrides):
                args = build_parser().parse_args(argv)
                with patch("market_linker.app.MongoStore"), patch(
                    "market_linker.app.classify_markets", return_value={}
                ) as classify, patch("builtins.print"):
                    self.assertEqual(cmd_classify(args, _settings(**overrides)), 0)
                self.assertEqual(classify.call_args.kwargs["lookback_hours"], expected)

    def test_validate_requires_api_key(self) -> None:
        args = SimpleNamespace(min_score=None, limit=None, apply=False)
        with patch("market_linker.app.MongoStore") as store_cls, patch("builtins.print"):
            self.assertEqual(cmd_validate(args, _settings()), 1)
        store_cls.assert_not_called()


if __name__ == "__main__":
    unittest.main()

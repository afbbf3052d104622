from __future__ import annotations

import unittest
from datetime import datetime, timezone

from market_linker.engine.extractor import (
    Comparator,
    DatePrecision,
    GameType,
    SignalExtractor,
    count_entity_overlap,
    extract_comparator,
    extract_dates,
    extract_numbers,
    jaccard,
)


class SignalExtractorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.extractor = SignalExtractor()

    def test_bitcoin_price_target(self) -> None:
        signals = self.extractor.extract("Bitcoin above $100,000 on January 31, 2026")

        self.assertIn("BITCOIN", signals.organizations)
        usd = [n for n in signals.numbers if n.unit == "USD"]
        self.assertEqual(len(usd), 1)
        self.assertEqual(usd[0].value, 100000.0)
        day_dates = [d for d in signals.dates if d.precision == DatePrecision.DAY]
        self.assertEqual(len(day_dates), 1)
        self.assertEqual((day_dates[0].year, day_dates[0].month, day_dates[0].day), (2026, 1, 31))
        self.assertEqual(signals.comparator, Comparator.ABOVE)
        self.assertEqual(signals.game_type, GameType.CRYPTO)

    def test_team_aliases_resolve_to_same_canonical_ids(self) -> None:
        long_form = self.extractor.extract("Team Vitality vs Team Falcons")
        short_form = self.extractor.extract("VIT vs FAL")

        self.assertIn("TEAM_VITALITY", long_form.teams)
        self.assertIn("TEAM_FALCONS", long_form.teams)
        self.assertEqual(set(long_form.teams), set(short_form.teams))

    def test_empty_title_gives_neutral_signals(self) -> None:
        signals = self.extractor.extract("")
        self.assertEqual(signals.teams, [])
        self.assertEqual(signals.people, [])
        self.assertEqual(signals.organizations, [])
        self.assertEqual(signals.game_type, GameType.UNKNOWN)

    def test_game_type_falls_back_to_team_domain(self) -> None:
        self.assertEqual(self.extractor.extract("Sinner vs Alcaraz").game_type, GameType.TENNIS)
        self.assertEqual(self.extractor.extract("Makhachev vs Topuria").game_type, GameType.UFC)

    def test_confidence_is_capped(self) -> None:
        signals = self.extractor.extract("Team Vitality vs Team Falcons over 2.5 maps on March 3, 2026 at $5k")
        self.assertLessEqual(signals.confidence, 1.0)
        self.assertGreater(signals.confidence, 0.5)


class NumberExtractionTests(unittest.TestCase):
    def test_suffix_and_word_multipliers(self) -> None:
        values = {n.value for n in extract_numbers("ETH to $5k or 2 billion in volume")}
        self.assertIn(5000.0, values)
        self.assertIn(2e9, values)

    def test_bare_years_are_not_prices(self) -> None:
        self.assertEqual(extract_numbers("Will it happen by 2026?"), [])

    def test_dollar_amounts_in_year_range_are_prices(self) -> None:
        numbers = extract_numbers("Will Ethereum close above $2,050 on March 3?")
        self.assertEqual([(n.value, n.unit) for n in numbers], [(2050.0, "USD")])
        gold = extract_numbers("Gold above $1,950 by June")
        self.assertEqual([(n.value, n.unit) for n in gold], [(1950.0, "USD")])

    def test_percent_and_bps(self) -> None:
        numbers = extract_numbers("Rate above 4.5% after a 25 bps cut")
        units = {(n.value, n.unit) for n in numbers}
        self.assertIn((4.5, "%"), units)
        self.assertIn((25.0, "bps"), units)


class ComparatorTests(unittest.TestCase):
    def test_comparators(self) -> None:
        cases = (
            ("BTC between $90k and $100k on Friday?", Comparator.BETWEEN),
            ("Will ETH fall below $3,000?", Comparator.BELOW),
            ("Will Bitcoin not exceed $100k this year?", Comparator.BELOW),
            ("Will the Chiefs win the Super Bowl?", Comparator.WIN),
            ("Bitcoin above $100k?", Comparator.ABOVE),
            ("Who hosts the next Oscars?", Comparator.UNKNOWN),
        )
        for title, expected in cases:
            with self.subTest(title=title):
                self.assertEqual(extract_comparator(title), expected)


class DateExtractionTests(unittest.TestCase):
    def test_month_day_rolls_forward_past_90_days(self) -> None:
        ref = datetime(2026, 11, 20, tzinfo=timezone.utc)
        dates = extract_dates("Closes on January 5", reference=ref)
        self.assertEqual(len(dates), 1)
        self.assertEqual((dates[0].year, dates[0].month, dates[0].day), (2027, 1, 5))

    def test_day_suppresses_same_month_year(self) -> None:
        dates = extract_dates("March 3, 2026 vs March 2026")
        self.assertEqual([d.precision for d in dates], [DatePrecision.DAY])

    def test_iso_date(self) -> None:
        dates = extract_dates("Settles 2026-03-05")
        self.assertEqual(len(dates), 1)
        self.assertEqual(dates[0].precision, DatePrecision.DAY)
        self.assertEqual((dates[0].year, dates[0].month, dates[0].day), (2026, 3, 5))

    def test_quarter(self) -> None:
        dates = extract_dates("GDP growth in Q2 2026")
        self.assertEqual(len(dates), 1)
        self.assertEqual(dates[0].precision, DatePrecision.QUARTER)
        self.assertEqual(dates[0].quarter, 2)

    def test_bare_year_needs_deadline_word(self) -> None:
        self.assertEqual(extract_dates("Top 2026 prospects"), [])
        dated = extract_dates("Recession by 2026?")
        self.assertEqual(len(dated), 1)
        self.assertEqual(dated[0].precision, DatePrecision.YEAR)


class OverlapTests(unittest.TestCase):
    def test_each_number_matches_once(self) -> None:
        extractor = SignalExtractor()
        a = extractor.extract("Bitcoin above $100k and $100k")
        b = extractor.extract("BTC above $100,000")
        overlap = count_entity_overlap(a, b)
        self.assertEqual(overlap.organizations, ["BITCOIN"])
        self.assertEqual(len(overlap.numbers), 1)

    def test_jaccard_empty(self) -> None:
        self.assertEqual(jaccard([], []), 0.0)
        self.assertAlmostEqual(jaccard(["a", "b"], ["b", "c"]), 1 / 3)


if __name__ == "__main__":
    unittest.main()

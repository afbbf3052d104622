from __future__ import annotations

import unittest

from market_linker.engine.taxonomy import classify, classify_kalshi_ticker, is_compatible, series_ticker_from_event
from market_linker.models import CanonicalTopic, ClassificationSource


class TopicClassifierTests(unittest.TestCase):
    def test_classify_is_deterministic(self) -> None:
        args = ("kalshi", "Will CPI rise above 3% in March 2026?", "Economics", {"tags": ["Inflation"]})
        self.assertEqual(classify(*args), classify(*args))

    def test_bitcoin_by_ticker_on_kalshi(self) -> None:
        result = classify(
            "kalshi",
            "Bitcoin above $100,000 on January 31, 2026",
            metadata={"seriesTicker": "KXBTC", "eventTicker": "KXBTC-26JAN31"},
        )
        self.assertEqual(result.topic, CanonicalTopic.CRYPTO_DAILY)
        self.assertEqual(result.source, ClassificationSource.TICKER)

    def test_bitcoin_by_title_on_polymarket(self) -> None:
        result = classify("polymarket", "Bitcoin above $100,000 on January 31, 2026")
        self.assertEqual(result.topic, CanonicalTopic.CRYPTO_DAILY)
        self.assertEqual(result.source, ClassificationSource.TITLE)

    def test_intraday_ticker(self) -> None:
        hit = classify_kalshi_ticker("KXBTC15MIN")
        self.assertIsNotNone(hit)
        self.assertEqual(hit.topic, CanonicalTopic.CRYPTO_INTRADAY)

    def test_commodity_tag_requires_exact_match(self) -> None:
        gold = classify("kalshi", "Gold above $3,000?", metadata={"tags": ["Gold"]})
        self.assertEqual(gold.topic, CanonicalTopic.COMMODITIES)
        self.assertEqual(gold.source, ClassificationSource.TAG)

        energy = classify("kalshi", "Will the grid hold this summer?", metadata={"tags": ["Energy"]})
        self.assertNotEqual(energy.topic, CanonicalTopic.COMMODITIES)

    def test_gold_card_ticker_is_not_commodities(self) -> None:
        self.assertIsNone(classify_kalshi_ticker("KXGOLDCARD"))
        self.assertEqual(classify_kalshi_ticker("KXGOLD").topic, CanonicalTopic.COMMODITIES)

    def test_rates_override_on_macro_category(self) -> None:
        result = classify("kalshi", "Will the Fed cut the interest rate in March?", category="Economics")
        self.assertEqual(result.topic, CanonicalTopic.RATES)

        plain = classify("kalshi", "Will unemployment exceed 5%?", category="Economics")
        self.assertEqual(plain.topic, CanonicalTopic.MACRO)
        self.assertEqual(plain.source, ClassificationSource.CATEGORY)

    def test_unknown_fallback(self) -> None:
        result = classify("kalshi", "Will it snow in a teacup?")
        self.assertEqual(result.topic, CanonicalTopic.UNKNOWN)
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.source, ClassificationSource.FALLBACK)

    def test_series_from_event_ticker(self) -> None:
        self.assertEqual(series_ticker_from_event("KXBTC-26JAN31"), "KXBTC")
        self.assertEqual(series_ticker_from_event(""), "")


class CompatibilityTests(unittest.TestCase):
    def test_same_topic_compatible(self) -> None:
        self.assertTrue(is_compatible(CanonicalTopic.MACRO, CanonicalTopic.MACRO))

    def test_daily_and_intraday_incompatible(self) -> None:
        self.assertFalse(is_compatible(CanonicalTopic.CRYPTO_DAILY, CanonicalTopic.CRYPTO_INTRADAY))

    def test_unknown_never_compatible(self) -> None:
        self.assertFalse(is_compatible(CanonicalTopic.UNKNOWN, CanonicalTopic.UNKNOWN))


if __name__ == "__main__":
    unittest.main()

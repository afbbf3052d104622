from __future__ import annotations

import unittest

from market_linker.engine.dispatcher import PipelineRegistry, default_registry, parse_topic, topic_defaults
from market_linker.engine.pipelines.commodities import CommoditiesPipeline
from market_linker.engine.pipelines.crypto import CryptoDailyPipeline, CryptoIntradayPipeline
from market_linker.engine.pipelines.elections import ElectionsPipeline
from market_linker.engine.pipelines.macro import MacroPipeline
from market_linker.engine.pipelines.rates import RatesPipeline
from market_linker.engine.pipelines.universal import UniversalPipeline
from market_linker.models import CanonicalTopic


class DispatcherTests(unittest.TestCase):
    def test_default_registry_covers_every_topic(self) -> None:
        registry = default_registry()
        for topic in CanonicalTopic:
            if topic == CanonicalTopic.UNKNOWN:
                self.assertFalse(registry.has(topic))
                continue
            self.assertTrue(registry.has(topic), topic.value)

        self.assertIsInstance(registry.get(CanonicalTopic.RATES), RatesPipeline)
        self.assertIsInstance(registry.get(CanonicalTopic.ELECTIONS), ElectionsPipeline)
        self.assertIsInstance(registry.get(CanonicalTopic.CRYPTO_DAILY), CryptoDailyPipeline)
        self.assertIsInstance(registry.get(CanonicalTopic.CRYPTO_INTRADAY), CryptoIntradayPipeline)
        self.assertIsInstance(registry.get(CanonicalTopic.COMMODITIES), CommoditiesPipeline)
        self.assertIsInstance(registry.get(CanonicalTopic.CLIMATE), UniversalPipeline)
        self.assertEqual(registry.get(CanonicalTopic.ENTERTAINMENT).topic, CanonicalTopic.ENTERTAINMENT)

    def test_register_replaces(self) -> None:
        registry = PipelineRegistry()
        first = MacroPipeline()
        second = MacroPipeline()
        registry.register(first)
        registry.register(second)
        self.assertIs(registry.get(CanonicalTopic.MACRO), second)
        self.assertEqual(registry.registered_topics(), [CanonicalTopic.MACRO])
        self.assertIsNone(registry.get(CanonicalTopic.SPORTS))

    def test_parse_topic(self) -> None:
        self.assertEqual(parse_topic("RATES"), CanonicalTopic.RATES)
        self.assertEqual(parse_topic("crypto-intraday"), CanonicalTopic.CRYPTO_INTRADAY)
        self.assertEqual(parse_topic("fed"), CanonicalTopic.RATES)
        self.assertEqual(parse_topic(" Politics "), CanonicalTopic.ELECTIONS)
        self.assertEqual(parse_topic("commodities"), CanonicalTopic.COMMODITIES)
        self.assertIsNone(parse_topic("astrology"))
        self.assertIsNone(parse_topic(""))

    def test_topic_defaults(self) -> None:
        sports = topic_defaults(CanonicalTopic.SPORTS)
        self.assertEqual((sports.min_score, sports.lookback_hours), (0.60, 168))
        macro = topic_defaults(CanonicalTopic.MACRO)
        self.assertEqual(macro.min_score, 0.55)
        universal = topic_defaults(CanonicalTopic.CLIMATE)
        self.assertEqual((universal.min_score, universal.lookback_hours), (0.50, 720))
        intraday = topic_defaults(CanonicalTopic.CRYPTO_INTRADAY)
        self.assertEqual((intraday.min_score, intraday.lookback_hours), (0.60, 24))
        self.assertEqual(topic_defaults(CanonicalTopic.COMMODITIES).min_score, 0.55)


if __name__ == "__main__":
    unittest.main()

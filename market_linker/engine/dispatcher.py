from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from market_linker.engine.extractor import SignalExtractor
from market_linker.engine.pipelines.base import DedupLimits, Pipeline
from market_linker.engine.pipelines.commodities import CommoditiesPipeline
from market_linker.engine.pipelines.crypto import CryptoDailyPipeline, CryptoIntradayPipeline
from market_linker.engine.pipelines.elections import ElectionsPipeline
from market_linker.engine.pipelines.geopolitics import GeopoliticsPipeline
from market_linker.engine.pipelines.macro import MacroPipeline
from market_linker.engine.pipelines.rates import RatesPipeline
from market_linker.engine.pipelines.sports import SportsPipeline
from market_linker.engine.pipelines.universal import UniversalPipeline
from market_linker.knowledge.registry import AliasRegistry
from market_linker.models import CanonicalTopic

logger = logging.getLogger(__name__)

UNIVERSAL_TOPICS = (
    CanonicalTopic.CLIMATE,
    CanonicalTopic.ENTERTAINMENT,
)


@dataclass(frozen=True)
class TopicDefaults:
    min_score: float
    lookback_hours: int
    limits: DedupLimits


class PipelineRegistry:
    def __init__(self) -> None:
        self._pipelines: Dict[CanonicalTopic, Pipeline] = {}

    def register(self, pipeline: Pipeline) -> None:
        if pipeline.topic in self._pipelines:
            logger.info("Replacing pipeline for %s", pipeline.topic.value)
        self._pipelines[pipeline.topic] = pipeline

    def get(self, topic: CanonicalTopic) -> Optional[Pipeline]:
        return self._pipelines.get(topic)

    def has(self, topic: CanonicalTopic) -> bool:
        return topic in self._pipelines

    def registered_topics(self) -> List[CanonicalTopic]:
        return list(self._pipelines)


def default_registry(alias_registry: Optional[AliasRegistry] = None) -> PipelineRegistry:
    extractor = SignalExtractor(alias_registry)
    registry = PipelineRegistry()
    registry.register(RatesPipeline())
    registry.register(SportsPipeline())
    registry.register(MacroPipeline())
    registry.register(GeopoliticsPipeline())
    registry.register(CryptoDailyPipeline())
    registry.register(CryptoIntradayPipeline())
    registry.register(ElectionsPipeline(extractor.registry.people))
    registry.register(CommoditiesPipeline())
    for topic in UNIVERSAL_TOPICS:
        registry.register(UniversalPipeline(topic, extractor=extractor))
    return registry


def parse_topic(text: str) -> Optional[CanonicalTopic]:
    if not text:
        return None
    upper = text.strip().upper().replace("-", "_")
    if upper in CanonicalTopic.__members__:
        return CanonicalTopic[upper]
    return _TOPIC_ALIASES.get(text.strip().lower())


def topic_defaults(topic: CanonicalTopic) -> TopicDefaults:
    return _TOPIC_DEFAULTS.get(topic, _UNIVERSAL_DEFAULTS)


_TOPIC_ALIASES: Dict[str, CanonicalTopic] = {
    "crypto": CanonicalTopic.CRYPTO_DAILY,
    "crypto_daily": CanonicalTopic.CRYPTO_DAILY,
    "crypto_intraday": CanonicalTopic.CRYPTO_INTRADAY,
    "macro": CanonicalTopic.MACRO,
    "rates": CanonicalTopic.RATES,
    "fed": CanonicalTopic.RATES,
    "elections": CanonicalTopic.ELECTIONS,
    "politics": CanonicalTopic.ELECTIONS,
    "commodities": CanonicalTopic.COMMODITIES,
    "climate": CanonicalTopic.CLIMATE,
    "weather": CanonicalTopic.CLIMATE,
    "sports": CanonicalTopic.SPORTS,
}

_UNIVERSAL_DEFAULTS = TopicDefaults(min_score=0.50, lookback_hours=720, limits=UniversalPipeline.default_limits)

_TOPIC_DEFAULTS: Dict[CanonicalTopic, TopicDefaults] = {
    CanonicalTopic.RATES: TopicDefaults(min_score=0.60, lookback_hours=720, limits=RatesPipeline.default_limits),
    CanonicalTopic.SPORTS: TopicDefaults(min_score=0.60, lookback_hours=168, limits=SportsPipeline.default_limits),
    CanonicalTopic.MACRO: TopicDefaults(min_score=0.55, lookback_hours=720, limits=MacroPipeline.default_limits),
    CanonicalTopic.GEOPOLITICS: TopicDefaults(
        min_score=0.55, lookback_hours=720, limits=GeopoliticsPipeline.default_limits
    ),
    CanonicalTopic.CRYPTO_DAILY: TopicDefaults(
        min_score=0.60, lookback_hours=168, limits=CryptoDailyPipeline.default_limits
    ),
    CanonicalTopic.CRYPTO_INTRADAY: TopicDefaults(
        min_score=0.60, lookback_hours=24, limits=CryptoIntradayPipeline.default_limits
    ),
    CanonicalTopic.ELECTIONS: TopicDefaults(
        min_score=0.50, lookback_hours=720, limits=ElectionsPipeline.default_limits
    ),
    CanonicalTopic.COMMODITIES: TopicDefaults(
        min_score=0.55, lookback_hours=720, limits=CommoditiesPipeline.default_limits
    ),
}

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Venue(str, Enum):
    KALSHI = "kalshi"
    POLYMARKET = "polymarket"


class CanonicalTopic(str, Enum):
    CRYPTO_DAILY = "CRYPTO_DAILY"
    CRYPTO_INTRADAY = "CRYPTO_INTRADAY"
    MACRO = "MACRO"
    RATES = "RATES"
    ELECTIONS = "ELECTIONS"
    GEOPOLITICS = "GEOPOLITICS"
    SPORTS = "SPORTS"
    COMMODITIES = "COMMODITIES"
    CLIMATE = "CLIMATE"
    ENTERTAINMENT = "ENTERTAINMENT"
    UNKNOWN = "UNKNOWN"


class ClassificationSource(str, Enum):
    TICKER = "ticker"
    CATEGORY = "category"
    TAG = "tag"
    TITLE = "title"
    FALLBACK = "fallback"


class LinkStatus(str, Enum):
    SUGGESTED = "suggested"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    PENDING_REVIEW = "pending_review"


class Tier(str, Enum):
    STRONG = "STRONG"
    WEAK = "WEAK"


def clamp_score(value: Any) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(x):
        return 0.0
    if math.isinf(x):
        return 1.0 if x > 0 else 0.0
    return min(max(x, 0.0), 1.0)


class Market(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue: str
    market_id: str
    title: str
    category: Optional[str] = None
    close_time: Optional[datetime] = None
    open_time: Optional[datetime] = None
    status: str = "active"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    derived_topic: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.venue}:{self.market_id}"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: CanonicalTopic
    confidence: float = Field(ge=0.0, le=1.0)
    source: ClassificationSource
    reason: str = ""


class ScoreResult(BaseModel):
    score: float
    tier: Tier = Tier.WEAK
    breakdown: Dict[str, float] = Field(default_factory=dict)
    reason: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_score(value)


class LinkWriteRequest(BaseModel):
    left_venue: str
    left_market_id: str
    right_venue: str
    right_market_id: str
    topic: str
    status: LinkStatus = LinkStatus.SUGGESTED
    score: float
    reason: str = ""
    algo_version: str


class RunStats(BaseModel):
    candidates_considered: int = 0
    hard_gate_failed: int = 0
    scored: int = 0
    below_min_score: int = 0
    after_dedup: int = 0
    errors_count: int = 0
    gate_failures_by_reason: Dict[str, int] = Field(default_factory=dict)
    score_distribution: Dict[str, int] = Field(
        default_factory=lambda: {"0.9+": 0, "0.8-0.9": 0, "0.7-0.8": 0, "0.6-0.7": 0, "<0.6": 0}
    )


class RunResult(BaseModel):
    topic: str
    algo_version: str
    left_count: int = 0
    right_count: int = 0
    suggestions_created: int = 0
    auto_confirmed: int = 0
    auto_rejected: int = 0
    duration_ms: int = 0
    errors: List[str] = Field(default_factory=list)
    stats: RunStats = Field(default_factory=RunStats)
    writes: List[LinkWriteRequest] = Field(default_factory=list)


class ValidationResult(BaseModel):
    verdict: str = "uncertain"
    confidence: float = 0.0
    raw: str = ""

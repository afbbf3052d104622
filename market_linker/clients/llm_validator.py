from __future__ import annotations

import json
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Protocol

from openai import OpenAI

from market_linker.models import LinkStatus, ValidationResult

logger = logging.getLogger(__name__)

VALIDATOR_VERSION = "llm_validate@1.0"

CONFIRM = "confirm"
REJECT = "reject"
UNCERTAIN = "uncertain"


class LinkValidationStore(Protocol):
    def list_links(
        self,
        status: LinkStatus = LinkStatus.SUGGESTED,
        topic: Optional[str] = None,
        min_score: float = 0.0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]: ...

    def update_link_status(self, link_id: str, status: LinkStatus, reason: str) -> bool: ...

    def get_market(self, venue: str, market_id: str) -> Any: ...


class LLMLinkValidator:
    def __init__(self, api_key: str, model: str, timeout_seconds: int = 20):
        self.api_key = api_key.strip()
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = OpenAI(api_key=self.api_key, timeout=timeout_seconds) if self.api_key else None

    def enabled(self) -> bool:
        return self._client is not None

    def validate_pair(self, left_title: str, right_title: str) -> ValidationResult:
        if not self.enabled():
            return ValidationResult(verdict=UNCERTAIN, confidence=0.0, raw="")

        system = (
            "You compare two prediction-market contracts listed on different exchanges. "
            "Answer YES only if both resolve on the same underlying event with the same outcome condition, "
            "entities, thresholds and dates. Answer NO if they differ in any of those. "
            "Answer UNCERTAIN if the titles do not give enough information. "
            "Return strict JSON only with schema: {\"answer\":\"YES|NO|UNCERTAIN\",\"confidence\":0.0-1.0}"
        )
        user = f"market_a={left_title}\nmarket_b={right_title}"

        try:
            response = self._client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
            raw_text = (response.output_text or "").strip()
        except Exception as exc:
            logger.warning("LLM link validation failed: %s | a=%s | b=%s", str(exc), left_title[:120], right_title[:120])
            return ValidationResult(verdict=UNCERTAIN, confidence=0.0, raw="")
        return parse_reply(raw_text)


def parse_reply(raw_text: str) -> ValidationResult:
    """Map a model reply to confirm / reject / uncertain.

    Accepts the JSON shape requested in the prompt, and falls back to a bare
    leading YES / NO / UNCERTAIN word.
    """
    text = (raw_text or "").strip()
    if not text:
        return ValidationResult(verdict=UNCERTAIN, confidence=0.0, raw="")

    payload = _extract_json(text)
    answer = str(payload.get("answer") or "").strip().upper() if payload else ""
    confidence = _to_confidence(payload.get("confidence")) if payload else None
    if not answer:
        m = _ANSWER_RE.match(text)
        answer = m.group(1).upper() if m else ""

    verdict = _VERDICTS.get(answer, UNCERTAIN)
    if confidence is None:
        confidence = 0.0 if verdict == UNCERTAIN else 0.7
    return ValidationResult(verdict=verdict, confidence=confidence, raw=text[:500])


def validate_links(
    store: LinkValidationStore,
    validator: LLMLinkValidator,
    *,
    min_score: float = 0.75,
    limit: int = 100,
    batch_size: int = 5,
    batch_delay_seconds: float = 3.0,
    apply: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, int]:
    counts = {"processed": 0, "confirmed": 0, "rejected": 0, "uncertain": 0, "errors": 0}
    if not validator.enabled():
        logger.info("LLM validator disabled, nothing to do")
        return counts

    links = store.list_links(LinkStatus.SUGGESTED, min_score=min_score, limit=limit)
    batch_size = max(1, int(batch_size))
    batches = [links[i : i + batch_size] for i in range(0, len(links), batch_size)]

    for n, batch in enumerate(batches):
        if n > 0 and batch_delay_seconds > 0:
            sleep(batch_delay_seconds)
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            outcomes = list(pool.map(lambda link: _validate_one(store, validator, link, apply), batch))
        for outcome in outcomes:
            counts["processed"] += 1
            counts[outcome] += 1

    logger.info("LLM validation complete", extra={**counts, "apply": apply})
    return counts


def _validate_one(store: LinkValidationStore, validator: LLMLinkValidator, link: Dict[str, Any], apply: bool) -> str:
    link_id = str(link.get("id") or "")
    try:
        left = store.get_market(str(link.get("left_venue")), str(link.get("left_market_id")))
        right = store.get_market(str(link.get("right_venue")), str(link.get("right_market_id")))
        if left is None or right is None:
            raise LookupError(f"market missing for link {link_id}")

        result = validator.validate_pair(left.title, right.title)
        if result.verdict == CONFIRM:
            if apply:
                reason = f"{VALIDATOR_VERSION}:{validator.model}:{result.confidence:.2f}"
                store.update_link_status(link_id, LinkStatus.CONFIRMED, reason)
            return "confirmed"
        if result.verdict == REJECT:
            if apply:
                reason = f"{VALIDATOR_VERSION}:{validator.model}:reject:{result.confidence:.2f}"
                store.update_link_status(link_id, LinkStatus.REJECTED, reason)
            return "rejected"
        return "uncertain"
    except Exception as exc:
        logger.warning("Validation failed for link %s: %s", link_id, exc)
        return "errors"


def _extract_json(text: str) -> dict:
    if not text:
        return {}

    try:
        payload = json.loads(text)
        if isinstance(payload, dict):
            return payload
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        return {}

    try:
        payload = json.loads(match.group(0))
        return payload if isinstance(payload, dict) else {}
    except json.JSONDecodeError:
        return {}


def _to_confidence(value: object) -> Optional[float]:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if x != x:
        return None
    return min(max(x, 0.0), 1.0)


_ANSWER_RE = re.compile(r"^\W*(yes|no|uncertain)\b", re.IGNORECASE)

_VERDICTS = {
    "YES": CONFIRM,
    "NO": REJECT,
    "UNCERTAIN": UNCERTAIN,
}

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class NotFoundError(Exception):
    """Raised for HTTP 404 so callers can treat it as a lookup miss."""


def _is_transient(exc: BaseException) -> bool:
    return not isinstance(exc, NotFoundError)


class HttpClient:
    def __init__(self, timeout: int = 15):
        self._session = requests.Session()
        self._timeout = timeout

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=8),
        stop=stop_after_attempt(3),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        response = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
        if response.status_code == 404:
            raise NotFoundError(url)
        response.raise_for_status()
        return response.json()

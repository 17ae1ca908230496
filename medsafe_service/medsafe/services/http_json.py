import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from medsafe.core.api_config import (
    CACHE_MAX_ITEMS,
    HTTP_TIMEOUT_S,
    OPENFDA_CACHE_TTL_S,
    OPENFDA_RATE_LIMIT,
    RATE_LIMIT_WINDOW_S,
    RXNAV_CACHE_TTL_S,
)
from medsafe.utils.rate_limiter import RateLimiter
from medsafe.utils.search_cache import SearchCache

logger = logging.getLogger(__name__)


class DirectoryError(RuntimeError):
    """Upstream could not be reached or answered with something unusable."""


@dataclass
class DirectoryContext:
    """
    State shared by every upstream lookup in a process: one rate limiter and
    the lookup caches. Build one and hand it to each client.
    """
    rate_limiter: RateLimiter
    search_cache: SearchCache
    label_cache: SearchCache
    rxnav_cache: SearchCache

    @classmethod
    def from_settings(cls) -> "DirectoryContext":
        return cls(
            rate_limiter=RateLimiter(OPENFDA_RATE_LIMIT, RATE_LIMIT_WINDOW_S),
            search_cache=SearchCache(OPENFDA_CACHE_TTL_S, CACHE_MAX_ITEMS),
            label_cache=SearchCache(OPENFDA_CACHE_TTL_S, CACHE_MAX_ITEMS),
            rxnav_cache=SearchCache(RXNAV_CACHE_TTL_S, CACHE_MAX_ITEMS),
        )


class JsonHttpClient:
    """GET-and-decode JSON against one base URL, throttled by the context limiter."""

    source_name = "upstream"

    def __init__(
        self,
        context: DirectoryContext,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout_s: float = HTTP_TIMEOUT_S,
    ):
        self.context = context
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Returns the decoded body, or None when upstream answers 404
        (openFDA and RxNav both use 404 for "no matches").
        Raises DirectoryError on transport, HTTP or decode failure.
        """
        await self.context.rate_limiter.acquire()

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = await asyncio.to_thread(self.session.get, url, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise DirectoryError(f"{self.source_name} request failed: {e}") from e

        if r.status_code == 404:
            return None
        if r.status_code >= 400:
            raise DirectoryError(f"{self.source_name} {r.status_code}: {r.text[:200]}")

        try:
            data = r.json()
        except ValueError as e:
            raise DirectoryError(f"Invalid JSON from {self.source_name}: {r.text[:200]}") from e

        if not isinstance(data, dict):
            raise DirectoryError(f"Unexpected {self.source_name} response type: {type(data).__name__}")
        return data

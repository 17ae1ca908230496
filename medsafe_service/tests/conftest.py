"""
Shared fixtures: a fake requests session, a controllable clock and a
DirectoryContext wired to both.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import requests

from medsafe.services.http_json import DirectoryContext
from medsafe.utils.rate_limiter import RateLimiter
from medsafe.utils.search_cache import SearchCache


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else str(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Stands in for requests.Session; routes every GET through ``responder``."""

    def __init__(self, responder: Callable[[str, Dict[str, Any]], Any]):
        self.responder = responder
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get(self, url, params=None, timeout=None):
        params = dict(params or {})
        self.calls.append((url, params))
        result = self.responder(url, params)
        if isinstance(result, Exception):
            raise result
        return result


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def label_result(brand: str, generic: str, interactions: List[str], **extra) -> Dict[str, Any]:
    return {
        "openfda": {"brand_name": [brand], "generic_name": [generic], "manufacturer_name": ["Acme Pharma"]},
        "active_ingredient": [generic.upper()],
        "drug_interactions": interactions,
        **extra,
    }


def labels_responder(labels: Dict[str, Dict[str, Any]]) -> Callable[[str, Dict[str, Any]], Any]:
    """Answer openFDA label lookups from a name -> result mapping; 404 otherwise."""

    def respond(url, params):
        search = params.get("search", "")
        for name, result in labels.items():
            if f'"{name}"' in search:
                return FakeResponse(200, {"results": [result]})
        return FakeResponse(404, {"error": {"code": "NOT_FOUND"}})

    return respond


def connection_error(url, params):
    return requests.ConnectionError("network unreachable")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def context(clock):
    return DirectoryContext(
        rate_limiter=RateLimiter(240, 60, clock=clock, sleep=clock.sleep),
        search_cache=SearchCache(600, clock=clock),
        label_cache=SearchCache(600, clock=clock),
        rxnav_cache=SearchCache(300, clock=clock),
    )

"""Shared pytest fixtures for reviewquest tests.

Provides an in-process backend built on httpx.MockTransport so services can
be exercised without a network.
"""

import copy
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from reviewquest.services.cache import CacheManager
from reviewquest.services.client import ServiceClient
from reviewquest.services.retry import quest_retry_policy
from reviewquest.settings import Settings

EMPTY_QUESTS_PAGE: dict[str, Any] = {
    "quests": [],
    "hasMore": False,
    "totalCount": 0,
    "overview": {
        "stateBreakdown": {"open": 0, "inProgress": 0, "done": 0},
        "priorityBreakdown": {"high": 0, "medium": 0, "low": 0},
        "typeBreakdown": {
            "bugFix": 0,
            "featureRequest": 0,
            "improvement": 0,
            "research": 0,
            "other": 0,
        },
    },
}

SAMPLE_QUEST: dict[str, Any] = {
    "_id": "quest-1",
    "title": "Fix login crash",
    "details": "Reported by several reviews",
    "type": "BUG_FIX",
    "priority": "HIGH",
    "state": "OPEN",
    "createdAt": "2024-05-01T10:00:00Z",
    "updatedAt": "2024-05-01T10:00:00Z",
}


class FakeBackend:
    """Scripted responder recording every request it receives.

    Each queued item is either an httpx.Response, an exception to raise, or
    a callable taking the request. Once the script runs out, the last item
    is repeated.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._script: list[Any] = []

    def queue(self, *items: Any) -> "FakeBackend":
        self._script.extend(items)
        return self

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._script:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")

        item = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, httpx.Response):
            # Fresh copy so a repeated item is never sent twice
            return httpx.Response(
                item.status_code, headers=item.headers, content=item.content
            )
        return item(request)


def json_response(status: int, body: Any = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, json=body)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def client(backend: FakeBackend):
    client = ServiceClient(
        base_url="http://testserver",
        transport=httpx.MockTransport(backend),
    )
    yield client
    await client.close()


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager()


@pytest.fixture
def instant_quest_policy():
    """Quest retry policy with the production attempt count but no delays."""
    return quest_retry_policy(Settings(), initial_delay=0.0, max_delay=0.0)


@pytest.fixture
def empty_quests_page() -> dict[str, Any]:
    return copy.deepcopy(EMPTY_QUESTS_PAGE)


@pytest.fixture
def sample_quest() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_QUEST)


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    return json_response

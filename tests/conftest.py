import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from github_insights.api_cache import ResponseCache
from github_insights.main import create_app
from github_insights.settings import Settings


BASE_URL = "https://api.github.test"


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGitHub:
    """Canned GitHub responses keyed by URL path; records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []
        self.error: type[httpx.HTTPError] | None = None
        self.delay = 0.0

    def add(self, path: str, payload: object, status_code: int = 200) -> None:
        self.routes[path] = (status_code, payload)

    def calls(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error("upstream unavailable", request=request)

        status_code, payload = self.routes.get(
            request.url.path, (404, {"message": "Not Found"})
        )
        if payload is None:
            return httpx.Response(status_code)
        if isinstance(payload, bytes):
            return httpx.Response(status_code, content=payload)
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache(fake_github: FakeGitHub, clock: FakeClock):
    def _make(**kwargs) -> ResponseCache:
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))
        return ResponseCache(client, clock=clock, **kwargs)

    return _make


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        github_api_base_url=BASE_URL,
        sentry_dsn=None,
        rate_limit_per_minute=1_000,
    )


@pytest.fixture
def api_client(fake_github: FakeGitHub, test_settings: Settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))
    cache = ResponseCache(client, dedupe_in_flight=True)
    app = create_app(test_settings, cache=cache)

    with TestClient(app) as test_client:
        yield test_client

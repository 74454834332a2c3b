import asyncio
import gc

import httpx
import pytest

from github_insights.api_cache import FetchError
from github_insights.api_cache import ResponseCache


URL = "https://api.github.test/users/octocat"
PATH = "/users/octocat"


@pytest.mark.asyncio
async def test_second_fetch_within_ttl_is_served_from_cache(
    make_cache, fake_github, clock
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()

    first = await cache.fetch(URL)
    clock.advance(299)
    second = await cache.fetch(URL)

    assert second is first
    assert fake_github.calls(PATH) == 1


@pytest.mark.asyncio
async def test_fetch_after_ttl_requests_fresh_data(
    make_cache, fake_github, clock
) -> None:
    fake_github.add(PATH, {"login": "octocat", "followers": 1})
    cache = make_cache()
    await cache.fetch(URL)

    fake_github.add(PATH, {"login": "octocat", "followers": 2})
    clock.advance(300)
    refreshed = await cache.fetch(URL)

    assert refreshed == {"login": "octocat", "followers": 2}
    assert fake_github.calls(PATH) == 2


@pytest.mark.asyncio
async def test_ttl_argument_overrides_default(make_cache, fake_github, clock) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()
    await cache.fetch(URL)

    clock.advance(10)
    await cache.fetch(URL, ttl=5)

    assert fake_github.calls(PATH) == 2


@pytest.mark.asyncio
async def test_lookup_reports_miss_then_hit(make_cache, fake_github) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()

    first = await cache.lookup(URL)
    second = await cache.lookup(URL)

    assert first.source == "miss"
    assert second.source == "hit"
    assert not second.stale


@pytest.mark.asyncio
async def test_failure_without_cached_entry_raises_fetch_error(
    make_cache, fake_github
) -> None:
    fake_github.add(PATH, {"message": "boom"}, status_code=500)
    cache = make_cache()

    with pytest.raises(FetchError) as exc_info:
        await cache.fetch(URL)

    assert exc_info.value.status_code == 500
    assert exc_info.value.reason == "Internal Server Error"
    assert exc_info.value.url == URL
    assert str(exc_info.value) == "API request failed: 500 Internal Server Error"
    assert URL not in cache


@pytest.mark.asyncio
async def test_missing_resource_is_flagged_not_found(make_cache) -> None:
    cache = make_cache()

    with pytest.raises(FetchError) as exc_info:
        await cache.fetch("https://api.github.test/users/nobody")

    assert exc_info.value.not_found


@pytest.mark.asyncio
async def test_error_status_falls_back_to_stale_payload(
    make_cache, fake_github, clock
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()
    original = await cache.fetch(URL)

    fake_github.add(PATH, {"message": "rate limited"}, status_code=403)
    clock.advance(3_600)
    result = await cache.lookup(URL)

    assert result.stale
    assert result.payload is original
    assert fake_github.calls(PATH) == 2


@pytest.mark.asyncio
async def test_transport_error_falls_back_to_stale_payload(
    make_cache, fake_github, clock
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()
    original = await cache.fetch(URL)

    fake_github.error = httpx.ConnectError
    clock.advance(301)

    assert await cache.fetch(URL) is original


@pytest.mark.asyncio
async def test_stale_fallback_keeps_original_timestamp(
    make_cache, fake_github, clock
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()
    await cache.fetch(URL)

    fake_github.error = httpx.ConnectError
    clock.advance(301)
    await cache.fetch(URL)
    await cache.fetch(URL)

    # The stale entry is never refreshed, so every call retries upstream.
    assert fake_github.calls(PATH) == 3


@pytest.mark.asyncio
async def test_timeout_without_cached_entry_raises(make_cache, fake_github) -> None:
    fake_github.error = httpx.ReadTimeout
    cache = make_cache()

    with pytest.raises(FetchError) as exc_info:
        await cache.fetch(URL)

    assert exc_info.value.status_code is None
    assert exc_info.value.reason == "request timed out"


@pytest.mark.asyncio
async def test_invalid_json_body_is_a_fetch_error(make_cache, fake_github) -> None:
    fake_github.add(PATH, b"<html>oops</html>")
    cache = make_cache()

    with pytest.raises(FetchError) as exc_info:
        await cache.fetch(URL)

    assert exc_info.value.status_code == 200
    assert URL not in cache


@pytest.mark.asyncio
async def test_accepted_response_is_not_cached(make_cache, fake_github) -> None:
    fake_github.add(PATH, {}, status_code=202)
    cache = make_cache()

    with pytest.raises(FetchError) as exc_info:
        await cache.fetch(URL)

    assert exc_info.value.status_code == 202
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_invalidate_removes_single_entry(make_cache, fake_github) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    fake_github.add("/users/hubot", {"login": "hubot"})
    cache = make_cache()
    await cache.fetch(URL)
    await cache.fetch("https://api.github.test/users/hubot")

    assert cache.invalidate(URL) is True
    assert cache.invalidate(URL) is False
    assert URL not in cache
    assert len(cache) == 1

    await cache.fetch(URL)
    assert fake_github.calls(PATH) == 2


@pytest.mark.asyncio
async def test_clear_removes_all_entries(make_cache, fake_github) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    cache = make_cache()
    await cache.fetch(URL)
    await cache.fetch(URL + "?tab=repos")

    assert cache.clear() == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_query_string_is_part_of_the_key(make_cache, fake_github) -> None:
    fake_github.add("/users/octocat/repos", [])
    cache = make_cache()

    await cache.fetch("https://api.github.test/users/octocat/repos?per_page=5")
    await cache.fetch("https://api.github.test/users/octocat/repos?per_page=10")

    assert fake_github.calls("/users/octocat/repos") == 2


@pytest.mark.asyncio
async def test_max_entries_evicts_oldest_entry(make_cache, fake_github) -> None:
    for name in ("a", "b", "c"):
        fake_github.add(f"/users/{name}", {"login": name})
    cache = make_cache(max_entries=2)

    for name in ("a", "b", "c"):
        await cache.fetch(f"https://api.github.test/users/{name}")

    assert len(cache) == 2
    assert "https://api.github.test/users/a" not in cache
    assert "https://api.github.test/users/c" in cache


def test_max_entries_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ResponseCache(httpx.AsyncClient(), max_entries=0)


@pytest.mark.asyncio
async def test_concurrent_misses_each_reach_upstream_without_dedupe(
    make_cache, fake_github
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    fake_github.delay = 0.01
    cache = make_cache()

    first, second = await asyncio.gather(cache.fetch(URL), cache.fetch(URL))

    assert first == second == {"login": "octocat"}
    assert fake_github.calls(PATH) == 2
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_request_with_dedupe(
    make_cache, fake_github
) -> None:
    fake_github.add(PATH, {"login": "octocat"})
    fake_github.delay = 0.01
    cache = make_cache(dedupe_in_flight=True)

    first, second = await asyncio.gather(cache.lookup(URL), cache.lookup(URL))

    assert first.payload is second.payload
    assert fake_github.calls(PATH) == 1

    await cache.fetch(URL)
    assert fake_github.calls(PATH) == 1


@pytest.mark.asyncio
async def test_dedupe_propagates_failure_to_every_waiter(
    make_cache, fake_github
) -> None:
    fake_github.add(PATH, {"message": "boom"}, status_code=502)
    fake_github.delay = 0.01
    cache = make_cache(dedupe_in_flight=True)

    results = await asyncio.gather(
        cache.fetch(URL), cache.fetch(URL), return_exceptions=True
    )

    assert all(isinstance(result, FetchError) for result in results)
    assert fake_github.calls(PATH) == 1


@pytest.mark.asyncio
async def test_dedupe_failure_without_waiters_is_not_reported_unhandled(
    make_cache, fake_github
) -> None:
    loop = asyncio.get_running_loop()
    unhandled: list[dict] = []
    loop.set_exception_handler(lambda _loop, context: unhandled.append(context))
    fake_github.add(PATH, {"message": "boom"}, status_code=502)
    fake_github.delay = 0.01
    cache = make_cache(dedupe_in_flight=True)

    try:
        waiter = asyncio.ensure_future(cache.fetch(URL))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        del waiter

        # Let the shielded request finish and fail with nobody awaiting it.
        await asyncio.sleep(0.05)
        gc.collect()
    finally:
        loop.set_exception_handler(None)

    assert fake_github.calls(PATH) == 1
    assert URL not in cache
    assert unhandled == []

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from github_insights.api_cache import FetchError
from github_insights.api_cache import ResponseCache


class GitHubAPIError(Exception):
    """Raised when GitHub requests fail and no cached data can stand in."""


class NotFoundError(Exception):
    """Raised when GitHub reports the requested user or repository missing."""


def api_url(
    base_url: str,
    path: str,
    params: Mapping[str, str | int] | None = None,
) -> str:
    """Build the full request URL, which doubles as the cache key."""

    url = httpx.URL(base_url.rstrip("/") + quote(path, safe="/"))
    if params:
        url = url.copy_merge_params(dict(params))
    return str(url)


async def fetch_json(cache: ResponseCache, url: str) -> Any:
    """Fetch a GitHub resource through the cache, mapping failures to errors."""

    try:
        return await cache.fetch(url)
    except FetchError as exc:
        if exc.not_found:
            raise NotFoundError(url) from exc
        raise GitHubAPIError(str(exc)) from exc


async def fetch_json_list(cache: ResponseCache, url: str) -> list[Any]:
    payload = await fetch_json(cache, url)
    if not isinstance(payload, list):
        raise GitHubAPIError(f"GitHub response for {url} is not a list")
    return payload


async def fetch_json_object(cache: ResponseCache, url: str) -> Mapping[str, Any]:
    payload = await fetch_json(cache, url)
    if not isinstance(payload, Mapping):
        raise GitHubAPIError(f"GitHub response for {url} is not an object")
    return payload

from collections.abc import Mapping
from typing import Any
from typing import Literal

from github_insights.api_cache import ResponseCache
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json_object
from github_insights.settings import Settings


SearchKind = Literal["users", "repositories"]

MIN_QUERY_LENGTH = 2
SUGGESTION_LIMIT = 5


def _user_suggestion(item: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": item.get("login"),
        "description": None,
        "html_url": item.get("html_url"),
        "avatar_url": item.get("avatar_url"),
        "stars": None,
    }


def _repository_suggestion(item: Mapping[str, Any]) -> dict[str, Any]:
    owner = item.get("owner")
    return {
        "name": item.get("full_name"),
        "description": item.get("description"),
        "html_url": item.get("html_url"),
        "avatar_url": owner.get("avatar_url") if isinstance(owner, Mapping) else None,
        "stars": item.get("stargazers_count"),
    }


async def search_suggestions(
    cache: ResponseCache, app_settings: Settings, kind: SearchKind, query: str
) -> dict[str, Any]:
    """Return up to five users or repositories matching ``query``.

    Queries shorter than two characters are answered without calling GitHub.
    """

    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return {"kind": kind, "query": query, "total_count": 0, "items": []}

    url = api_url(
        app_settings.github_api_base_url,
        f"/search/{kind}",
        {"q": query, "per_page": SUGGESTION_LIMIT},
    )
    payload = await fetch_json_object(cache, url)

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
    to_suggestion = _user_suggestion if kind == "users" else _repository_suggestion

    total_count = payload.get("total_count")
    return {
        "kind": kind,
        "query": query,
        "total_count": total_count if isinstance(total_count, int) else 0,
        "items": [
            to_suggestion(item) for item in raw_items if isinstance(item, Mapping)
        ],
    }

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from github_insights.api_cache import ResponseCache
from github_insights.github_api import GitHubAPIError
from github_insights.github_api import NotFoundError
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json_list
from github_insights.github_api import fetch_json_object
from github_insights.settings import Settings


logger = logging.getLogger(__name__)

SOCIAL_LIST_LIMIT = 10

ACCOUNT_FIELDS = ("login", "avatar_url", "html_url")
ORGANIZATION_FIELDS = (
    "login",
    "name",
    "description",
    "avatar_url",
    "html_url",
    "blog",
    "location",
    "public_repos",
    "followers",
)


def _accounts(raw_items: list[Any]) -> list[dict[str, Any]]:
    return [
        {field: item.get(field) for field in ACCOUNT_FIELDS}
        for item in raw_items
        if isinstance(item, Mapping)
    ]


async def _organization_with_details(
    cache: ResponseCache, app_settings: Settings, org: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge ``/orgs/{login}`` details over the listed org when available."""

    merged = dict(org)
    login = org.get("login")
    if isinstance(login, str):
        url = api_url(app_settings.github_api_base_url, f"/orgs/{login}")
        try:
            merged.update(await fetch_json_object(cache, url))
        except (GitHubAPIError, NotFoundError) as exc:
            logger.warning("Using listed data for org %s: %s", login, exc)

    return {field: merged.get(field) for field in ORGANIZATION_FIELDS}


async def get_social_insights(
    cache: ResponseCache, app_settings: Settings, username: str
) -> dict[str, Any]:
    """Followers, followed accounts and organizations of a user.

    Follower lists are capped at ten entries each. A failed organization
    detail request only affects that organization, which is then returned
    with the fields from the membership listing.
    """

    base_url = app_settings.github_api_base_url
    page = {"per_page": SOCIAL_LIST_LIMIT}

    raw_followers, raw_following, raw_orgs = await asyncio.gather(
        fetch_json_list(cache, api_url(base_url, f"/users/{username}/followers", page)),
        fetch_json_list(cache, api_url(base_url, f"/users/{username}/following", page)),
        fetch_json_list(cache, api_url(base_url, f"/users/{username}/orgs")),
    )

    organizations = await asyncio.gather(
        *(
            _organization_with_details(cache, app_settings, org)
            for org in raw_orgs
            if isinstance(org, Mapping)
        )
    )

    return {
        "username": username,
        "followers": _accounts(raw_followers),
        "following": _accounts(raw_following),
        "organizations": list(organizations),
    }

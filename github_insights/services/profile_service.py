from collections import Counter
from collections.abc import Mapping
from datetime import datetime
from datetime import UTC
from typing import Any
from typing import Literal

from github_insights.api_cache import ResponseCache
from github_insights.contributions import parse_github_datetime
from github_insights.github_api import GitHubAPIError
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json_list
from github_insights.github_api import fetch_json_object
from github_insights.settings import Settings


RepositorySort = Literal["stars", "updated", "name"]

PROFILE_FIELDS = (
    "login",
    "name",
    "avatar_url",
    "html_url",
    "bio",
    "company",
    "blog",
    "location",
    "public_repos",
    "followers",
    "following",
    "created_at",
)
REPOSITORY_FIELDS = (
    "name",
    "full_name",
    "description",
    "html_url",
    "language",
    "stargazers_count",
    "forks_count",
    "fork",
    "archived",
    "topics",
    "updated_at",
)
TOP_REPOSITORY_LIMIT = 5
TOP_LANGUAGE_LIMIT = 8


def _int_field(item: Mapping[str, Any], key: str) -> int:
    value = item.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def _updated_at(item: Mapping[str, Any]) -> datetime:
    raw_value = item.get("updated_at")
    if isinstance(raw_value, str):
        try:
            return parse_github_datetime(raw_value)
        except ValueError:
            pass
    return datetime.min.replace(tzinfo=UTC)


def _repository_item(raw_repo: Mapping[str, Any]) -> dict[str, Any]:
    item = {field: raw_repo.get(field) for field in REPOSITORY_FIELDS}
    item["stargazers_count"] = _int_field(raw_repo, "stargazers_count")
    item["forks_count"] = _int_field(raw_repo, "forks_count")
    item["fork"] = bool(raw_repo.get("fork"))
    item["archived"] = bool(raw_repo.get("archived"))
    topics = raw_repo.get("topics")
    if not isinstance(topics, list):
        topics = []
    item["topics"] = [topic for topic in topics if isinstance(topic, str)]
    return item


async def fetch_repositories(
    cache: ResponseCache, app_settings: Settings, username: str
) -> list[dict[str, Any]]:
    url = api_url(
        app_settings.github_api_base_url,
        f"/users/{username}/repos",
        {"per_page": 100, "sort": "updated"},
    )
    raw_repos = await fetch_json_list(cache, url)
    return [_repository_item(repo) for repo in raw_repos if isinstance(repo, Mapping)]


async def get_user_profile(
    cache: ResponseCache, app_settings: Settings, username: str
) -> dict[str, Any]:
    """Return profile fields plus star and fork totals across repositories."""

    user = await fetch_json_object(
        cache, api_url(app_settings.github_api_base_url, f"/users/{username}")
    )
    if not isinstance(user.get("login"), str):
        raise GitHubAPIError("GitHub user response is missing login")

    repositories = await fetch_repositories(cache, app_settings, username)

    profile = {field: user.get(field) for field in PROFILE_FIELDS}
    profile["total_stars"] = sum(repo["stargazers_count"] for repo in repositories)
    profile["total_forks"] = sum(repo["forks_count"] for repo in repositories)
    return profile


def _matches_query(repo: Mapping[str, Any], query: str) -> bool:
    needle = query.lower()
    if needle in str(repo["name"] or "").lower():
        return True
    if repo["description"] and needle in repo["description"].lower():
        return True
    return any(needle in topic.lower() for topic in repo["topics"])


def filter_and_sort_repositories(
    repositories: list[dict[str, Any]],
    query: str = "",
    language: str | None = None,
    include_forks: bool = True,
    include_archived: bool = True,
    sort: RepositorySort = "stars",
) -> list[dict[str, Any]]:
    selected = [
        repo
        for repo in repositories
        if (not query or _matches_query(repo, query))
        and (not language or repo["language"] == language)
        and (include_forks or not repo["fork"])
        and (include_archived or not repo["archived"])
    ]

    if sort == "stars":
        return sorted(
            selected, key=lambda repo: repo["stargazers_count"], reverse=True
        )
    if sort == "updated":
        return sorted(selected, key=_updated_at, reverse=True)
    return sorted(selected, key=lambda repo: str(repo["name"] or "").casefold())


async def list_repositories(
    cache: ResponseCache,
    app_settings: Settings,
    username: str,
    query: str = "",
    language: str | None = None,
    include_forks: bool = True,
    include_archived: bool = True,
    sort: RepositorySort = "stars",
) -> dict[str, Any]:
    repositories = await fetch_repositories(cache, app_settings, username)
    languages = sorted({repo["language"] for repo in repositories if repo["language"]})

    selected = filter_and_sort_repositories(
        repositories,
        query=query,
        language=language,
        include_forks=include_forks,
        include_archived=include_archived,
        sort=sort,
    )
    return {
        "username": username,
        "total": len(repositories),
        "languages": languages,
        "repositories": selected,
    }


async def get_analytics(
    cache: ResponseCache, app_settings: Settings, username: str
) -> dict[str, Any]:
    """Top repositories by stars and forks and primary language counts."""

    repositories = await fetch_repositories(cache, app_settings, username)

    by_stars = sorted(
        repositories, key=lambda repo: repo["stargazers_count"], reverse=True
    )
    by_forks = sorted(repositories, key=lambda repo: repo["forks_count"], reverse=True)
    language_counts = Counter(
        repo["language"] for repo in repositories if repo["language"]
    )

    return {
        "username": username,
        "top_by_stars": [
            {"name": repo["name"], "value": repo["stargazers_count"]}
            for repo in by_stars[:TOP_REPOSITORY_LIMIT]
        ],
        "top_by_forks": [
            {"name": repo["name"], "value": repo["forks_count"]}
            for repo in by_forks[:TOP_REPOSITORY_LIMIT]
        ],
        "languages": [
            {"name": name, "value": count}
            for name, count in language_counts.most_common(TOP_LANGUAGE_LIMIT)
        ],
    }

import base64
import binascii
import logging
import math
from collections.abc import Mapping
from datetime import datetime
from datetime import UTC
from typing import Any

from github_insights.api_cache import FetchError
from github_insights.api_cache import ResponseCache
from github_insights.github_api import GitHubAPIError
from github_insights.github_api import NotFoundError
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json
from github_insights.github_api import fetch_json_list
from github_insights.github_api import fetch_json_object
from github_insights.settings import Settings


logger = logging.getLogger(__name__)

COMMIT_ACTIVITY_WEEKS = 12
RECENT_ITEMS_LIMIT = 5
# GitHub answers 202 while it computes repository statistics and 204 for
# repositories without any commits.
STATS_NOT_READY_STATUSES = frozenset({202, 204})
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """Human readable size, e.g. ``1536 -> "1.5 KB"``."""

    if size <= 0:
        return "0 Bytes"

    scaled = float(size)
    exponent = 0
    while scaled >= 1024 and exponent < len(SIZE_UNITS) - 1:
        scaled /= 1024
        exponent += 1

    number = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{number} {SIZE_UNITS[exponent]}"


def language_breakdown(languages: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Byte counts per language with whole-number percentages, largest first."""

    sizes = {
        name: value
        for name, value in languages.items()
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0
    }
    total = sum(sizes.values())
    if total == 0:
        return []

    items = [
        {
            "name": name,
            "bytes": value,
            "percentage": math.floor(value * 100 / total + 0.5),
            "size": format_bytes(value),
        }
        for name, value in sizes.items()
    ]
    return sorted(items, key=lambda item: item["bytes"], reverse=True)


async def get_language_breakdown(
    cache: ResponseCache, app_settings: Settings, owner: str, repo: str
) -> dict[str, Any]:
    url = api_url(app_settings.github_api_base_url, f"/repos/{owner}/{repo}/languages")
    languages = await fetch_json_object(cache, url)
    return {"repository": f"{owner}/{repo}", "languages": language_breakdown(languages)}


async def get_commit_activity(
    cache: ResponseCache, app_settings: Settings, owner: str, repo: str
) -> dict[str, Any]:
    """Weekly commit totals for the most recent twelve weeks."""

    url = api_url(
        app_settings.github_api_base_url,
        f"/repos/{owner}/{repo}/stats/commit_activity",
    )
    try:
        payload = await cache.fetch(url)
    except FetchError as exc:
        if exc.status_code in STATS_NOT_READY_STATUSES:
            logger.info("Commit activity for %s/%s is not ready yet", owner, repo)
            return {"repository": f"{owner}/{repo}", "weeks": []}
        if exc.not_found:
            raise NotFoundError(url) from exc
        raise GitHubAPIError(str(exc)) from exc

    if not isinstance(payload, list):
        raise GitHubAPIError("GitHub commit activity response is invalid")

    weeks = []
    for item in payload[-COMMIT_ACTIVITY_WEEKS:]:
        if not isinstance(item, Mapping):
            continue
        raw_week = item.get("week")
        raw_total = item.get("total")
        if not isinstance(raw_week, int) or not isinstance(raw_total, int):
            continue
        weeks.append(
            {
                "week_start": datetime.fromtimestamp(raw_week, UTC).date().isoformat(),
                "total": raw_total,
            }
        )

    return {"repository": f"{owner}/{repo}", "weeks": weeks}


def _issue_item(raw_item: Mapping[str, Any]) -> dict[str, Any]:
    user = raw_item.get("user")
    return {
        "number": raw_item.get("number"),
        "title": raw_item.get("title"),
        "state": raw_item.get("state"),
        "html_url": raw_item.get("html_url"),
        "author": user.get("login") if isinstance(user, Mapping) else None,
        "created_at": raw_item.get("created_at"),
        "merged_at": raw_item.get("merged_at"),
        "comments": raw_item.get("comments") or 0,
    }


async def get_issues_and_pulls(
    cache: ResponseCache, app_settings: Settings, owner: str, repo: str
) -> dict[str, Any]:
    params = {"state": "all", "per_page": RECENT_ITEMS_LIMIT}
    base_url = app_settings.github_api_base_url

    raw_issues = await fetch_json_list(
        cache, api_url(base_url, f"/repos/{owner}/{repo}/issues", params)
    )
    raw_pulls = await fetch_json_list(
        cache, api_url(base_url, f"/repos/{owner}/{repo}/pulls", params)
    )

    # The issues endpoint also lists pull requests.
    issues = [
        _issue_item(item)
        for item in raw_issues
        if isinstance(item, Mapping) and "pull_request" not in item
    ]
    pulls = [_issue_item(item) for item in raw_pulls if isinstance(item, Mapping)]
    return {"repository": f"{owner}/{repo}", "issues": issues, "pull_requests": pulls}


def _entry_item(raw_entry: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": raw_entry.get("name"),
        "path": raw_entry.get("path"),
        "type": raw_entry.get("type"),
        "size": raw_entry.get("size") or 0,
        "html_url": raw_entry.get("html_url"),
        "download_url": raw_entry.get("download_url"),
    }


def _directory_sort_key(entry: Mapping[str, Any]) -> tuple[int, str]:
    return (0 if entry["type"] == "dir" else 1, str(entry["name"] or "").casefold())


def decode_file_content(raw_file: Mapping[str, Any]) -> str | None:
    content = raw_file.get("content")
    if raw_file.get("encoding") != "base64" or not isinstance(content, str):
        return None
    try:
        decoded = base64.b64decode(content)
    except (binascii.Error, ValueError):
        return None
    return decoded.decode("utf-8", errors="replace")


async def get_contents(
    cache: ResponseCache, app_settings: Settings, owner: str, repo: str, path: str = ""
) -> dict[str, Any]:
    """Directory listing (directories first) or a single decoded file."""

    clean_path = path.strip("/")
    resource = f"/repos/{owner}/{repo}/contents"
    if clean_path:
        resource = f"{resource}/{clean_path}"

    url = api_url(app_settings.github_api_base_url, resource)
    payload = await fetch_json(cache, url)

    if isinstance(payload, list):
        entries = [
            _entry_item(entry) for entry in payload if isinstance(entry, Mapping)
        ]
        return {
            "type": "dir",
            "path": clean_path,
            "breadcrumbs": clean_path.split("/") if clean_path else [],
            "entries": sorted(entries, key=_directory_sort_key),
            "file": None,
        }

    if not isinstance(payload, Mapping):
        raise GitHubAPIError("GitHub contents response is invalid")

    file_item = _entry_item(payload)
    file_item["content"] = decode_file_content(payload)
    return {
        "type": "file",
        "path": clean_path,
        "breadcrumbs": clean_path.split("/") if clean_path else [],
        "entries": [],
        "file": file_item,
    }

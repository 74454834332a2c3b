from collections.abc import Mapping
from datetime import datetime
from datetime import UTC
from typing import Any

from github_insights.api_cache import ResponseCache
from github_insights.contributions import EventKind
from github_insights.contributions import commit_count
from github_insights.contributions import parse_github_datetime
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json_list
from github_insights.settings import Settings


RECENT_ACTIVITY_LIMIT = 10

BADGES = {
    EventKind.PUSH: "Commit",
    EventKind.PULL_REQUEST: "PR",
    EventKind.ISSUES: "Issue",
    EventKind.CREATE: "Create",
    EventKind.DELETE: "Delete",
    EventKind.ISSUE_COMMENT: "Comment",
    EventKind.WATCH: "Star",
    EventKind.FORK: "Fork",
}


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'s' if value != 1 else ''}"


def format_relative_time(moment: datetime, now: datetime) -> str:
    """Describe ``moment`` relative to ``now``, e.g. ``"3 hours ago"``."""

    seconds = max(0, int((now - moment).total_seconds()))
    if seconds < 60:
        return f"{seconds} seconds ago"

    minutes = seconds // 60
    if minutes < 60:
        return f"{_plural(minutes, 'minute')} ago"

    hours = minutes // 60
    if hours < 24:
        return f"{_plural(hours, 'hour')} ago"

    days = hours // 24
    if days < 30:
        return f"{_plural(days, 'day')} ago"

    return f"{_plural(days // 30, 'month')} ago"


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _action_verb(action: Any) -> str:
    if not isinstance(action, str) or not action:
        return "Updated"
    return action.capitalize()


def _numbered(noun: str, number: Any, title: Any) -> str:
    label = f"{noun} #{number}"
    return f"{label}: {title}" if title else label


def _push_title(payload: Mapping[str, Any]) -> str:
    ref = payload.get("ref")
    branch = ref.removeprefix("refs/heads/") if isinstance(ref, str) else None
    commits = commit_count(payload)

    if commits is None:
        title = "Pushed"
    else:
        title = f"Pushed {_plural(commits, 'commit')}"
    return f"{title} to {branch}" if branch else title


def _pull_request_title(payload: Mapping[str, Any]) -> str:
    pull_request = _mapping(payload.get("pull_request"))
    action = payload.get("action")
    if action == "closed":
        verb = "Merged" if pull_request.get("merged") else "Closed"
    else:
        verb = _action_verb(action)

    number = payload.get("number") or pull_request.get("number")
    return f"{verb} {_numbered('pull request', number, pull_request.get('title'))}"


def event_title(kind: EventKind, raw_type: str, payload: Mapping[str, Any]) -> str:
    """One-line human description of an event, as shown in the activity feed."""

    issue = _mapping(payload.get("issue"))
    issue_label = _numbered("issue", issue.get("number"), issue.get("title"))

    if kind is EventKind.PUSH:
        return _push_title(payload)
    if kind is EventKind.PULL_REQUEST:
        return _pull_request_title(payload)
    if kind is EventKind.ISSUES:
        return f"{_action_verb(payload.get('action'))} {issue_label}"
    if kind is EventKind.ISSUE_COMMENT:
        return f"Commented on {issue_label}"
    if kind is EventKind.CREATE:
        ref = payload.get("ref")
        title = f"Created {payload.get('ref_type') or 'repository'}"
        return f"{title} {ref}" if ref else title
    if kind is EventKind.DELETE:
        title = f"Deleted {payload.get('ref_type') or 'ref'}"
        ref = payload.get("ref")
        return f"{title} {ref}" if ref else title
    if kind is EventKind.WATCH:
        return "Starred repository"
    if kind is EventKind.FORK:
        return "Forked repository"
    return raw_type.removesuffix("Event")


def describe_event(
    raw_event: Mapping[str, Any], now: datetime
) -> dict[str, Any] | None:
    """Turn one raw event into a feed item, or None if it cannot be dated."""

    raw_type = raw_event.get("type")
    created_at_raw = raw_event.get("created_at")
    if not isinstance(raw_type, str) or not isinstance(created_at_raw, str):
        return None
    try:
        created_at = parse_github_datetime(created_at_raw)
    except ValueError:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)

    kind = EventKind.from_type(raw_type)
    payload = _mapping(raw_event.get("payload"))
    return {
        "type": raw_type,
        "title": event_title(kind, raw_type, payload),
        "repo": _mapping(raw_event.get("repo")).get("name"),
        "badge": BADGES.get(kind, "Activity"),
        "created_at": created_at_raw,
        "relative_time": format_relative_time(created_at, now),
    }


async def get_recent_activity(
    cache: ResponseCache,
    app_settings: Settings,
    username: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Return the user's ten most recent public events as feed items."""

    if now is None:
        now = datetime.now(UTC)

    url = api_url(
        app_settings.github_api_base_url,
        f"/users/{username}/events",
        {"per_page": RECENT_ACTIVITY_LIMIT},
    )
    raw_events = await fetch_json_list(cache, url)

    events = []
    for raw_event in raw_events[:RECENT_ACTIVITY_LIMIT]:
        if not isinstance(raw_event, Mapping):
            continue
        item = describe_event(raw_event, now)
        if item is not None:
            events.append(item)

    return {"username": username, "events": events}

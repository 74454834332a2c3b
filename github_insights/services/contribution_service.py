import asyncio
import logging
from datetime import date
from datetime import datetime
from datetime import UTC
from typing import Literal

from github_insights.api_cache import ResponseCache
from github_insights.contributions import ActivityEvent
from github_insights.contributions import ContributionSummary
from github_insights.contributions import combine_two_years
from github_insights.contributions import parse_events
from github_insights.contributions import summarize_year
from github_insights.github_api import api_url
from github_insights.github_api import fetch_json_list
from github_insights.settings import Settings


logger = logging.getLogger(__name__)

ContributionView = Literal["current", "previous", "both"]


def events_url(app_settings: Settings, username: str) -> str:
    return api_url(
        app_settings.github_api_base_url,
        f"/users/{username}/events",
        {"per_page": app_settings.events_per_page},
    )


async def fetch_year_events(
    cache: ResponseCache,
    app_settings: Settings,
    username: str,
    years_ago: int,
    today: date,
) -> list[ActivityEvent]:
    """Fetch the user's public events that fall in the target year."""

    raw_events = await fetch_json_list(cache, events_url(app_settings, username))
    target_year = today.year - years_ago
    events = parse_events(raw_events)
    return [event for event in events if event.day.year == target_year]


def summary_payload(summary: ContributionSummary) -> dict[str, object]:
    return {
        "total_contributions": summary.total_contributions,
        "current_streak": summary.current_streak,
        "longest_streak": summary.longest_streak,
        "has_activity": summary.has_activity,
        "weeks": [
            [
                {"date": day.date.isoformat(), "count": day.count, "level": day.level}
                for day in week
            ]
            for week in summary.weeks
        ],
    }


async def get_contribution_calendar(
    cache: ResponseCache,
    app_settings: Settings,
    username: str,
    view: ContributionView = "current",
    today: date | None = None,
) -> dict[str, object]:
    """Build the contribution calendar and streaks for one or both years."""

    if today is None:
        today = datetime.now(UTC).date()

    current_events, prior_events = await asyncio.gather(
        fetch_year_events(cache, app_settings, username, 0, today),
        fetch_year_events(cache, app_settings, username, 1, today),
    )

    current_year = summarize_year(current_events, 0, today)
    prior_year = summarize_year(prior_events, 1, today)

    if view == "current":
        summary = current_year
    elif view == "previous":
        summary = prior_year
    else:
        summary = combine_two_years(current_year, prior_year)

    logger.info(
        "Built %s contribution calendar for %s: %d contributions",
        view,
        username,
        summary.total_contributions,
    )
    return {"username": username, "view": view, **summary_payload(summary)}

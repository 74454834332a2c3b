from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Path
from fastapi import Query

from github_insights.api.dependencies import get_cache
from github_insights.api.dependencies import get_settings
from github_insights.api.routes.errors import upstream_errors
from github_insights.api.schemas.contributions import ContributionCalendarResponse
from github_insights.api.schemas.users import AnalyticsResponse
from github_insights.api.schemas.users import RecentActivityResponse
from github_insights.api.schemas.users import RepositoryListResponse
from github_insights.api.schemas.users import SocialInsightsResponse
from github_insights.api.schemas.users import UserProfileResponse
from github_insights.api_cache import ResponseCache
from github_insights.services.activity_service import get_recent_activity
from github_insights.services.contribution_service import ContributionView
from github_insights.services.contribution_service import get_contribution_calendar
from github_insights.services.profile_service import RepositorySort
from github_insights.services.profile_service import get_analytics
from github_insights.services.profile_service import get_user_profile
from github_insights.services.profile_service import list_repositories
from github_insights.services.social_service import get_social_insights
from github_insights.settings import Settings


router = APIRouter(prefix="/users", tags=["users"])

USERNAME_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$"

Username = Annotated[str, Path(pattern=USERNAME_PATTERN)]
CacheDep = Annotated[ResponseCache, Depends(get_cache)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.get("/{username}", response_model=UserProfileResponse)
async def read_user_profile(
    username: Username, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    """Return profile data with star and fork totals."""

    with upstream_errors("user not found"):
        return await get_user_profile(cache, settings, username.lower())


@router.get("/{username}/repos", response_model=RepositoryListResponse)
async def read_user_repositories(
    username: Username,
    cache: CacheDep,
    settings: SettingsDep,
    q: str = "",
    language: str | None = None,
    include_forks: bool = True,
    include_archived: bool = True,
    sort: RepositorySort = "stars",
) -> dict[str, object]:
    """Return the user's repositories filtered and sorted for display."""

    with upstream_errors("user not found"):
        return await list_repositories(
            cache,
            settings,
            username.lower(),
            query=q.strip(),
            language=language,
            include_forks=include_forks,
            include_archived=include_archived,
            sort=sort,
        )


@router.get("/{username}/analytics", response_model=AnalyticsResponse)
async def read_user_analytics(
    username: Username, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    with upstream_errors("user not found"):
        return await get_analytics(cache, settings, username.lower())


@router.get(
    "/{username}/contributions", response_model=ContributionCalendarResponse
)
async def read_contribution_calendar(
    username: Username,
    cache: CacheDep,
    settings: SettingsDep,
    view: Annotated[ContributionView, Query()] = "current",
) -> dict[str, object]:
    """Return the contribution calendar approximated from public events."""

    with upstream_errors("user not found"):
        return await get_contribution_calendar(
            cache, settings, username.lower(), view=view
        )


@router.get("/{username}/activity", response_model=RecentActivityResponse)
async def read_recent_activity(
    username: Username, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    """Return the ten most recent public events as feed items."""

    with upstream_errors("user not found"):
        return await get_recent_activity(cache, settings, username.lower())


@router.get("/{username}/social", response_model=SocialInsightsResponse)
async def read_social_insights(
    username: Username, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    with upstream_errors("user not found"):
        return await get_social_insights(cache, settings, username.lower())

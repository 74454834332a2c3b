from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Path

from github_insights.api.dependencies import get_cache
from github_insights.api.dependencies import get_settings
from github_insights.api.routes.errors import upstream_errors
from github_insights.api.schemas.repos import CommitActivityResponse
from github_insights.api.schemas.repos import ContentsResponse
from github_insights.api.schemas.repos import IssuesAndPullsResponse
from github_insights.api.schemas.repos import LanguageBreakdownResponse
from github_insights.api_cache import ResponseCache
from github_insights.services.repository_service import get_commit_activity
from github_insights.services.repository_service import get_contents
from github_insights.services.repository_service import get_issues_and_pulls
from github_insights.services.repository_service import get_language_breakdown
from github_insights.settings import Settings


router = APIRouter(prefix="/repos/{owner}/{repo}", tags=["repositories"])

NAME_PATTERN = r"^[A-Za-z0-9_.-]{1,100}$"

Owner = Annotated[str, Path(pattern=NAME_PATTERN)]
Repo = Annotated[str, Path(pattern=NAME_PATTERN)]
CacheDep = Annotated[ResponseCache, Depends(get_cache)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.get("/languages", response_model=LanguageBreakdownResponse)
async def read_language_breakdown(
    owner: Owner, repo: Repo, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    with upstream_errors("repository not found"):
        return await get_language_breakdown(cache, settings, owner, repo)


@router.get("/commit-activity", response_model=CommitActivityResponse)
async def read_commit_activity(
    owner: Owner, repo: Repo, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    """Return weekly commit totals for the last twelve weeks."""

    with upstream_errors("repository not found"):
        return await get_commit_activity(cache, settings, owner, repo)


@router.get("/issues", response_model=IssuesAndPullsResponse)
async def read_issues_and_pulls(
    owner: Owner, repo: Repo, cache: CacheDep, settings: SettingsDep
) -> dict[str, object]:
    with upstream_errors("repository not found"):
        return await get_issues_and_pulls(cache, settings, owner, repo)


@router.get("/contents", response_model=ContentsResponse)
@router.get("/contents/{path:path}", response_model=ContentsResponse)
async def read_contents(
    owner: Owner,
    repo: Repo,
    cache: CacheDep,
    settings: SettingsDep,
    path: str = "",
) -> dict[str, object]:
    """Return a directory listing or a decoded file."""

    with upstream_errors("path not found"):
        return await get_contents(cache, settings, owner, repo, path)

from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query

from github_insights.api.dependencies import get_cache
from github_insights.api.dependencies import get_settings
from github_insights.api.routes.errors import upstream_errors
from github_insights.api.schemas.search import SearchResponse
from github_insights.api_cache import ResponseCache
from github_insights.services.search_service import SearchKind
from github_insights.services.search_service import search_suggestions
from github_insights.settings import Settings


router = APIRouter(prefix="/search", tags=["search"])


@router.get("/{kind}", response_model=SearchResponse)
async def read_search_suggestions(
    kind: SearchKind,
    cache: Annotated[ResponseCache, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    q: Annotated[str, Query(max_length=256)] = "",
) -> dict[str, object]:
    """Return up to five users or repositories matching the query."""

    with upstream_errors("no results"):
        return await search_suggestions(cache, settings, kind, q)

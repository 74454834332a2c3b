import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query

from github_insights.api.dependencies import get_cache
from github_insights.api.schemas.system import CacheClearResponse
from github_insights.api.schemas.system import StatusResponse
from github_insights.api_cache import ResponseCache


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=StatusResponse)
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"status": "ok"}


@router.get("/health/live", response_model=StatusResponse)
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.delete("/cache", response_model=CacheClearResponse)
def clear_cache(
    cache: Annotated[ResponseCache, Depends(get_cache)],
) -> dict[str, object]:
    """Drop every cached GitHub response."""

    removed = cache.clear()
    logger.info("Cleared %d cached responses", removed)
    return {"status": "ok", "removed": removed}


@router.delete("/cache/entry", response_model=CacheClearResponse)
def invalidate_cache_entry(
    cache: Annotated[ResponseCache, Depends(get_cache)],
    url: Annotated[str, Query(min_length=1)],
) -> dict[str, object]:
    """Drop the cached response for one request URL."""

    removed = 1 if cache.invalidate(url) else 0
    return {"status": "ok", "removed": removed}

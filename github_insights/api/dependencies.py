from fastapi import Request

from github_insights.api_cache import ResponseCache
from github_insights.settings import Settings


def get_cache(request: Request) -> ResponseCache:
    """Return the response cache owned by the running application."""

    return request.app.state.cache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from github_insights.api.routes import repos
from github_insights.api.routes import search
from github_insights.api.routes import system
from github_insights.api.routes import users
from github_insights.api_cache import ResponseCache
from github_insights.core.middleware import UpstreamRateLimitMiddleware
from github_insights.core.observability import configure_logging
from github_insights.core.observability import init_sentry
from github_insights.settings import Settings


logger = logging.getLogger(__name__)


def create_app(
    app_settings: Settings | None = None, cache: ResponseCache | None = None
) -> FastAPI:
    """Build the API application.

    The response cache lives for the lifetime of the application and is
    closed on shutdown. Passing ``cache`` lets callers supply their own
    instance, for example one backed by a fake transport.
    """

    if app_settings is None:
        app_settings = Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    if cache is None:
        cache = ResponseCache.from_settings(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Serving GitHub data from %s", app_settings.github_api_base_url
        )
        yield
        await app.state.cache.aclose()

    app = FastAPI(title="GitHub Insights", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.cache = cache

    app.add_middleware(
        UpstreamRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )

    app.include_router(system.router)
    app.include_router(users.router)
    app.include_router(repos.router)
    app.include_router(search.router)
    return app


app = create_app()

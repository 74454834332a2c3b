from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from github_insights.github_api import GitHubAPIError
from github_insights.github_api import NotFoundError


@contextmanager
def upstream_errors(not_found_detail: str) -> Iterator[None]:
    """Translate GitHub service errors into HTTP responses."""

    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=not_found_detail) from exc
    except GitHubAPIError as exc:
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc

from datetime import date

from pydantic import BaseModel


class LanguageShare(BaseModel):
    name: str
    bytes: int
    percentage: int
    size: str


class LanguageBreakdownResponse(BaseModel):
    """Languages of a repository ordered by byte count."""

    repository: str
    languages: list[LanguageShare]


class CommitWeek(BaseModel):
    week_start: date
    total: int


class CommitActivityResponse(BaseModel):
    """Weekly commit totals; empty while GitHub is still computing them."""

    repository: str
    weeks: list[CommitWeek]


class IssueItem(BaseModel):
    number: int | None = None
    title: str | None = None
    state: str | None = None
    html_url: str | None = None
    author: str | None = None
    created_at: str | None = None
    merged_at: str | None = None
    comments: int = 0


class IssuesAndPullsResponse(BaseModel):
    repository: str
    issues: list[IssueItem]
    pull_requests: list[IssueItem]


class ContentEntry(BaseModel):
    name: str | None = None
    path: str | None = None
    type: str | None = None
    size: int = 0
    html_url: str | None = None
    download_url: str | None = None


class FileContent(ContentEntry):
    content: str | None = None


class ContentsResponse(BaseModel):
    """Either a directory listing or a single file, selected by `type`."""

    type: str
    path: str
    breadcrumbs: list[str]
    entries: list[ContentEntry]
    file: FileContent | None = None

from pydantic import BaseModel


class UserProfileResponse(BaseModel):
    """Public profile fields with star and fork totals across repositories."""

    login: str
    name: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None
    bio: str | None = None
    company: str | None = None
    blog: str | None = None
    location: str | None = None
    public_repos: int | None = None
    followers: int | None = None
    following: int | None = None
    created_at: str | None = None
    total_stars: int
    total_forks: int


class Repository(BaseModel):
    name: str | None = None
    full_name: str | None = None
    description: str | None = None
    html_url: str | None = None
    language: str | None = None
    stargazers_count: int
    forks_count: int
    fork: bool
    archived: bool
    topics: list[str]
    updated_at: str | None = None


class RepositoryListResponse(BaseModel):
    """Filtered and sorted repositories with the full language list."""

    username: str
    total: int
    languages: list[str]
    repositories: list[Repository]


class RankedItem(BaseModel):
    name: str | None = None
    value: int


class AnalyticsResponse(BaseModel):
    username: str
    top_by_stars: list[RankedItem]
    top_by_forks: list[RankedItem]
    languages: list[RankedItem]


class ActivityItem(BaseModel):
    type: str
    title: str
    repo: str | None = None
    badge: str
    created_at: str
    relative_time: str


class RecentActivityResponse(BaseModel):
    """Most recent public events, newest first, described for display."""

    username: str
    events: list[ActivityItem]


class Account(BaseModel):
    login: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None


class Organization(BaseModel):
    login: str | None = None
    name: str | None = None
    description: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None
    blog: str | None = None
    location: str | None = None
    public_repos: int | None = None
    followers: int | None = None


class SocialInsightsResponse(BaseModel):
    username: str
    followers: list[Account]
    following: list[Account]
    organizations: list[Organization]

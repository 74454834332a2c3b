from pydantic import BaseModel


class Suggestion(BaseModel):
    name: str | None = None
    description: str | None = None
    html_url: str | None = None
    avatar_url: str | None = None
    stars: int | None = None


class SearchResponse(BaseModel):
    kind: str
    query: str
    total_count: int
    items: list[Suggestion]

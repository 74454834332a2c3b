from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: str


class CacheClearResponse(BaseModel):
    """Result of removing cached responses."""

    status: str
    removed: int

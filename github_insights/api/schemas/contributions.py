from datetime import date

from pydantic import BaseModel


class ContributionDay(BaseModel):
    """Single day item used in the contribution calendar."""

    date: date
    count: int
    level: int


class ContributionCalendarResponse(BaseModel):
    """Contribution calendar, totals and streaks for the requested view.

    Each entry of `weeks` is one Sunday-started week; the first and last
    weeks may be partial.
    """

    username: str
    view: str
    total_contributions: int
    current_streak: int
    longest_streak: int
    has_activity: bool
    weeks: list[list[ContributionDay]]

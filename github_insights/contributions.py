"""Contribution calendar and streaks rebuilt from public GitHub events.

The public events feed is the only activity source available without
authentication, so the calendar approximates GitHub's own graph: every event
is weighted by kind, summed per UTC day, bucketed into Sunday-started weeks
and scanned for streaks.
"""

from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    PUSH = "PushEvent"
    PULL_REQUEST = "PullRequestEvent"
    ISSUES = "IssuesEvent"
    ISSUE_COMMENT = "IssueCommentEvent"
    PULL_REQUEST_REVIEW_COMMENT = "PullRequestReviewCommentEvent"
    COMMIT_COMMENT = "CommitCommentEvent"
    CREATE = "CreateEvent"
    DELETE = "DeleteEvent"
    WATCH = "WatchEvent"
    FORK = "ForkEvent"
    UNKNOWN = "Unknown"

    @classmethod
    def from_type(cls, raw_type: str) -> "EventKind":
        try:
            return cls(raw_type)
        except ValueError:
            return cls.UNKNOWN


COUNTED_ACTIONS = frozenset({"opened", "closed"})
ACTION_KINDS = frozenset({EventKind.PULL_REQUEST, EventKind.ISSUES})
COMMENT_KINDS = frozenset(
    {
        EventKind.ISSUE_COMMENT,
        EventKind.PULL_REQUEST_REVIEW_COMMENT,
        EventKind.COMMIT_COMMENT,
    }
)


@dataclass(frozen=True)
class ActivityEvent:
    kind: EventKind
    created_at: datetime
    commit_count: int | None = None
    action: str | None = None

    @property
    def day(self) -> date:
        if self.created_at.tzinfo is None:
            return self.created_at.date()
        return self.created_at.astimezone(UTC).date()


@dataclass(frozen=True)
class ContributionDay:
    date: date
    count: int
    level: int


ContributionWeek = tuple[ContributionDay, ...]


@dataclass(frozen=True)
class ContributionSummary:
    weeks: tuple[ContributionWeek, ...]
    total_contributions: int
    current_streak: int
    longest_streak: int

    @property
    def days(self) -> list[ContributionDay]:
        return [day for week in self.weeks for day in week]

    @property
    def has_activity(self) -> bool:
        return self.total_contributions > 0


def parse_github_datetime(raw_value: str) -> datetime:
    return datetime.fromisoformat(raw_value.replace("Z", "+00:00"))


def commit_count(payload: Mapping[str, Any]) -> int | None:
    for field_name in ("size", "distinct_size"):
        value = payload.get(field_name)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value

    commits = payload.get("commits")
    if isinstance(commits, list):
        return len(commits)
    return None


def parse_event(raw_event: Mapping[str, Any]) -> ActivityEvent | None:
    """Convert one upstream event into an ActivityEvent.

    Returns None when the event has no usable type or timestamp. A missing
    payload is treated as empty so the event still gets its default weight.
    """

    raw_type = raw_event.get("type")
    created_at_raw = raw_event.get("created_at")
    if not isinstance(raw_type, str) or not isinstance(created_at_raw, str):
        return None

    try:
        created_at = parse_github_datetime(created_at_raw)
    except ValueError:
        return None

    payload = raw_event.get("payload")
    if not isinstance(payload, Mapping):
        payload = {}

    kind = EventKind.from_type(raw_type)
    raw_action = payload.get("action")

    return ActivityEvent(
        kind=kind,
        created_at=created_at,
        commit_count=commit_count(payload) if kind is EventKind.PUSH else None,
        action=raw_action if isinstance(raw_action, str) else None,
    )


def parse_events(raw_events: Iterable[Any]) -> list[ActivityEvent]:
    events: list[ActivityEvent] = []
    for item in raw_events:
        if not isinstance(item, Mapping):
            continue
        event = parse_event(item)
        if event is not None:
            events.append(event)
    return events


def event_weight(event: ActivityEvent) -> int:
    """Number of contributions an event adds to its day."""

    if event.kind is EventKind.PUSH:
        return event.commit_count or 1
    if event.kind in ACTION_KINDS:
        return 1 if event.action in COUNTED_ACTIONS else 0
    if event.kind in COMMENT_KINDS:
        return 1
    return 0


def contribution_level(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    if count <= 0:
        return 0
    if count <= 3:
        return 1
    if count <= 8:
        return 2
    if count <= 15:
        return 3
    return 4


def year_range(years_ago: int, today: date) -> tuple[date, date]:
    """First and last calendar day covered for the target year.

    The current year ends today; earlier years run through December 31.
    """

    if years_ago < 0:
        raise ValueError("years_ago must not be negative")

    target_year = today.year - years_ago
    start = date(target_year, 1, 1)
    end = today if years_ago == 0 else date(target_year, 12, 31)
    return start, end


def build_daily_map(
    events: Iterable[ActivityEvent], years_ago: int, today: date
) -> dict[date, int]:
    start, end = year_range(years_ago, today)

    counts: dict[date, int] = {}
    current_day = start
    while current_day <= end:
        counts[current_day] = 0
        current_day += timedelta(days=1)

    for event in events:
        event_day = event.day
        if event_day not in counts:
            continue
        counts[event_day] += event_weight(event)

    return counts


def _sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def to_weeks(daily_map: Mapping[date, int]) -> tuple[ContributionWeek, ...]:
    """Group days into chronological weeks that start on Sunday."""

    weeks: list[ContributionWeek] = []
    current_week: list[ContributionDay] = []

    for day in sorted(daily_map):
        if _sunday_based_weekday(day) == 0 and current_week:
            weeks.append(tuple(current_week))
            current_week = []

        count = daily_map[day]
        current_week.append(
            ContributionDay(date=day, count=count, level=contribution_level(count))
        )

    if current_week:
        weeks.append(tuple(current_week))

    return tuple(weeks)


def compute_streaks(
    sorted_counts: Sequence[tuple[date, int]], today: date
) -> tuple[int, int]:
    """Return ``(current_streak, longest_streak)`` for ascending day counts.

    The current streak only exists when ``today`` is present with at least one
    contribution; it then extends backwards over consecutive active days.
    """

    current_streak = 0
    found_today = False
    previous_day: date | None = None
    for day, count in reversed(sorted_counts):
        if not found_today:
            if day > today:
                continue
            if day != today:
                break
            found_today = True

        if count <= 0:
            break
        if previous_day is not None and (previous_day - day).days > 1:
            break
        current_streak += 1
        previous_day = day

    longest_streak = 0
    running = 0
    previous_day = None
    for day, count in sorted_counts:
        if count > 0:
            consecutive = (
                previous_day is not None and (day - previous_day).days == 1
            )
            running = running + 1 if consecutive else 1
            longest_streak = max(longest_streak, running)
        else:
            running = 0
        previous_day = day

    return current_streak, longest_streak


def summarize_year(
    events: Iterable[ActivityEvent], years_ago: int, today: date
) -> ContributionSummary:
    daily_map = build_daily_map(events, years_ago, today)
    current_streak, longest_streak = compute_streaks(
        sorted(daily_map.items()), today
    )
    return ContributionSummary(
        weeks=to_weeks(daily_map),
        total_contributions=sum(daily_map.values()),
        current_streak=current_streak,
        longest_streak=longest_streak,
    )


def combine_two_years(
    current_year: ContributionSummary, prior_year: ContributionSummary
) -> ContributionSummary:
    """Join two yearly summaries, prior year first.

    Only the current year can carry a live streak, so its current streak is
    kept as-is.
    """

    return ContributionSummary(
        weeks=prior_year.weeks + current_year.weeks,
        total_contributions=(
            current_year.total_contributions + prior_year.total_contributions
        ),
        current_streak=current_year.current_streak,
        longest_streak=max(current_year.longest_streak, prior_year.longest_streak),
    )

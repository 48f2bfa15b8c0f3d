"""
Hand-maintained aggregates stored on Client documents.

Both values are caches of what the Calendar and Post records say. The fast
path adjusts them incrementally; :mod:`social_scheduler.reconciliation`
recomputes them from source.
"""
from typing import Iterable, List

from .models import Calendar, CalendarSummary, Post
from .pydantic_compat import BaseModel, Field


class PostsCount(BaseModel):
    value: int = Field(default=0, ge=0)

    def apply(self, delta: int) -> "PostsCount":
        """Shift by ``delta``, never going below zero."""
        return PostsCount(value=max(self.value + delta, 0))

    @classmethod
    def recompute(cls, posts: Iterable[Post]) -> "PostsCount":
        return cls(value=sum(1 for _ in posts))


def summarize_calendars(calendars: Iterable[Calendar]) -> List[CalendarSummary]:
    """Project Calendar records to the embedded list, oldest first."""
    ordered = sorted(
        calendars,
        key=lambda cal: (cal.created_at is None, cal.created_at, cal.id or ""),
    )
    return [cal.summary() for cal in ordered]


class ClientAggregates(BaseModel):
    calendars: List[CalendarSummary] = Field(default_factory=list)
    posts_count: PostsCount = Field(default_factory=PostsCount)

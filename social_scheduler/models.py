from datetime import datetime
from typing import List, Literal, Optional

from pydantic import field_validator

from .enums import EntityKind, PostStatus
from .firestore_model import BaseFirestoreModel
from .pydantic_compat import BaseModel, Field
from .timestamps import normalize_timestamp, now_utc


class CalendarSummary(BaseModel):
    """Embedded ``{id, name, color}`` projection of a Calendar on its Client."""

    id: str
    name: str
    color: str


class Client(BaseFirestoreModel):
    class Settings:
        name = "clients"
        kind = EntityKind.CLIENT.value

    type: Literal["client"] = EntityKind.CLIENT.value
    name: str
    code: str
    posts_count: int = Field(default=0, ge=0)
    calendars: List[CalendarSummary] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default_factory=now_utc)

    def find_calendar(self, calendar_id: str) -> Optional[CalendarSummary]:
        for summary in self.calendars:
            if summary.id == calendar_id:
                return summary
        return None


class Calendar(BaseFirestoreModel):
    class Settings:
        name = "calendars"
        kind = EntityKind.CALENDAR.value

    type: Literal["calendar"] = EntityKind.CALENDAR.value
    client_id: str
    name: str
    color: str
    created_at: Optional[datetime] = Field(default_factory=now_utc)

    def summary(self) -> CalendarSummary:
        return CalendarSummary(id=self.id, name=self.name, color=self.color)


class Post(BaseFirestoreModel):
    """
    A scheduled post.

    ``calendar_name``/``calendar_color`` are copied from the Calendar when the
    post is written and are not refreshed when the calendar changes later.
    ``status`` is an open string; :class:`PostStatus` lists the known values.
    """

    class Settings:
        name = "posts"
        kind = EntityKind.POST.value

    type: Literal["post"] = EntityKind.POST.value
    client_id: str
    calendar_id: str
    calendar_name: str = ""
    calendar_color: str = ""
    caption: str
    date: datetime
    image_url: Optional[str] = None
    status: str = PostStatus.SCHEDULED.value
    created_at: Optional[datetime] = Field(default_factory=now_utc)

    @field_validator("date", "created_at", mode="before")
    @classmethod
    def _normalize_dates(cls, value):
        if value is None:
            return value
        return normalize_timestamp(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status_to_str(cls, value):
        return value.value if isinstance(value, PostStatus) else value


class NotificationSeen(BaseFirestoreModel):
    class Settings:
        name = "notifications"
        kind = EntityKind.NOTIFICATION.value

    type: Literal["notification"] = EntityKind.NOTIFICATION.value
    post_id: str
    user_id: str
    seen: bool = True
    seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = Field(default_factory=now_utc)

    @field_validator("seen_at", mode="before")
    @classmethod
    def _normalize_seen_at(cls, value):
        return None if value is None else normalize_timestamp(value)


class ImageFile(BaseModel):
    """An image to upload alongside a post."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


DOCUMENT_MODELS = [Client, Calendar, Post, NotificationSeen]

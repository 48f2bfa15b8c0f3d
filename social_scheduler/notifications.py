import logging
from datetime import datetime, tzinfo
from typing import List, Optional

from .models import NotificationSeen, Post
from .timestamps import local_day_bounds, now_utc

logger = logging.getLogger(__name__)


class NotificationLedger:
    """
    "Posts scheduled today" feed plus per-user seen markers.

    A marker is unique per ``(post_id, user_id)``; marking again refreshes
    ``seen_at`` on the existing marker.
    """

    async def get_today_posts(
        self,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[Post]:
        start, end = local_day_bounds(now, tz)
        return await Post.find_all([Post.date >= start, Post.date < end])

    async def mark_notification_as_seen(self, post_id: str, user_id: str) -> str:
        existing = await NotificationSeen.find_one([
            NotificationSeen.post_id == post_id,
            NotificationSeen.user_id == user_id,
        ])
        seen_at = now_utc()
        if existing is not None:
            await NotificationSeen.update_fields(existing.id, {"seen": True, "seen_at": seen_at})
            return existing.id

        marker = NotificationSeen(post_id=post_id, user_id=user_id, seen=True, seen_at=seen_at)
        await marker.save()
        logger.debug("User %s saw post %s", user_id, post_id)
        return marker.id

    async def get_seen_notifications(self, user_id: str) -> List[NotificationSeen]:
        return await NotificationSeen.find_all([
            NotificationSeen.user_id == user_id,
            NotificationSeen.seen == True,  # noqa: E712 builds a filter tuple
        ])

    async def get_unread_posts(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[Post]:
        posts = await self.get_today_posts(now, tz)
        seen = {marker.post_id for marker in await self.get_seen_notifications(user_id)}
        return [post for post in posts if post.id not in seen]

    async def count_unread(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> int:
        return len(await self.get_unread_posts(user_id, now, tz))

    async def mark_all_as_seen(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[str]:
        """Mark every unread post of today as seen; returns the marker IDs."""
        marker_ids = []
        for post in await self.get_unread_posts(user_id, now, tz):
            marker_ids.append(await self.mark_notification_as_seen(post.id, user_id))
        return marker_ids

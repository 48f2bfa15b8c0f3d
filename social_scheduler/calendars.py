import logging
from collections import Counter
from typing import List, Optional

from .blob_store import BlobStore
from .cleanup import purge_post
from .clients import ClientRegistry
from .enums import EntityKind
from .exceptions import NotFoundError
from .models import Calendar, Post

logger = logging.getLogger(__name__)


class CalendarRegistry:
    """
    Calendar records, kept mirrored in their client's ``calendars`` list.

    Each operation writes the standalone record first and the client's
    embedded list second. If the second step fails the first one stays.
    """

    def __init__(self, clients: ClientRegistry, blobs: BlobStore):
        self.clients = clients
        self.blobs = blobs

    async def create_calendar(self, client_id: str, name: str, color: str) -> str:
        if not name or not name.strip():
            raise ValueError("Calendar name must not be empty.")
        calendar = Calendar(client_id=client_id, name=name.strip(), color=color)
        await calendar.save()

        listed = await self.clients.append_calendar_summary(client_id, calendar.summary())
        if not listed:
            logger.warning("Calendar %s created for missing client %s", calendar.id, client_id)
        else:
            logger.info("Created calendar %s for client %s", calendar.id, client_id)
        return calendar.id

    async def get_calendar(self, calendar_id: str) -> Optional[Calendar]:
        return await Calendar.get(calendar_id)

    async def get_client_calendars(self, client_id: str) -> List[Calendar]:
        return await Calendar.find_all([Calendar.client_id == client_id])

    async def update_calendar(
        self,
        calendar_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        """
        Rename and/or recolour a calendar.

        Posts keep the name and colour they were written with.
        """
        changes = {}
        if name is not None:
            if not name.strip():
                raise ValueError("Calendar name must not be empty.")
            changes["name"] = name.strip()
        if color is not None:
            changes["color"] = color
        if not changes:
            return

        await Calendar.update_fields(calendar_id, changes)

        calendar = await Calendar.get(calendar_id)
        if calendar is None:
            logger.warning("Calendar %s vanished after update; client list not refreshed", calendar_id)
            return
        await self.clients.replace_calendar_summary(
            calendar.client_id, calendar_id, name=changes.get("name"), color=changes.get("color"),
        )

    async def delete_calendar(self, calendar_id: str) -> None:
        """
        Delete a calendar after all its posts and their images.

        The owning client's ``postsCount`` drops by the number of posts removed.
        """
        calendar = await Calendar.get(calendar_id)
        if calendar is None:
            raise NotFoundError(EntityKind.CALENDAR, calendar_id, "Calendar not found")

        posts = await Post.find_all([Post.calendar_id == calendar_id])
        for post in posts:
            await purge_post(self.blobs, post)

        await Calendar.delete_by_id(calendar_id)

        for client_id, removed in Counter(post.client_id for post in posts).items():
            await self.clients.adjust_posts_count(client_id, -removed)
        await self.clients.remove_calendar_summary(calendar.client_id, calendar_id)
        logger.info("Deleted calendar %s with %d posts", calendar_id, len(posts))

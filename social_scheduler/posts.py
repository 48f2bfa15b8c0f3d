import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .blob_store import BlobStore
from .cleanup import discard_image
from .clients import ClientRegistry
from .enums import EntityKind, OrderByDirection, PostStatus
from .exceptions import NotFoundError
from .models import Calendar, ImageFile, Post
from .timestamps import normalize_timestamp, now_utc

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "images"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.]")

# Accepted keys for update_post, stored name -> attribute name
_UPDATABLE_FIELDS = {
    "caption": "caption",
    "date": "date",
    "calendarId": "calendar_id",
    "calendarName": "calendar_name",
    "calendarColor": "calendar_color",
    "status": "status",
}


def build_image_path(
    filename: str,
    now: Optional[datetime] = None,
    millis: Optional[int] = None,
) -> str:
    """``images/<unix millis>_<filename with unsafe characters replaced>``."""
    if millis is None:
        millis = int((now or now_utc()).timestamp() * 1000)
    return f"{IMAGE_FOLDER}/{millis}_{_UNSAFE_FILENAME_CHARS.sub('_', filename)}"


class PostRegistry:
    """
    Scheduled posts, their images, and the owning client's ``postsCount``.

    Image keys carry a millisecond stamp that is strictly increasing per
    registry, so two uploads of the same filename never share a blob.
    """

    def __init__(self, clients: ClientRegistry, blobs: BlobStore):
        self.clients = clients
        self.blobs = blobs
        self._last_image_millis = 0

    def _next_image_path(self, filename: str) -> str:
        millis = max(int(now_utc().timestamp() * 1000), self._last_image_millis + 1)
        self._last_image_millis = millis
        return build_image_path(filename, millis=millis)

    async def _store_image(self, image: ImageFile) -> str:
        path = self._next_image_path(image.filename)
        await self.blobs.upload(path, image.content, image.content_type)
        return await self.blobs.get_url(path)

    async def create_post(
        self,
        client_id: str,
        calendar_id: str,
        caption: str,
        date: Any,
        image: ImageFile,
    ) -> str:
        """
        Upload the image, snapshot the calendar's name/colour and insert the
        post as ``scheduled``. Returns the new post ID.
        """
        if not caption or not caption.strip():
            raise ValueError("Post caption must not be empty.")
        if image is None:
            raise ValueError("An image is required to create a post.")
        date = normalize_timestamp(date)

        image_url = await self._store_image(image)

        calendar = await Calendar.get(calendar_id)
        if calendar is None:
            logger.warning("Calendar %s not found; post stored without calendar snapshot", calendar_id)

        post = Post(
            client_id=client_id,
            calendar_id=calendar_id,
            calendar_name=calendar.name if calendar else "",
            calendar_color=calendar.color if calendar else "",
            caption=caption,
            date=date,
            image_url=image_url,
            status=PostStatus.SCHEDULED.value,
        )
        await post.save()

        await self.clients.adjust_posts_count(client_id, 1)
        logger.info("Created post %s on calendar %s", post.id, calendar_id)
        return post.id

    async def get_posts_by_client(self, client_id: str) -> List[Post]:
        posts = await Post.find_all([Post.client_id == client_id])
        logger.debug("Found %d posts for client %s", len(posts), client_id)
        return posts

    async def get_posts_by_calendar(self, calendar_id: str) -> List[Post]:
        return await Post.find_all(
            [Post.calendar_id == calendar_id],
            order_by=[(Post.date, OrderByDirection.ASCENDING)],
        )

    async def get_post_by_id(self, post_id: str) -> Optional[Post]:
        return await Post.get(post_id)

    async def get_client_schedule(
        self,
        client_id: str,
        calendar_ids: Optional[Iterable[str]] = None,
    ) -> List[Post]:
        """
        A client's posts sorted by date, optionally restricted to some
        calendars. ``calendar_ids=None`` means every calendar.
        """
        posts = await self.get_posts_by_client(client_id)
        if calendar_ids is not None:
            selected = set(calendar_ids)
            posts = [post for post in posts if post.calendar_id in selected]
        return sorted(posts, key=lambda post: post.date)

    async def update_post(
        self,
        post_id: str,
        fields: Optional[Dict[str, Any]] = None,
        image: Optional[ImageFile] = None,
    ) -> str:
        """
        Merge ``fields`` into a post, optionally replacing its image.

        ``calendarName``/``calendarColor`` are stored as given; moving a post
        to another calendar means passing the new snapshot too.
        """
        updates = self._clean_updates(fields or {})
        current = await Post.get(post_id)
        if current is None:
            raise NotFoundError(EntityKind.POST, post_id, "Post not found")

        if image is not None:
            updates["image_url"] = await self._store_image(image)

        await Post.update_fields(post_id, updates)

        if image is not None and current.image_url:
            await discard_image(self.blobs, current.image_url)
        logger.info("Updated post %s (%s)", post_id, ", ".join(sorted(updates)) or "no fields")
        return post_id

    async def delete_post(self, post_id: str) -> None:
        post = await Post.get(post_id)
        if post is None:
            raise NotFoundError(EntityKind.POST, post_id, "Post not found")

        await discard_image(self.blobs, post.image_url)
        await Post.delete_by_id(post_id)
        await self.clients.adjust_posts_count(post.client_id, -1)
        logger.info("Deleted post %s", post_id)

    @staticmethod
    def _clean_updates(fields: Dict[str, Any]) -> Dict[str, Any]:
        attribute_names = set(_UPDATABLE_FIELDS.values())
        updates = {}
        for key, value in fields.items():
            name = _UPDATABLE_FIELDS.get(key, key)
            if name not in attribute_names:
                raise ValueError(f"Field {key!r} cannot be updated on a post.")
            updates[name] = value

        if "caption" in updates and not str(updates["caption"] or "").strip():
            raise ValueError("Post caption must not be empty.")
        if "date" in updates:
            updates["date"] = normalize_timestamp(updates["date"])
        if isinstance(updates.get("status"), PostStatus):
            updates["status"] = updates["status"].value
        return updates

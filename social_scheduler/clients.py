import logging
import random
from typing import Any, Dict, List, Optional

from .aggregates import PostsCount
from .blob_store import BlobStore
from .cleanup import purge_post
from .codes import generate_client_code
from .exceptions import DuplicateCodeError, NotFoundError
from .enums import EntityKind
from .models import Calendar, CalendarSummary, Client, Post

logger = logging.getLogger(__name__)

# Fields callers may change through update_client. ``calendars`` and
# ``postsCount`` belong to the calendar and post registries.
UPDATABLE_FIELDS = {"name": "name", "code": "code"}


class ClientRegistry:
    """
    Client records plus the two caches they carry: the embedded calendar
    summaries and the posts counter.

    The ``*_calendar_summary`` and ``adjust_posts_count`` helpers read the
    whole client, change one field and write it back. Two concurrent writers
    can lose an update; :mod:`social_scheduler.reconciliation` repairs that.
    """

    def __init__(self, blobs: BlobStore, rng: Optional[random.Random] = None):
        self.blobs = blobs
        self.rng = rng

    # ------------------------------------------------------------------ #
    # Reads                                                              #
    # ------------------------------------------------------------------ #

    async def get_client(self, client_id: str) -> Optional[Client]:
        return await Client.get(client_id)

    async def get_client_by_code(self, code: str) -> Optional[Client]:
        if not code:
            return None
        return await Client.find_one([Client.code == code])

    async def get_all_clients(self) -> List[Client]:
        return await Client.find_all()

    async def search_clients(self, term: str) -> List[Client]:
        """Case-insensitive substring match on name or code."""
        clients = await self.get_all_clients()
        needle = (term or "").strip().lower()
        if not needle:
            return clients
        return [
            client for client in clients
            if needle in client.name.lower() or needle in client.code.lower()
        ]

    # ------------------------------------------------------------------ #
    # Writes                                                             #
    # ------------------------------------------------------------------ #

    async def create_client(self, name: str, code: Optional[str] = None) -> str:
        """
        Insert a client and return its ID.

        A code collision raises :class:`DuplicateCodeError` without writing
        anything; generating a new code is up to the caller.
        """
        if not name or not name.strip():
            raise ValueError("Client name must not be empty.")
        code = code or generate_client_code(self.rng)
        await self._ensure_code_free(code)

        client = Client(name=name.strip(), code=code)
        await client.save()
        logger.info("Created client %s with code %s", client.id, code)
        return client.id

    async def update_client(self, client_id: str, fields: Dict[str, Any]) -> None:
        updates = {}
        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS:
                raise ValueError(
                    f"Field {key!r} cannot be updated on a client; "
                    "calendars and postsCount are maintained by their registries."
                )
            updates[UPDATABLE_FIELDS[key]] = value

        if "name" in updates and not str(updates["name"]).strip():
            raise ValueError("Client name must not be empty.")
        if "code" in updates:
            current = await Client.get_or_raise(client_id)
            if updates["code"] != current.code:
                await self._ensure_code_free(updates["code"])

        await Client.update_fields(client_id, updates)

    async def delete_client(self, client_id: str) -> None:
        """
        Delete a client with all its posts (and images) and calendars.

        The three phases run in order without rollback; an interruption leaves
        whatever the finished phases removed.
        """
        client = await Client.get(client_id)
        if client is None:
            raise NotFoundError(EntityKind.CLIENT, client_id, "Client not found")

        posts = await Post.find_all([Post.client_id == client_id])
        for post in posts:
            await purge_post(self.blobs, post)

        calendars = await Calendar.find_all([Calendar.client_id == client_id])
        for calendar in calendars:
            await Calendar.delete_by_id(calendar.id)

        await Client.delete_by_id(client_id)
        logger.info(
            "Deleted client %s (%d posts, %d calendars)",
            client_id, len(posts), len(calendars),
        )

    async def _ensure_code_free(self, code: str) -> None:
        if await Client.find_one([Client.code == code]) is not None:
            raise DuplicateCodeError(code)

    # ------------------------------------------------------------------ #
    # Cache write-back used by the calendar and post registries          #
    # ------------------------------------------------------------------ #

    async def append_calendar_summary(self, client_id: str, summary: CalendarSummary) -> bool:
        client = await Client.get(client_id)
        if client is None:
            logger.warning("Client %s missing; calendar %s left unlisted", client_id, summary.id)
            return False
        calendars = list(client.calendars) + [summary]
        await Client.update_fields(client_id, {"calendars": calendars})
        return True

    async def replace_calendar_summary(
        self,
        client_id: str,
        calendar_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> bool:
        client = await Client.get(client_id)
        if client is None:
            logger.warning("Client %s missing; calendar %s summary not refreshed", client_id, calendar_id)
            return False
        calendars = []
        for summary in client.calendars:
            if summary.id == calendar_id:
                changes = {}
                if name is not None:
                    changes["name"] = name
                if color is not None:
                    changes["color"] = color
                summary = summary.model_copy(update=changes)
            calendars.append(summary)
        await Client.update_fields(client_id, {"calendars": calendars})
        return True

    async def remove_calendar_summary(self, client_id: str, calendar_id: str) -> bool:
        client = await Client.get(client_id)
        if client is None:
            return False
        calendars = [summary for summary in client.calendars if summary.id != calendar_id]
        await Client.update_fields(client_id, {"calendars": calendars})
        return True

    async def adjust_posts_count(self, client_id: str, delta: int) -> Optional[int]:
        """Shift ``postsCount`` by ``delta`` (floored at 0); returns the new value."""
        client = await Client.get(client_id)
        if client is None:
            logger.warning("Client %s missing; postsCount not adjusted by %d", client_id, delta)
            return None
        count = PostsCount(value=client.posts_count).apply(delta)
        await Client.update_fields(client_id, {"posts_count": count.value})
        return count.value

import logging
import random
from typing import List, Optional

from .blob_store import BlobStore
from .calendars import CalendarRegistry
from .clients import ClientRegistry
from .codes import is_valid_client_code
from .firestore_client import FirestoreDB
from .models import Client, Post
from .notifications import NotificationLedger
from .posts import PostRegistry
from .pydantic_compat import BaseModel, Field
from .reconciliation import Reconciler

logger = logging.getLogger(__name__)


class ClientPortal(BaseModel):
    """What a client sees after entering their access code."""

    client: Client
    posts: List[Post] = Field(default_factory=list)


class Scheduler:
    """
    Wires the registries to one database and one blob store.

    ``init_scheduler`` must have been called with the same ``db`` first.
    """

    def __init__(self, db: FirestoreDB, blobs: BlobStore, rng: Optional[random.Random] = None):
        self.db = db
        self.blobs = blobs
        self.clients = ClientRegistry(blobs, rng=rng)
        self.calendars = CalendarRegistry(self.clients, blobs)
        self.posts = PostRegistry(self.clients, blobs)
        self.notifications = NotificationLedger()
        self.reconciler = Reconciler()

    async def client_portal(self, code: str) -> Optional[ClientPortal]:
        """Look a client up by access code and load its schedule."""
        code = (code or "").strip().upper()
        if not is_valid_client_code(code):
            logger.debug("Rejected malformed client code %r", code)
            return None
        client = await self.clients.get_client_by_code(code)
        if client is None:
            return None
        posts = await self.posts.get_client_schedule(client.id)
        return ClientPortal(client=client, posts=posts)

from typing import List, Optional, Type

from .blob_store import BlobStore, S3BlobStore
from .calendars import CalendarRegistry
from .clients import ClientRegistry
from .codes import generate_client_code, is_valid_client_code
from .enums import EntityKind, FirestoreOperators, OrderByDirection, PostStatus
from .exceptions import DuplicateCodeError, NotFoundError, SchedulerError, StorageCleanupWarning
from .firestore_client import FirestoreDB
from .firestore_fields import FirestoreField
from .firestore_model import BaseFirestoreModel
from .models import (
    DOCUMENT_MODELS,
    Calendar,
    CalendarSummary,
    Client,
    ImageFile,
    NotificationSeen,
    Post,
)
from .notifications import NotificationLedger
from .posts import PostRegistry, build_image_path
from .reconciliation import Reconciler
from .scheduler import ClientPortal, Scheduler


def init_scheduler(
    database: FirestoreDB,
    document_models: Optional[List[Type[BaseFirestoreModel]]] = None,
    shared_collection: Optional[str] = None,
):
    """
    Bind the document models to ``database``.

    By default each kind lives in its own collection. Pass
    ``shared_collection`` (e.g. ``"sites"``) to keep every kind in one
    collection told apart by the ``type`` field.
    """
    for model in document_models or DOCUMENT_MODELS:
        model.initialize_db(database, collection=shared_collection)
        model.initialize_fields()


__all__ = [
    "BaseFirestoreModel",
    "BlobStore",
    "Calendar",
    "CalendarRegistry",
    "CalendarSummary",
    "Client",
    "ClientPortal",
    "ClientRegistry",
    "DuplicateCodeError",
    "EntityKind",
    "FirestoreDB",
    "FirestoreField",
    "FirestoreOperators",
    "ImageFile",
    "NotFoundError",
    "NotificationLedger",
    "NotificationSeen",
    "OrderByDirection",
    "Post",
    "PostRegistry",
    "PostStatus",
    "Reconciler",
    "S3BlobStore",
    "Scheduler",
    "SchedulerError",
    "StorageCleanupWarning",
    "build_image_path",
    "generate_client_code",
    "init_scheduler",
    "is_valid_client_code",
]

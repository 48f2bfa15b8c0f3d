import logging
from typing import Any, AsyncGenerator, ClassVar, Dict, List, Optional, Tuple, Union

from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1 import AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath
from pydantic.alias_generators import to_camel

from .enums import FirestoreOperators, OrderByDirection
from .exceptions import NotFoundError
from .firestore_client import FirestoreDB
from .firestore_fields import FirestoreField
from .pydantic_compat import BaseModel, Field, get_model_config, get_model_fields, model_dump_compat

# Alias for the first element in order-by tuple
FieldType = Union[str, FirestoreField]
# Alias for field ordering tuples
FieldOrderType = Tuple[FieldType, OrderByDirection]
FilterType = Tuple[FieldType, Union[FirestoreOperators, str], Any]

logger = logging.getLogger(__name__)


class BaseFirestoreModel(BaseModel):
    """
    Base document model for the scheduler's Firestore collections.

    Every subclass declares a ``Settings`` class with the collection ``name``
    and the ``kind`` stored in its ``type`` discriminator. All queries issued
    through :meth:`find` are scoped to that kind, so several kinds may share
    one physical collection (see :func:`social_scheduler.init_scheduler`).
    """

    model_config = get_model_config(alias_generator=to_camel)

    # --------------------------------------------------------------------------
    # Default field (document ID)
    # --------------------------------------------------------------------------
    id: Optional[str] = Field(default=None)

    # --------------------------------------------------------------------------
    # Injected FirestoreDB instance and optional shared collection name
    # --------------------------------------------------------------------------
    _db: ClassVar[Optional[FirestoreDB]] = None
    _collection_override: ClassVar[Optional[str]] = None

    class Settings:
        name: str = "BaseCollection"  # Override in subclasses
        kind: Optional[str] = None

    @classmethod
    def initialize_fields(cls) -> None:
        for field_name, field_info in get_model_fields(cls).items():
            alias = (
                FieldPath.document_id() if field_name == "id"
                else (field_info.alias or field_name)
            )
            setattr(cls, field_name, FirestoreField(alias))

    # --------------------------------------------------------------------------
    # Database initialization methods (injection)
    # --------------------------------------------------------------------------
    @classmethod
    def initialize_db(cls, db: FirestoreDB, collection: Optional[str] = None):
        """
        Inject the FirestoreDB instance to be used for all operations.

        ``collection`` overrides ``Settings.name``; used to point every kind at
        one shared, type-tagged collection.
        """
        cls._db = db
        cls._collection_override = collection

    @classmethod
    def _client(cls) -> AsyncClient:
        if not cls._db:
            raise RuntimeError("Database must be initialized before using the model.")
        return cls._db.client

    @classmethod
    def get_collection_name(cls) -> str:
        if cls._collection_override:
            return cls._collection_override
        if hasattr(cls, "Settings") and hasattr(cls.Settings, "name"):
            return cls.Settings.name
        return cls.__name__

    @classmethod
    def get_kind(cls) -> Optional[str]:
        return getattr(cls.Settings, "kind", None)

    # --------------------------------------------------------------------------
    # Serialization helpers
    # --------------------------------------------------------------------------
    def to_document(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Stored representation: aliased keys, no ``id``."""
        return model_dump_compat(
            self,
            exclude={"id"},
            exclude_none=exclude_none,
            by_alias=True,
        )

    @classmethod
    def from_snapshot(cls, snapshot) -> "BaseFirestoreModel":
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return cls(**data)

    @classmethod
    def to_store_fields(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Map attribute names to stored names and dump nested models, so
        ``{"posts_count": 1}`` and ``{"postsCount": 1}`` are equivalent.
        """
        model_fields = get_model_fields(cls)
        stored = {}
        for key, value in fields.items():
            info = model_fields.get(key)
            name = (info.alias or key) if info is not None else key
            stored[name] = _dump_value(value)
        return stored

    # --------------------------------------------------------------------------
    # CRUD operations: create/update/delete
    # --------------------------------------------------------------------------
    async def save(self, exclude_none: bool = True) -> "BaseFirestoreModel":
        """
        Create the document in Firestore. An ID is assigned when missing.
        """
        collection_ref = self._client().collection(self.get_collection_name())

        if not self.id:
            doc_ref = collection_ref.document()
            self.id = doc_ref.id
        else:
            doc_ref = collection_ref.document(self.id)
            if (await doc_ref.get()).exists:
                raise RuntimeError("Error creating object: provided ID already exists.")

        data_to_save = self.to_document(exclude_none=exclude_none)
        logger.debug("Save: %s - id=%s", self.get_collection_name(), self.id)
        await doc_ref.set(data_to_save)
        return self

    @classmethod
    async def update_fields(cls, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge ``fields`` into an existing document.

        Raises :class:`NotFoundError` when the document does not exist.
        """
        if not doc_id:
            raise ValueError("Cannot update a document without an ID.")
        updates = cls.to_store_fields(fields)
        if not updates:
            return
        doc_ref = cls._client().collection(cls.get_collection_name()).document(doc_id)
        kind = cls.get_kind()
        if kind and cls._collection_override:
            # other kinds share this collection
            doc_snap = await doc_ref.get()
            if not doc_snap.exists or (doc_snap.to_dict() or {}).get("type", kind) != kind:
                raise NotFoundError(kind, doc_id)
        logger.debug("Update: %s - id=%s, fields=%s", cls.get_collection_name(), doc_id, sorted(updates))
        try:
            await doc_ref.update(updates)
        except NotFound as exc:
            raise NotFoundError(cls.get_kind() or cls.__name__, doc_id) from exc

    @classmethod
    async def delete_by_id(cls, doc_id: str) -> None:
        if not doc_id:
            raise ValueError("Cannot delete a document without an ID.")
        doc_ref = cls._client().collection(cls.get_collection_name()).document(doc_id)
        logger.debug("Delete: %s - id=%s", cls.get_collection_name(), doc_id)
        await doc_ref.delete()

    async def delete(self) -> None:
        await self.delete_by_id(self.id)

    # --------------------------------------------------------------------------
    # Get a document by ID
    # --------------------------------------------------------------------------
    @classmethod
    async def get(cls, doc_id: str) -> Optional["BaseFirestoreModel"]:
        """
        Retrieve a document by its ID, or ``None``.

        A document of another kind living in a shared collection is treated
        as absent.
        """
        if not doc_id:
            return None
        doc_ref = cls._client().collection(cls.get_collection_name()).document(doc_id)
        doc_snap = await doc_ref.get()

        if not doc_snap.exists:
            return None
        data = doc_snap.to_dict() or {}
        kind = cls.get_kind()
        if kind and data.get("type", kind) != kind:
            return None
        data["id"] = doc_snap.id
        return cls(**data)

    @classmethod
    async def get_or_raise(cls, doc_id: str) -> "BaseFirestoreModel":
        obj = await cls.get(doc_id)
        if obj is None:
            raise NotFoundError(cls.get_kind() or cls.__name__, doc_id)
        return obj

    # --------------------------------------------------------------------------
    # Count documents
    # --------------------------------------------------------------------------
    @classmethod
    async def count(cls, filters: Optional[List[FilterType]] = None) -> int:
        """
        Return the number of documents matching the given filters.
        If the SDK does not support .count(), a manual approach is used.
        """
        query = cls._build_query(cls._client(), filters=filters or [])
        try:
            count_snapshot = await query.count().get()
            return count_snapshot[0][0].value
        except AttributeError:
            logger.warning("Firestore: Performing count by fetching all items with empty select")
            docs = await query.select([]).get()
            return len(docs)

    # --------------------------------------------------------------------------
    # Find (asynchronous generator)
    # --------------------------------------------------------------------------
    @classmethod
    async def find(
        cls,
        filters: Optional[List[FilterType]] = None,
        order_by: Optional[
            Union[List[Union[FieldType, FieldOrderType]], Union[FieldType, FieldOrderType]]
        ] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> AsyncGenerator["BaseFirestoreModel", None]:
        """
        Asynchronously search for documents matching filters and yield instances.
        """
        query = cls._build_query(cls._client(), filters=filters or [])

        # Ordering
        if order_by:
            if not isinstance(order_by, list):
                order_by = [order_by]
            for order_by_field in order_by:
                if isinstance(order_by_field, tuple):
                    field, direction = order_by_field
                    query = query.order_by(str(field), direction=str(direction))
                else:
                    query = query.order_by(str(order_by_field))

        # Pagination
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async for doc in query.stream():
            yield cls.from_snapshot(doc)

    @classmethod
    async def find_all(cls, filters: Optional[List[FilterType]] = None, **kwargs) -> List["BaseFirestoreModel"]:
        return [obj async for obj in cls.find(filters=filters, **kwargs)]

    @classmethod
    async def find_one(
        cls,
        filters: List[FilterType],
        order_by: Optional[Union[FieldType, FieldOrderType]] = None,
    ) -> Optional["BaseFirestoreModel"]:
        """
        Return the first document matching filters, or None if no match.
        """
        async for obj in cls.find(filters=filters, order_by=order_by, limit=1):
            return obj
        return None

    # --------------------------------------------------------------------------
    # Internal query builder
    # --------------------------------------------------------------------------
    @classmethod
    def _build_query(cls, db_client: AsyncClient, filters: List[FilterType]):
        """
        Build a Firestore query from filter tuples, scoped to this kind.
        """
        query = db_client.collection(cls.get_collection_name())

        kind = cls.get_kind()
        if kind:
            filters = [("type", FirestoreOperators.EQ, kind)] + list(filters)

        for (field_name, op, value) in filters:
            op_string = op.value if isinstance(op, FirestoreOperators) else str(op)
            query = query.where(filter=FieldFilter(str(field_name), op_string, value))

        return query


def _dump_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return model_dump_compat(value, by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_dump_value(item) for item in value]
    return value

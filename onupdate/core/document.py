from __future__ import annotations

from typing import Any, ClassVar, Optional, Self

from bson import ObjectId
from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_serializer, field_validator
from pymongo.asynchronous.collection import AsyncCollection

from onupdate.core.connection import get_database
from onupdate.lifecycle.hooks import (
    POST_DELETE,
    POST_SAVE,
    POST_UPDATE,
    PRE_DELETE,
    PRE_SAVE,
    PRE_UPDATE,
    PRE_UPDATE_WRITE,
    PRE_VALIDATE,
    collect_hooks,
    run_hooks,
)
from onupdate.lifecycle.observability import track_query
from onupdate.utils.exceptions import DocumentNotFound
from onupdate.utils.settings import SettingsResolver
from onupdate.utils.types import DocumentData, DocumentId, FilterSpec, merge_filters


class Document(BaseModel):
    """Base document class for MongoDB models.

    Provides CRUD operations, ordered dirty tracking, lifecycle hook points
    and automatic collection binding.
    """

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    id: Optional[ObjectId] = Field(default=None, alias="_id")

    _is_new: bool = PrivateAttr(default=True)
    _is_loaded: bool = PrivateAttr(default=False)
    # Insertion-ordered set of fields assigned since the last load
    _changed_columns: dict[str, None] = PrivateAttr(default_factory=dict)

    # Set by __init_subclass__
    _collection_name: ClassVar[str] = ""
    _connection_alias: ClassVar[str] = "default"
    _hooks: ClassVar[dict[str, list[str]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if cls.__name__ == "Document":
            return

        cls._collection_name = SettingsResolver.get_collection_name(cls)
        cls._connection_alias = SettingsResolver.get_connection_alias(cls)
        cls._hooks = collect_hooks(cls)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_object_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not ObjectId.is_valid(value):
                raise ValueError(f"Invalid ObjectId: {value}")
            return ObjectId(value)
        return value

    @field_serializer("id", when_used="json")
    def serialize_object_id(self, value: Optional[ObjectId]) -> Optional[str]:
        return str(value) if value is not None else None

    def __setattr__(self, name: str, value: Any) -> None:
        if (
            name != "id"
            and getattr(self, "_is_loaded", False)
            and name in self.__class__.model_fields
            and getattr(self, name) != value
        ):
            self._changed_columns[name] = None
        super().__setattr__(name, value)

    # --- Dirty tracking ---

    @property
    def is_dirty(self) -> bool:
        return bool(self._changed_columns)

    @property
    def dirty_fields(self) -> set[str]:
        return set(self._changed_columns)

    @property
    def changed_columns(self) -> list[str]:
        """Fields changed since the document was loaded, in mutation order."""
        return list(self._changed_columns)

    def _mark_loaded(self) -> None:
        """Mark document as loaded from DB, clearing dirty state."""
        self._changed_columns = {}
        self._is_loaded = True
        self._is_new = False

    def _get_update_doc(self) -> DocumentData:
        """Build a $set update document from changed fields only."""
        if not self._changed_columns:
            return {}
        data = self._to_mongo()
        changes = {}
        for field_name in self._changed_columns:
            field_info = self.__class__.model_fields[field_name]
            mongo_key = field_info.alias or field_name
            changes[mongo_key] = data.get(mongo_key, data.get(field_name))
        return {"$set": changes}

    # --- Serialization ---

    def _to_mongo(self) -> DocumentData:
        """Convert document to a MongoDB-compatible dict, keeping native ObjectIds."""
        data = self.model_dump(by_alias=True, mode="python")
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def _from_mongo(cls, data: DocumentData) -> Self:
        doc = cls.model_validate(data)
        doc._mark_loaded()
        return doc

    # --- Collection access ---

    @classmethod
    def get_collection(cls) -> AsyncCollection:
        """Get the MongoDB collection for this document class."""
        db = get_database(cls._connection_alias)
        return db[cls._collection_name]

    # --- Class-level CRUD ---

    @classmethod
    async def create(cls, **kwargs: Any) -> Self:
        """Create and insert a new document."""
        doc = cls(**kwargs)
        await doc.insert()
        return doc

    @classmethod
    async def get(cls, id: DocumentId) -> Self:
        """Find a document by its _id. Raises DocumentNotFound if missing."""
        if isinstance(id, str):
            id = ObjectId(id)
        async with track_query("get", cls._collection_name, cls.__name__, filter={"_id": id}):
            data = await cls.get_collection().find_one({"_id": id})
        if data is None:
            raise DocumentNotFound(f"{cls.__name__} with id '{id}' not found")
        return cls._from_mongo(data)

    @classmethod
    async def find_one(cls, filter: FilterSpec | None = None, **kwargs: Any) -> Self | None:
        """Find a single document matching the filter."""
        filter = merge_filters(filter, **kwargs)
        async with track_query("find_one", cls._collection_name, cls.__name__, filter=filter):
            data = await cls.get_collection().find_one(filter)
        if data is None:
            return None
        return cls._from_mongo(data)

    # --- Instance-level CRUD ---

    async def insert(self) -> None:
        """Insert this document. Update hook points do not run."""
        await run_hooks(self, PRE_VALIDATE)
        await run_hooks(self, PRE_SAVE)
        async with track_query("insert", self._collection_name, self.__class__.__name__):
            result = await self.get_collection().insert_one(self._to_mongo())
            self.id = result.inserted_id
            self._mark_loaded()
        await run_hooks(self, POST_SAVE)

    async def save(self) -> None:
        """Insert if new, otherwise write the changed fields.

        Saving a clean, already persisted document is a no-op and runs no
        hooks.
        """
        if self._is_new:
            await self.insert()
            return

        if not self.is_dirty:
            return

        await run_hooks(self, PRE_VALIDATE)
        await run_hooks(self, PRE_SAVE)
        await run_hooks(self, PRE_UPDATE)
        await run_hooks(self, PRE_UPDATE_WRITE)
        update_doc = self._get_update_doc()
        async with track_query(
            "save", self._collection_name, self.__class__.__name__, update=update_doc
        ):
            if update_doc:
                await self.get_collection().update_one({"_id": self.id}, update_doc)
            self._changed_columns = {}
        await run_hooks(self, POST_UPDATE)
        await run_hooks(self, POST_SAVE)

    async def update(self, **kwargs: Any) -> None:
        """Atomic partial update of the given fields.

        Only fields whose value differs from the current one count as
        changed. When none do, nothing is written and no hooks run. Fields
        changed by ``pre_update`` hooks are written along with ``kwargs``;
        other unsaved changes stay dirty.

        Raises:
            DocumentNotFound: If the document was never inserted
            ValueError: If a field doesn't exist or a value is invalid
        """
        if self._is_new:
            raise DocumentNotFound(
                f"{self.__class__.__name__} has not been inserted, cannot update it"
            )

        for key in kwargs:
            if key not in self.__class__.model_fields:
                raise ValueError(f"Unknown field: {key}")

        try:
            current_data = self.model_dump(mode="python")
            current_data.update(kwargs)
            self.__class__.model_validate(current_data)
        except ValidationError as e:
            raise ValueError(f"Invalid update values: {e}") from e

        # A dirty field may hold the new value locally but not in the database
        changed = [
            key
            for key, value in kwargs.items()
            if key in self._changed_columns or getattr(self, key) != value
        ]
        if not changed:
            return

        before = dict(self._changed_columns)
        previous = {key: getattr(self, key) for key in kwargs}
        for key, value in kwargs.items():
            object.__setattr__(self, key, value)
        self._changed_columns = dict.fromkeys(changed)
        try:
            await run_hooks(self, PRE_UPDATE)
            await run_hooks(self, PRE_UPDATE_WRITE)
            written = list(self._changed_columns)
            update_doc = self._get_update_doc()
            async with track_query(
                "update", self._collection_name, self.__class__.__name__, update=update_doc
            ):
                await self.get_collection().update_one({"_id": self.id}, update_doc)
        except BaseException:
            hook_changes = [name for name in self._changed_columns if name not in kwargs]
            for key, value in previous.items():
                object.__setattr__(self, key, value)
            self._changed_columns = {**before, **dict.fromkeys(hook_changes)}
            raise
        self._changed_columns = {
            name: None for name in before if name not in kwargs and name not in written
        }
        await run_hooks(self, POST_UPDATE)

    async def delete(self) -> None:
        """Delete this document from the database."""
        await run_hooks(self, PRE_DELETE)
        async with track_query("delete", self._collection_name, self.__class__.__name__):
            await self.get_collection().delete_one({"_id": self.id})
        await run_hooks(self, POST_DELETE)

    async def reload(self) -> None:
        """Re-fetch this document from the database, discarding local changes."""
        async with track_query("reload", self._collection_name, self.__class__.__name__):
            data = await self.get_collection().find_one({"_id": self.id})
        if data is None:
            raise DocumentNotFound(
                f"{self.__class__.__name__} with id '{self.id}' not found"
            )
        refreshed = self.__class__.model_validate(data)
        for field_name in self.__class__.model_fields:
            object.__setattr__(self, field_name, getattr(refreshed, field_name))
        self._mark_loaded()

from datetime import datetime
from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.cursor import AsyncCursor

from opentribe.errors import NotFoundError


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")
        return data

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Iterate over an AsyncCursor and return a list of model instances."""
        return [cls.model_validate(item) async for item in cursor]


class SoftDeletable(MongoModel):
    """Document that is hidden by a deletion timestamp instead of being removed."""

    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


NOT_DELETED: dict[str, Any] = {"deleted_at": None}


async def increment_floored(collection: AsyncCollection[dict[str, Any]], doc_id: UUID, field: str, delta: int) -> int:
    """Atomically add `delta` to a counter without letting it go below zero.

    Returns the counter value after the update. Raises NotFoundError when the
    document does not exist.
    """
    query: dict[str, Any] = {"_id": doc_id}
    if delta < 0:
        query[field] = {"$gte": -delta}
    doc = await collection.find_one_and_update(query, {"$inc": {field: delta}}, return_document=ReturnDocument.AFTER)
    if doc is None:
        # Either missing, or already at the floor
        doc = await collection.find_one({"_id": doc_id})
        if doc is None:
            raise NotFoundError("Document not found")
    return int(doc.get(field, 0))

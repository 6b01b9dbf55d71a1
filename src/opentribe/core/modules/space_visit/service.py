from typing import Any
from uuid import UUID, uuid4

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.modules.space_visit.models import SpaceVisit
from opentribe.utils import now


class SpaceVisitService(Service):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("space_visits")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("space_id", 1)], unique=True)

    async def record_visit(self, user_id: UUID, space_id: UUID) -> SpaceVisit:
        doc = await self._collection.find_one_and_update(
            {"user_id": user_id, "space_id": space_id},
            {"$set": {"last_visited_at": now()}, "$setOnInsert": {"_id": uuid4()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return SpaceVisit.model_validate(doc)

    async def get_visits(self, user_id: UUID) -> list[SpaceVisit]:
        return await SpaceVisit.list_cursor(self._collection.find({"user_id": user_id}))

    async def get_visit(self, user_id: UUID, space_id: UUID) -> SpaceVisit | None:
        doc = await self._collection.find_one({"user_id": user_id, "space_id": space_id})
        return SpaceVisit.model_validate(doc) if doc else None

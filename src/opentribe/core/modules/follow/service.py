from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from opentribe.core.core import Service
from opentribe.core.modules.follow.models import Follow
from opentribe.errors import AlreadyInStateError, ValidationError

logger = structlog.get_logger(__name__)


class FollowService(Service):
    """Follow graph between profiles."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("follows")

    async def on_start(self) -> None:
        await self._collection.create_index([("follower_id", 1), ("following_id", 1)], unique=True)
        await self._collection.create_index([("following_id", 1)])

    async def follow(self, follower_id: UUID, following_id: UUID) -> Follow:
        if follower_id == following_id:
            raise ValidationError("You cannot follow yourself")
        await self.core.services.profile.get_profile(following_id)

        follow = Follow(follower_id=follower_id, following_id=following_id)
        try:
            await self._collection.insert_one(follow.to_mongo())
        except DuplicateKeyError as e:
            raise AlreadyInStateError("Already following this user") from e
        logger.debug("follow_created", follower_id=str(follower_id), following_id=str(following_id))
        return follow

    async def unfollow(self, follower_id: UUID, following_id: UUID) -> None:
        result = await self._collection.delete_one({"follower_id": follower_id, "following_id": following_id})
        if result.deleted_count == 0:
            raise AlreadyInStateError("Not following this user")

    async def get_following_ids(self, follower_id: UUID) -> list[UUID]:
        cursor = self._collection.find({"follower_id": follower_id}, sort=[("created_at", -1)])
        return [doc["following_id"] async for doc in cursor]

    async def get_follower_ids(self, following_id: UUID) -> list[UUID]:
        cursor = self._collection.find({"following_id": following_id}, sort=[("created_at", -1)])
        return [doc["follower_id"] async for doc in cursor]

    async def is_following(self, follower_id: UUID, following_id: UUID) -> bool:
        return await self._collection.find_one({"follower_id": follower_id, "following_id": following_id}) is not None

from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from opentribe.core.core import Service
from opentribe.core.modules.comment.models import Comment
from opentribe.core.modules.like.models import Like, LikeTarget, LikeToggleResult
from opentribe.core.modules.points.models import PointAction
from opentribe.core.modules.post.models import Post
from opentribe.core.modules.profile.models import Profile
from opentribe.errors import AlreadyInStateError, NotFoundError

logger = structlog.get_logger(__name__)


class LikeService(Service):
    """Like toggling with denormalized counters on posts and comments."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("likes")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("target_type", 1), ("target_id", 1)], unique=True)
        await self._collection.create_index([("target_type", 1), ("target_id", 1)])

    async def toggle_like(self, profile: Profile, target_type: LikeTarget, target_id: UUID) -> LikeToggleResult:
        """Like the target, or remove an existing like.

        Liking awards points to the target's author (self-likes included); unliking
        never takes points back.
        """
        target = await self._get_target(target_type, target_id)
        key = {"user_id": profile.id, "target_type": target_type, "target_id": target_id}

        if await self._collection.find_one_and_delete(key) is not None:
            new_count = await self._change_count(target_type, target_id, -1)
            logger.debug("like_removed", target_type=target_type, target_id=str(target_id))
            return LikeToggleResult(liked=False, new_count=new_count)

        try:
            await self._collection.insert_one(Like(**key).to_mongo())
        except DuplicateKeyError as e:
            raise AlreadyInStateError("Already liked") from e
        new_count = await self._change_count(target_type, target_id, 1)
        await self.core.services.points.award_points(
            target.author_id, PointAction.LIKE_RECEIVED, str(target_type), target_id
        )
        logger.debug("like_added", target_type=target_type, target_id=str(target_id))
        return LikeToggleResult(liked=True, new_count=new_count)

    async def has_user_liked(self, user_id: UUID, target_type: LikeTarget, target_id: UUID) -> bool:
        doc = await self._collection.find_one({"user_id": user_id, "target_type": target_type, "target_id": target_id})
        return doc is not None

    async def liked_target_ids(self, user_id: UUID, target_type: LikeTarget, target_ids: list[UUID]) -> set[UUID]:
        """Subset of `target_ids` the user has liked."""
        if not target_ids:
            return set()
        cursor = self._collection.find(
            {"user_id": user_id, "target_type": target_type, "target_id": {"$in": target_ids}}
        )
        return {doc["target_id"] async for doc in cursor}

    async def get_like_count(self, target_type: LikeTarget, target_id: UUID) -> int:
        """Denormalized like count of a target, or 0 when it does not exist."""
        try:
            target = await self._get_target(target_type, target_id, include_deleted=True)
        except NotFoundError:
            return 0
        return target.like_count

    async def _get_target(
        self, target_type: LikeTarget, target_id: UUID, include_deleted: bool = False
    ) -> Post | Comment:
        match target_type:
            case LikeTarget.POST:
                return await self.core.services.post.get_post(target_id, include_deleted)
            case LikeTarget.COMMENT:
                return await self.core.services.comment.get_comment(target_id, include_deleted)

    async def _change_count(self, target_type: LikeTarget, target_id: UUID, delta: int) -> int:
        match target_type:
            case LikeTarget.POST:
                return await self.core.services.post.change_like_count(target_id, delta)
            case LikeTarget.COMMENT:
                return await self.core.services.comment.change_like_count(target_id, delta)

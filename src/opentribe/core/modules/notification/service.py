from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.modules.comment.models import Comment
from opentribe.core.modules.notification.fanout import comment_notification_recipients
from opentribe.core.modules.notification.models import PREVIEW_LENGTH, Notification, NotificationData
from opentribe.core.modules.post.models import Post
from opentribe.core.pagination import PaginationResult
from opentribe.errors import NotFoundError

logger = structlog.get_logger(__name__)


class NotificationService(Service):
    """In-app notifications: fan-out on new comments, listing and read state."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("notifications")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("created_at", -1)])
        await self._collection.create_index([("user_id", 1), ("read", 1)])

    async def notify_comment_created(self, post: Post, comment: Comment, parent: Comment | None) -> list[Notification]:
        """Fan out notifications for a new comment; `parent` is the effective parent."""
        recipients = comment_notification_recipients(
            comment.author_id, post.author_id, parent.author_id if parent is not None else None
        )
        data = NotificationData(
            post_id=post.id,
            comment_id=comment.id,
            parent_comment_id=comment.parent_id,
            preview=comment.content[:PREVIEW_LENGTH],
        )
        notifications = [
            Notification(
                user_id=user_id,
                type=notification_type,
                actor_id=comment.author_id,
                actor_name=comment.author_name,
                actor_avatar=comment.author_avatar,
                data=data,
            )
            for user_id, notification_type in recipients
        ]
        if notifications:
            await self._collection.insert_many([notification.to_mongo() for notification in notifications])
            logger.debug("notifications_created", comment_id=str(comment.id), count=len(notifications))
        return notifications

    async def list_notifications(
        self, user_id: UUID, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Notification]:
        query: dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["read"] = False
        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query, sort=[("created_at", -1)], skip=offset, limit=limit)
        items = await Notification.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def count_unread(self, user_id: UUID) -> int:
        return await self._collection.count_documents({"user_id": user_id, "read": False})

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> None:
        """Mark one of the user's notifications read; other users' notifications look missing."""
        result = await self._collection.update_one(
            {"_id": notification_id, "user_id": user_id}, {"$set": {"read": True}}
        )
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self._collection.update_many({"user_id": user_id, "read": False}, {"$set": {"read": True}})
        return result.modified_count

from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.db import NOT_DELETED, increment_floored
from opentribe.core.modules.comment.models import MAX_COMMENT_LENGTH, Comment, CommentView
from opentribe.core.modules.comment.nesting import build_comment_tree, effective_parent_id
from opentribe.core.modules.like.models import LikeTarget
from opentribe.core.modules.points.models import PointAction
from opentribe.core.modules.post.models import Post
from opentribe.core.modules.profile.models import Profile
from opentribe.errors import AlreadyInStateError, NotFoundError, ValidationError
from opentribe.utils import check_length, now

logger = structlog.get_logger(__name__)


class CommentService(Service):
    """Two-level threaded comments on posts."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("comments")

    async def on_start(self) -> None:
        await self._collection.create_index([("post_id", 1), ("created_at", 1)])
        await self._collection.create_index([("parent_id", 1)])

    async def get_comment(self, comment_id: UUID, include_deleted: bool = False) -> Comment:
        doc = await self._collection.find_one({"_id": comment_id})
        if doc is None:
            raise NotFoundError("Comment not found")
        comment = Comment.model_validate(doc)
        if comment.is_deleted and not include_deleted:
            raise NotFoundError("Comment not found")
        return comment

    async def create_comment(
        self, author: Profile, post: Post, content: str, parent_id: UUID | None = None
    ) -> Comment:
        """Create a comment or reply.

        Replies to a reply are attached to that reply's root, so threads never
        nest deeper than two levels.
        """
        check_length(content, "Comment", MAX_COMMENT_LENGTH, min_length=1)

        parent: Comment | None = None
        if parent_id is not None:
            parent = await self.get_comment(parent_id)
            if parent.post_id != post.id:
                raise ValidationError("Parent comment belongs to a different post")
            root_id = effective_parent_id(parent)
            if root_id != parent.id:
                parent = await self.get_comment(root_id, include_deleted=True)

        comment = Comment(
            post_id=post.id,
            author_id=author.id,
            author_name=author.display_name,
            author_avatar=await self.core.services.media.get_avatar_url(author.avatar_ref),
            parent_id=parent.id if parent is not None else None,
            content=content,
        )
        await self._collection.insert_one(comment.to_mongo())
        await self.core.services.post.increment_comment_count(post.id)
        await self.core.services.points.award_points(author.id, PointAction.COMMENT_ADDED, "comment", comment.id)
        await self.core.services.notification.notify_comment_created(post, comment, parent)
        logger.info(
            "comment_created", comment_id=str(comment.id), post_id=str(post.id), parent_id=str(comment.parent_id)
        )
        return comment

    async def update_comment(self, comment_id: UUID, content: str) -> Comment:
        check_length(content, "Comment", MAX_COMMENT_LENGTH, min_length=1)
        doc = await self._collection.find_one_and_update(
            {"_id": comment_id, **NOT_DELETED},
            {"$set": {"content": content, "edited_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError("Comment not found")
        return Comment.model_validate(doc)

    async def delete_comment(self, comment_id: UUID) -> None:
        """Soft delete. The post's comment_count is intentionally left as is."""
        doc = await self._collection.find_one_and_update(
            {"_id": comment_id, **NOT_DELETED}, {"$set": {"deleted_at": now()}}
        )
        if doc is None:
            await self.get_comment(comment_id, include_deleted=True)
            raise AlreadyInStateError("Comment is already deleted")
        logger.info("comment_deleted", comment_id=str(comment_id))

    async def change_like_count(self, comment_id: UUID, delta: int) -> int:
        return await increment_floored(self._collection, comment_id, "like_count", delta)

    async def list_comments_by_post(self, viewer: Profile | None, post_id: UUID) -> list[CommentView]:
        """Threaded view of all comments on a post, deleted ones redacted in place."""
        comments = await Comment.list_cursor(self._collection.find({"post_id": post_id}, sort=[("created_at", 1)]))
        views = await self.to_views(viewer, comments)
        return build_comment_tree(views)

    async def to_views(self, viewer: Profile | None, comments: list[Comment]) -> list[CommentView]:
        """Enrich comments with live author levels and the viewer's like and ownership flags."""
        if not comments:
            return []
        levels = await self.core.services.profile.get_levels(comment.author_id for comment in comments)
        liked: set[UUID] = set()
        if viewer is not None:
            liked = await self.core.services.like.liked_target_ids(
                viewer.id, LikeTarget.COMMENT, [comment.id for comment in comments]
            )
        return [
            CommentView.from_domain(
                comment,
                author_level=levels.get(comment.author_id, 1),
                has_liked=comment.id in liked,
                viewer_id=viewer.id if viewer is not None else None,
            )
            for comment in comments
        ]

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.db import NOT_DELETED, increment_floored
from opentribe.core.modules.like.models import LikeTarget
from opentribe.core.modules.points.models import PointAction
from opentribe.core.modules.post.models import MAX_PINNED_PER_SPACE, Post, PostCreate, PostDetails, PostPage, PostUpdate
from opentribe.core.modules.profile.models import Profile
from opentribe.core.modules.space.models import Space
from opentribe.core.pagination import KeysetCursor, next_keyset_cursor
from opentribe.errors import AlreadyInStateError, CapacityError, NotFoundError, ValidationError
from opentribe.utils import check_length, now

logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 200
UNKNOWN_SPACE_NAME = "Unknown Space"


class PostService(Service):
    """Post lifecycle: creation, edits, soft delete, restore, pinning and listings."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("posts")
        self._pin_slots = database.get_collection("space_pin_slots")

    async def on_start(self) -> None:
        await self._collection.create_index([("space_id", 1), ("created_at", -1)])
        await self._collection.create_index([("author_id", 1), ("created_at", -1)])
        await self._collection.create_index([("created_at", -1)])
        await self._collection.create_index([("deleted_at", -1)])

    async def get_post(self, post_id: UUID, include_deleted: bool = False) -> Post:
        doc = await self._collection.find_one({"_id": post_id})
        if doc is None:
            raise NotFoundError("Post not found")
        post = Post.model_validate(doc)
        if post.is_deleted and not include_deleted:
            raise NotFoundError("Post not found")
        return post

    async def create_post(self, author: Profile, space: Space, data: PostCreate) -> Post:
        """Create a post with author snapshots and zeroed counters, then award points."""
        if not data.content.strip():
            raise ValidationError("Post content cannot be empty")
        if data.title is not None:
            check_length(data.title, "Title", MAX_TITLE_LENGTH)

        post = Post(
            space_id=space.id,
            author_id=author.id,
            author_name=author.display_name,
            author_avatar=await self.core.services.media.get_avatar_url(author.avatar_ref),
            title=data.title or None,
            content=data.content,
            content_html=data.content_html,
            media_ids=data.media_ids or [],
        )
        await self._collection.insert_one(post.to_mongo())
        await self.core.services.points.award_points(author.id, PointAction.POST_CREATED, "post", post.id)
        logger.info("post_created", post_id=str(post.id), space_id=str(space.id), author_id=str(author.id))
        return post

    async def update_post(self, post_id: UUID, update: PostUpdate) -> Post:
        """Apply provided fields only and stamp `edited_at`."""
        changes = {key: value for key, value in update.model_dump(exclude_unset=True).items() if value is not None}
        if "content" in changes and not changes["content"].strip():
            raise ValidationError("Post content cannot be empty")
        if "title" in changes:
            check_length(changes["title"], "Title", MAX_TITLE_LENGTH)

        doc = await self._collection.find_one_and_update(
            {"_id": post_id, **NOT_DELETED},
            {"$set": {**changes, "edited_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError("Post not found")
        return Post.model_validate(doc)

    async def delete_post(self, post_id: UUID) -> None:
        """Soft delete. Deleted posts also drop their pin so they stop counting toward the limit."""
        doc = await self._collection.find_one_and_update(
            {"_id": post_id, **NOT_DELETED},
            {"$set": {"deleted_at": now(), "pinned_at": None}},
        )
        if doc is None:
            await self.get_post(post_id, include_deleted=True)
            raise AlreadyInStateError("Post is already deleted")
        if doc.get("pinned_at") is not None:
            await self._release_pin_slot(doc["space_id"])
        logger.info("post_deleted", post_id=str(post_id))

    async def restore_post(self, post_id: UUID) -> Post:
        doc = await self._collection.find_one_and_update(
            {"_id": post_id, "deleted_at": {"$ne": None}},
            {"$set": {"deleted_at": None}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            await self.get_post(post_id, include_deleted=True)
            raise AlreadyInStateError("Post is not deleted")
        logger.info("post_restored", post_id=str(post_id))
        return Post.model_validate(doc)

    async def pin_post(self, post_id: UUID) -> Post:
        """Pin a post, holding one of its space's pin slots while it stays pinned.

        The slot is reserved with a single conditional update before the post
        is touched, so concurrent pins can never exceed the per-space limit.
        """
        post = await self.get_post(post_id)
        if post.is_pinned:
            raise AlreadyInStateError("Post is already pinned")

        await self._reserve_pin_slot(post.space_id)
        doc = await self._collection.find_one_and_update(
            {"_id": post_id, **NOT_DELETED, "pinned_at": None},
            {"$set": {"pinned_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            await self._release_pin_slot(post.space_id)
            raise AlreadyInStateError("Post is already pinned")
        logger.info("post_pinned", post_id=str(post_id), space_id=str(post.space_id))
        return Post.model_validate(doc)

    async def unpin_post(self, post_id: UUID) -> Post:
        await self.get_post(post_id)
        doc = await self._collection.find_one_and_update(
            {"_id": post_id, **NOT_DELETED, "pinned_at": {"$ne": None}},
            {"$set": {"pinned_at": None}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise AlreadyInStateError("Post is not pinned")
        post = Post.model_validate(doc)
        await self._release_pin_slot(post.space_id)
        logger.info("post_unpinned", post_id=str(post_id))
        return post

    async def _reserve_pin_slot(self, space_id: UUID) -> None:
        # A full counter fails the filter, and the upsert then collides on _id
        try:
            await self._pin_slots.update_one(
                {"_id": space_id, "used": {"$lt": MAX_PINNED_PER_SPACE}}, {"$inc": {"used": 1}}, upsert=True
            )
        except DuplicateKeyError as e:
            raise CapacityError(f"A space can have at most {MAX_PINNED_PER_SPACE} pinned posts") from e

    async def _release_pin_slot(self, space_id: UUID) -> None:
        await increment_floored(self._pin_slots, space_id, "used", -1)

    async def increment_comment_count(self, post_id: UUID) -> None:
        await self._collection.update_one({"_id": post_id}, {"$inc": {"comment_count": 1}})

    async def change_like_count(self, post_id: UUID, delta: int) -> int:
        return await increment_floored(self._collection, post_id, "like_count", delta)

    async def find_post_page(
        self, query: dict[str, Any], limit: int, position: KeysetCursor | None = None
    ) -> tuple[list[Post], str | None, bool]:
        """Newest-first keyset page over posts matching `query`."""
        if position is not None:
            query = {"$and": [query, position.to_query()]}

        posts = await Post.list_cursor(self._collection.find(query, sort=[("created_at", -1)], limit=limit + 1))
        has_more = len(posts) > limit
        posts = posts[:limit]

        next_cursor = None
        if has_more:
            next_position = next_keyset_cursor([(post.id, post.created_at) for post in posts], position)
            next_cursor = next_position.encode() if next_position else None
        return posts, next_cursor, has_more

    async def find_posts_since(self, space_ids: Sequence[UUID], since: datetime) -> list[Post]:
        """All non-deleted posts in the given spaces created at or after `since`."""
        query = {"space_id": {"$in": list(space_ids)}, **NOT_DELETED, "created_at": {"$gte": since}}
        return await Post.list_cursor(self._collection.find(query))

    async def list_posts_by_space(
        self, viewer: Profile | None, space: Space, limit: int = 20, cursor: str | None = None
    ) -> PostPage:
        """Pinned posts first (first page only), then regular posts newest first."""
        position = KeysetCursor.decode(cursor) if cursor else None
        pinned: list[Post] = []
        if position is None:
            pinned = await Post.list_cursor(
                self._collection.find(
                    {"space_id": space.id, **NOT_DELETED, "pinned_at": {"$ne": None}},
                    sort=[("pinned_at", -1)],
                )
            )

        regular, next_cursor, has_more = await self.find_post_page(
            {"space_id": space.id, **NOT_DELETED, "pinned_at": None}, limit, position
        )
        posts = await self.enrich_posts(viewer, pinned + regular)
        return PostPage(posts=posts, next_cursor=next_cursor, has_more=has_more)

    async def list_posts_by_author(
        self, viewer: Profile | None, author_id: UUID, space_ids: Sequence[UUID], limit: int = 20
    ) -> list[PostDetails]:
        cursor = self._collection.find(
            {"author_id": author_id, "space_id": {"$in": list(space_ids)}, **NOT_DELETED},
            sort=[("created_at", -1)],
            limit=limit,
        )
        return await self.enrich_posts(viewer, await Post.list_cursor(cursor))

    async def list_deleted_posts(self, limit: int = 50) -> list[Post]:
        """Soft-deleted posts, most recently deleted first."""
        cursor = self._collection.find({"deleted_at": {"$ne": None}}, sort=[("deleted_at", -1)], limit=limit)
        return await Post.list_cursor(cursor)

    async def get_space_stats(self, space_ids: Sequence[UUID]) -> dict[UUID, tuple[int, datetime | None]]:
        """Number of non-deleted posts and newest creation time per space."""
        stats: dict[UUID, tuple[int, datetime | None]] = {}
        for space_id in space_ids:
            query = {"space_id": space_id, **NOT_DELETED}
            count = await self._collection.count_documents(query)
            latest = await self._collection.find_one(query, sort=[("created_at", -1)])
            stats[space_id] = (count, latest["created_at"] if latest else None)
        return stats

    async def enrich_posts(self, viewer: Profile | None, posts: list[Post]) -> list[PostDetails]:
        """Attach space label, live author level and the viewer's like flag."""
        if not posts:
            return []
        levels = await self.core.services.profile.get_levels(post.author_id for post in posts)
        liked: set[UUID] = set()
        if viewer is not None:
            liked = await self.core.services.like.liked_target_ids(viewer.id, LikeTarget.POST, [p.id for p in posts])

        result = []
        for post in posts:
            space_name, space_icon = self._space_label(post.space_id)
            result.append(
                PostDetails(
                    **post.model_dump(),
                    space_name=space_name,
                    space_icon=space_icon,
                    author_level=levels.get(post.author_id, 1),
                    has_liked=post.id in liked,
                )
            )
        return result

    def _space_label(self, space_id: UUID) -> tuple[str, str | None]:
        try:
            space = self.core.services.space.get_space(space_id, include_deleted=True)
        except NotFoundError:
            return UNKNOWN_SPACE_NAME, None
        return space.name, space.icon

from typing import Any
from uuid import UUID

import structlog

from opentribe.core.core import Service
from opentribe.core.db import NOT_DELETED
from opentribe.core.modules.feed.ranking import POPULAR_WINDOW, paginate_offset, parse_offset_cursor, rank_by_engagement
from opentribe.core.modules.post.models import PostPage
from opentribe.core.modules.profile.models import Profile
from opentribe.core.pagination import KeysetCursor
from opentribe.utils import now

logger = structlog.get_logger(__name__)


class FeedService(Service):
    """Cross-space activity feeds. All strategies only see posts in spaces the viewer can view.

    Cursors are decoded before anything else so a malformed one is rejected
    even when the page would be empty.
    """

    async def recent(self, viewer: Profile | None, limit: int = 20, cursor: str | None = None) -> PostPage:
        position = KeysetCursor.decode(cursor) if cursor else None
        return await self._keyset_feed(viewer, {}, limit, position)

    async def following(self, viewer: Profile, limit: int = 20, cursor: str | None = None) -> PostPage:
        position = KeysetCursor.decode(cursor) if cursor else None
        following_ids = await self.core.services.follow.get_following_ids(viewer.id)
        if not following_ids:
            return PostPage(posts=[], next_cursor=None, has_more=False)
        return await self._keyset_feed(viewer, {"author_id": {"$in": following_ids}}, limit, position)

    async def popular(self, viewer: Profile | None, limit: int = 20, cursor: str | None = None) -> PostPage:
        """Posts from the last week ranked by engagement, paged by offset."""
        offset = parse_offset_cursor(cursor)
        space_ids = await self._viewable_space_ids(viewer)
        if not space_ids:
            return PostPage(posts=[], next_cursor=None, has_more=False)

        candidates = await self.core.services.post.find_posts_since(space_ids, now() - POPULAR_WINDOW)
        page, next_cursor, has_more = paginate_offset(rank_by_engagement(candidates), offset, limit)
        posts = await self.core.services.post.enrich_posts(viewer, page)
        return PostPage(posts=posts, next_cursor=next_cursor, has_more=has_more)

    async def _keyset_feed(
        self, viewer: Profile | None, extra_query: dict[str, Any], limit: int, position: KeysetCursor | None
    ) -> PostPage:
        space_ids = await self._viewable_space_ids(viewer)
        if not space_ids:
            return PostPage(posts=[], next_cursor=None, has_more=False)

        query = {"space_id": {"$in": space_ids}, **NOT_DELETED, **extra_query}
        posts, next_cursor, has_more = await self.core.services.post.find_post_page(query, limit, position)
        enriched = await self.core.services.post.enrich_posts(viewer, posts)
        return PostPage(posts=enriched, next_cursor=next_cursor, has_more=has_more)

    async def _viewable_space_ids(self, viewer: Profile | None) -> list[UUID]:
        return [space.id for space in await self.core.services.access.viewable_spaces(viewer)]

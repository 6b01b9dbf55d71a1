"""Engagement ranking for the popular feed.

The score is computed, not stored, so the popular feed pages with a numeric
offset instead of a keyset cursor. Between two requests new likes or comments
can move posts across a page boundary, so a client may see a post twice or
miss one. That is accepted for this feed.
"""

from collections.abc import Sequence
from datetime import timedelta
from typing import Final, TypeVar

from opentribe.core.modules.post.models import Post
from opentribe.errors import ValidationError
from opentribe.utils import as_utc

POPULAR_WINDOW: Final = timedelta(days=7)
COMMENT_WEIGHT: Final = 2

T = TypeVar("T")


def engagement_score(like_count: int, comment_count: int) -> int:
    return like_count + comment_count * COMMENT_WEIGHT


def rank_by_engagement(posts: Sequence[Post]) -> list[Post]:
    """Highest score first; ties broken by recency, then id for a stable order."""
    by_id = sorted(posts, key=lambda p: str(p.id))
    by_recency = sorted(by_id, key=lambda p: as_utc(p.created_at), reverse=True)
    return sorted(by_recency, key=lambda p: engagement_score(p.like_count, p.comment_count), reverse=True)


def parse_offset_cursor(cursor: str | None) -> int:
    if cursor is None or cursor == "":
        return 0
    try:
        offset = int(cursor)
    except ValueError as e:
        raise ValidationError("Invalid cursor") from e
    if offset < 0:
        raise ValidationError("Invalid cursor")
    return offset


def paginate_offset(items: Sequence[T], offset: int, limit: int) -> tuple[list[T], str | None, bool]:
    """Slice a ranked list; returns (page, next_cursor, has_more)."""
    page = list(items[offset : offset + limit])
    has_more = offset + limit < len(items)
    return page, str(offset + limit) if has_more else None, has_more

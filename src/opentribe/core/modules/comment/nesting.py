"""Two-level comment threading."""

from collections import defaultdict
from collections.abc import Sequence
from uuid import UUID

from opentribe.core.modules.comment.models import Comment, CommentView


def effective_parent_id(parent: Comment) -> UUID:
    """Parent to attach a new reply to: replies to a reply go to its root."""
    return parent.parent_id or parent.id


def build_comment_tree(comments: Sequence[CommentView]) -> list[CommentView]:
    """Group replies under their roots.

    Roots are ordered newest first, replies within a root oldest first.
    Replies whose root is not in `comments` are dropped.
    """
    roots = [comment for comment in comments if comment.parent_id is None]
    replies: dict[UUID, list[CommentView]] = defaultdict(list)
    for comment in comments:
        if comment.parent_id is not None:
            replies[comment.parent_id].append(comment)

    roots.sort(key=lambda c: c.created_at, reverse=True)
    return [
        root.model_copy(update={"replies": sorted(replies.get(root.id, []), key=lambda c: c.created_at)})
        for root in roots
    ]

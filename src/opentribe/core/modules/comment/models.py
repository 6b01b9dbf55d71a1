from datetime import datetime
from typing import Final
from uuid import UUID

from pydantic import BaseModel, Field

from opentribe.core.db import SoftDeletable
from opentribe.utils import now

MAX_COMMENT_LENGTH: Final = 500
REDACTED_CONTENT: Final = "[deleted]"


class Comment(SoftDeletable):
    """Comment on a post. Replies point at a root comment, never at another reply."""

    post_id: UUID
    author_id: UUID
    author_name: str
    author_avatar: str | None = None
    parent_id: UUID | None = None
    content: str
    like_count: int = 0
    edited_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)


class CommentView(BaseModel):
    """Comment as shown to a particular viewer."""

    id: UUID = Field(..., description="Comment ID")
    post_id: UUID = Field(..., description="Post the comment belongs to")
    author_id: UUID = Field(..., description="Author profile ID")
    author_name: str = Field(..., description="Author name at the time of writing")
    author_avatar: str | None = Field(None, description="Author avatar URL at the time of writing")
    author_level: int = Field(1, description="Current level of the author")
    parent_id: UUID | None = Field(None, description="Root comment this reply belongs to")
    content: str = Field(..., description="Comment text, or a placeholder when deleted")
    like_count: int = Field(0, description="Number of likes")
    is_deleted: bool = Field(False, description="Whether the comment was deleted")
    has_liked: bool = Field(False, description="Whether the viewer liked this comment")
    is_own: bool = Field(False, description="Whether the viewer wrote this comment")
    created_at: datetime = Field(..., description="When the comment was created")
    edited_at: datetime | None = Field(None, description="When the comment was last edited")
    replies: list["CommentView"] = Field(default_factory=list, description="Replies, oldest first (roots only)")

    @classmethod
    def from_domain(
        cls, comment: Comment, *, author_level: int = 1, has_liked: bool = False, viewer_id: UUID | None = None
    ) -> "CommentView":
        """Create view model from domain model, redacting deleted content."""
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            author_id=comment.author_id,
            author_name=comment.author_name,
            author_avatar=comment.author_avatar,
            author_level=author_level,
            parent_id=comment.parent_id,
            content=REDACTED_CONTENT if comment.is_deleted else comment.content,
            like_count=comment.like_count,
            is_deleted=comment.is_deleted,
            has_liked=has_liked,
            is_own=viewer_id is not None and comment.author_id == viewer_id,
            created_at=comment.created_at,
            edited_at=comment.edited_at,
        )

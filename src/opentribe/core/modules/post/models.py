from datetime import datetime
from typing import Final
from uuid import UUID

from pydantic import BaseModel, Field

from opentribe.core.db import SoftDeletable
from opentribe.utils import now

MAX_PINNED_PER_SPACE: Final = 3


class Post(SoftDeletable):
    """Post in a space. Author name and avatar are snapshots taken at creation."""

    space_id: UUID
    author_id: UUID
    author_name: str
    author_avatar: str | None = None
    title: str | None = None
    content: str  # Rich-text document as opaque JSON
    content_html: str
    media_ids: list[str] = Field(default_factory=list)  # Blob storage references
    like_count: int = 0
    comment_count: int = 0
    pinned_at: datetime | None = None
    edited_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)

    @property
    def is_pinned(self) -> bool:
        return self.pinned_at is not None


class PostDetails(Post):
    """Post enriched for a specific viewer."""

    space_name: str = Field(..., description="Name of the owning space")
    space_icon: str | None = Field(None, description="Icon of the owning space")
    author_level: int = Field(1, description="Current level of the author")
    has_liked: bool = Field(False, description="Whether the viewer liked this post")


class PostCreate(BaseModel):
    space_id: UUID = Field(..., description="Space to post into")
    content: str = Field(..., description="Rich-text document as JSON")
    content_html: str = Field(..., description="Rendered HTML of the content")
    title: str | None = Field(None, description="Optional title (up to 200 characters)")
    media_ids: list[str] | None = Field(None, description="Blob storage references of attached media")


class PostUpdate(BaseModel):
    """Partial post update; only fields that are set are applied."""

    content: str | None = None
    content_html: str | None = None
    title: str | None = None
    media_ids: list[str] | None = None


class PostPage(BaseModel):
    """One page of a newest-first (or ranked) post listing."""

    posts: list[PostDetails] = Field(..., description="Posts in display order")
    next_cursor: str | None = Field(None, description="Opaque cursor for the next page")
    has_more: bool = Field(..., description="Whether another page exists")

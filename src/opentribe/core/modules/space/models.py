"""Space models: the channels posts are published into."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from opentribe.core.db import SoftDeletable
from opentribe.utils import now


class SpaceVisibility(StrEnum):
    PUBLIC = "public"  # Anyone, including anonymous visitors
    MEMBERS = "members"  # Any signed-in profile
    PAID = "paid"  # Profiles holding the required tier


class PostPermission(StrEnum):
    ALL = "all"
    MODERATORS = "moderators"
    ADMIN = "admin"


class Space(SoftDeletable):
    """Channel grouping posts, with its own visibility and posting rules."""

    name: str
    description: str | None = None
    icon: str | None = None
    visibility: SpaceVisibility = SpaceVisibility.PUBLIC
    post_permission: PostPermission = PostPermission.ALL
    required_tier: str | None = None  # Only meaningful for paid spaces
    order: int
    created_at: datetime = Field(default_factory=now)


class SpaceCreate(BaseModel):
    name: str = Field(..., description="Space name (1-50 characters)")
    description: str | None = Field(None, description="Short description (up to 200 characters)")
    icon: str | None = Field(None, description="Icon identifier or emoji")
    visibility: SpaceVisibility = Field(SpaceVisibility.PUBLIC, description="Who can view the space")
    post_permission: PostPermission = Field(PostPermission.ALL, description="Who can post in the space")
    required_tier: str | None = Field(None, description="Membership tier required for paid spaces")


class SpaceUpdate(BaseModel):
    """Partial space update; only fields that are set are applied."""

    name: str | None = None
    description: str | None = None
    icon: str | None = None
    visibility: SpaceVisibility | None = None
    post_permission: PostPermission | None = None
    required_tier: str | None = None


class MemberSpace(BaseModel):
    """Space as listed for a signed-in member."""

    space: Space
    has_unread: bool = Field(..., description="Whether posts were published since the member's last visit")


class AdminSpace(BaseModel):
    """Space as listed for admins, including deleted ones."""

    space: Space
    post_count: int = Field(..., description="Number of non-deleted posts in the space")
    last_post_at: datetime | None = Field(None, description="Creation time of the newest post")

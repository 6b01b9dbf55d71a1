from datetime import datetime
from enum import StrEnum
from typing import Final
from uuid import UUID

from pydantic import BaseModel, Field

from opentribe.core.db import MongoModel
from opentribe.core.modules.points.levels import get_level
from opentribe.utils import now


class Role(StrEnum):
    """Community role, totally ordered by `rank`."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ROLE_RANKS[self]


ROLE_RANKS: Final[dict[Role, int]] = {Role.MEMBER: 1, Role.MODERATOR: 2, Role.ADMIN: 3}


class ProfileVisibility(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class DigestFrequency(StrEnum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    OFF = "off"


class NotificationPrefs(BaseModel):
    """Email notification preferences (delivery itself happens elsewhere)."""

    email_comments: bool = True
    email_replies: bool = True
    email_followers: bool = True
    email_events: bool = True
    email_courses: bool = True
    email_dms: bool = True
    digest_frequency: DigestFrequency = DigestFrequency.DAILY


class Profile(MongoModel):
    """Community member, keyed by normalized email."""

    email: str
    name: str | None = None
    bio: str | None = None
    avatar_ref: str | None = None  # Blob storage reference
    visibility: ProfileVisibility = ProfileVisibility.PUBLIC
    role: Role = Role.MEMBER
    points: int = 0
    level: int = 1
    notification_prefs: NotificationPrefs = Field(default_factory=NotificationPrefs)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


class ProfileView(BaseModel):
    """Public representation of a profile (no email)."""

    id: UUID = Field(..., description="Profile ID")
    display_name: str = Field(..., description="Name, or the email local part when unset")
    bio: str | None = Field(None, description="Short biography")
    avatar_ref: str | None = Field(None, description="Blob storage reference of the avatar")
    role: Role = Field(..., description="Community role")
    points: int = Field(..., description="Total points earned")
    level: int = Field(..., description="Level derived from points")
    level_name: str = Field(..., description="Name of the current level")
    created_at: datetime = Field(..., description="When the profile was created")

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileView":
        """Create view model from domain model."""
        return cls(
            id=profile.id,
            display_name=profile.display_name,
            bio=profile.bio,
            avatar_ref=profile.avatar_ref,
            role=profile.role,
            points=profile.points,
            level=profile.level,
            level_name=get_level(profile.level).name,
            created_at=profile.created_at,
        )


class ProfileUpdate(BaseModel):
    """Partial profile update; only fields that are set are applied."""

    name: str | None = None
    bio: str | None = None
    avatar_ref: str | None = None
    visibility: ProfileVisibility | None = None


class MembershipStatus(StrEnum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    NONE = "none"


class Membership(MongoModel):
    """Subscription tier of a profile, used for paid space access."""

    user_id: UUID
    tier: str = "free"
    status: MembershipStatus = MembershipStatus.NONE
    updated_at: datetime = Field(default_factory=now)

    def grants_tier(self, tier: str) -> bool:
        """Whether this membership currently grants access to `tier`."""
        return self.status in (MembershipStatus.ACTIVE, MembershipStatus.TRIALING) and self.tier == tier

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from opentribe.core.db import MongoModel
from opentribe.utils import now

PREVIEW_LENGTH = 100


class NotificationType(StrEnum):
    COMMENT = "comment"  # Someone commented on your post
    REPLY = "reply"  # Someone replied to your comment


class NotificationData(BaseModel):
    post_id: UUID
    comment_id: UUID
    parent_comment_id: UUID | None = None
    preview: str = ""


class Notification(MongoModel):
    """In-app notification for one recipient."""

    user_id: UUID  # Recipient
    type: NotificationType
    actor_id: UUID
    actor_name: str
    actor_avatar: str | None = None
    data: NotificationData
    read: bool = False
    created_at: datetime = Field(default_factory=now)

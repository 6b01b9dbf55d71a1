from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from opentribe.core.db import MongoModel
from opentribe.utils import now


class LikeTarget(StrEnum):
    POST = "post"
    COMMENT = "comment"


class Like(MongoModel):
    """One user's like of one post or comment (unique per user and target)."""

    user_id: UUID
    target_type: LikeTarget
    target_id: UUID
    created_at: datetime = Field(default_factory=now)


class LikeToggleResult(BaseModel):
    liked: bool = Field(..., description="Whether the target is liked after the toggle")
    new_count: int = Field(..., description="Like count of the target after the toggle", ge=0)

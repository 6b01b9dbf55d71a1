from datetime import datetime
from uuid import UUID

from pydantic import Field

from opentribe.core.db import MongoModel
from opentribe.utils import now


class Follow(MongoModel):
    """Directed edge: follower_id follows following_id."""

    follower_id: UUID
    following_id: UUID
    created_at: datetime = Field(default_factory=now)

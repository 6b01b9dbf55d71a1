from datetime import datetime
from enum import StrEnum
from typing import Final
from uuid import UUID

from pydantic import Field

from opentribe.core.db import MongoModel
from opentribe.utils import now


class PointAction(StrEnum):
    POST_CREATED = "post_created"
    COMMENT_ADDED = "comment_added"
    LIKE_RECEIVED = "like_received"
    LESSON_COMPLETED = "lesson_completed"
    COURSE_COMPLETED = "course_completed"


DEFAULT_POINT_VALUES: Final[dict[PointAction, int]] = {
    PointAction.POST_CREATED: 10,
    PointAction.COMMENT_ADDED: 5,
    PointAction.LIKE_RECEIVED: 2,
    PointAction.LESSON_COMPLETED: 15,
    PointAction.COURSE_COMPLETED: 50,
}


class PointsLedgerEntry(MongoModel):
    """Append-only record of a single points award."""

    user_id: UUID
    action: PointAction
    amount: int
    reference_type: str | None = None  # "post", "comment", ...
    reference_id: UUID | None = None
    created_at: datetime = Field(default_factory=now)

from datetime import datetime
from uuid import UUID

from opentribe.core.db import MongoModel


class SpaceVisit(MongoModel):
    """Last time a profile opened a space; drives unread markers."""

    user_id: UUID
    space_id: UUID
    last_visited_at: datetime

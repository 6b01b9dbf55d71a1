from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.modules.points.models import DEFAULT_POINT_VALUES, PointAction, PointsLedgerEntry
from opentribe.core.pagination import PaginationResult

logger = structlog.get_logger(__name__)


class PointsService(Service):
    """Append-only points ledger mirrored into the profile's running total."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("points")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("created_at", -1)])

    async def award_points(
        self,
        user_id: UUID,
        action: PointAction,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
        amount: int | None = None,
    ) -> PointsLedgerEntry:
        """Append a ledger entry and add its amount to the profile total."""
        entry = PointsLedgerEntry(
            user_id=user_id,
            action=action,
            amount=DEFAULT_POINT_VALUES[action] if amount is None else amount,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        await self._collection.insert_one(entry.to_mongo())
        await self.core.services.profile.add_points(user_id, entry.amount)
        logger.debug("points_awarded", user_id=str(user_id), action=action, amount=entry.amount)
        return entry

    async def list_entries(
        self, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> PaginationResult[PointsLedgerEntry]:
        """Ledger entries of a user, newest first."""
        query = {"user_id": user_id}
        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query, sort=[("created_at", -1)], skip=offset, limit=limit)
        items = await PointsLedgerEntry.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from opentribe.core.core import Service
from opentribe.core.modules.rate_limit.models import RateLimitDecision, RateLimitPolicy, RateLimitSlot
from opentribe.core.modules.rate_limit.window import check_rolling_window
from opentribe.utils import now

logger = structlog.get_logger(__name__)

SLOT_RETENTION_SECONDS = 24 * 60 * 60


class RateLimitService(Service):
    """Rolling-window rate limiting.

    Each policy and key owns `limit` slots. Accepting an attempt means claiming
    a slot whose previous attempt has left the window, with one conditional
    upsert per slot, so concurrent requests can never overfill the window.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("rate_limit_slots")

    async def on_start(self) -> None:
        await self._collection.create_index([("name", 1), ("key", 1)])
        await self._collection.create_index([("attempted_at", 1)], expireAfterSeconds=SLOT_RETENTION_SECONDS)

    async def consume(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        """Accept the attempt if a slot is free. Rejected attempts are not recorded."""
        at = now()
        for slot_id in policy.slot_ids(key):
            if await self._claim_slot(RateLimitSlot(_id=slot_id, name=policy.name, key=key, attempted_at=at), policy):
                return RateLimitDecision(allowed=True)

        cursor = self._collection.find({"_id": {"$in": policy.slot_ids(key)}})
        attempts = [RateLimitSlot.model_validate(doc).attempted_at async for doc in cursor]
        decision = check_rolling_window(attempts, at, policy.limit, policy.period)
        logger.info("rate_limited", policy=policy.name, retry_at=decision.retry_at)
        return decision

    async def _claim_slot(self, slot: RateLimitSlot, policy: RateLimitPolicy) -> bool:
        # A slot still inside the window fails the filter, and the upsert then collides on _id
        try:
            await self._collection.update_one(
                {"_id": slot.id, "attempted_at": {"$lte": slot.attempted_at - policy.period}},
                {"$set": {"name": slot.name, "key": slot.key, "attempted_at": slot.attempted_at}},
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return True

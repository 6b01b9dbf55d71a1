from datetime import datetime, timedelta
from pydantic import BaseModel, Field

from opentribe.utils import now


class RateLimitPolicy(BaseModel):
    name: str
    limit: int = Field(..., ge=1)  # Accepted attempts per window
    period: timedelta  # Rolling window length

    def slot_ids(self, key: str) -> list[str]:
        return [f"{self.name}:{key}:{slot}" for slot in range(self.limit)]


PASSWORD_RESET_POLICY = RateLimitPolicy(name="password_reset", limit=3, period=timedelta(hours=1))


class RateLimitDecision(BaseModel):
    allowed: bool = Field(..., description="Whether the attempt is accepted")
    retry_at: datetime | None = Field(None, description="When the next attempt will be accepted, if rejected")


class RateLimitSlot(BaseModel):
    """One of the `limit` slots of a policy and key, holding the latest attempt accepted into it.

    A slot can be claimed again once its attempt has left the rolling window.
    """

    id: str = Field(alias="_id")
    name: str
    key: str
    attempted_at: datetime = Field(default_factory=now)

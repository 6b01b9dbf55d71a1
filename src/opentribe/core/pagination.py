import base64
import binascii
from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from opentribe.errors import ValidationError

T = TypeVar("T")


class PaginationResult(BaseModel, Generic[T]):
    """Pagination result wrapper for list endpoints."""

    items: list[T] = Field(..., description="List of items in current page")
    total: int = Field(..., description="Total number of items across all pages", ge=0)
    limit: int = Field(..., description="Maximum items per page", ge=1)
    offset: int = Field(..., description="Number of items skipped", ge=0)

    @property
    def has_more(self) -> bool:
        """Whether there are more items beyond the current page."""
        return self.offset + len(self.items) < self.total


class KeysetCursor(BaseModel):
    """Position in a newest-first listing.

    Items strictly older than `before` come next, plus items created exactly at
    `before` that are not listed in `seen_ids`.
    """

    before: datetime
    seen_ids: list[UUID] = Field(default_factory=list)

    def encode(self) -> str:
        return base64.urlsafe_b64encode(self.model_dump_json().encode()).decode()

    @classmethod
    def decode(cls, value: str) -> "KeysetCursor":
        try:
            return cls.model_validate_json(base64.urlsafe_b64decode(value.encode()))
        except (binascii.Error, UnicodeDecodeError, PydanticValidationError) as e:
            raise ValidationError("Invalid cursor") from e

    def to_query(self, field: str = "created_at") -> dict[str, Any]:
        """MongoDB filter selecting the documents after this position."""
        return {
            "$or": [
                {field: {"$lt": self.before}},
                {field: self.before, "_id": {"$nin": self.seen_ids}},
            ]
        }


def next_keyset_cursor(
    timestamps: list[tuple[UUID, datetime]], previous: KeysetCursor | None = None
) -> KeysetCursor | None:
    """Build the cursor following a page given its (id, created_at) pairs in order."""
    if not timestamps:
        return None
    last_at = timestamps[-1][1]
    seen = [item_id for item_id, created_at in timestamps if created_at == last_at]
    if previous is not None and previous.before == last_at:
        seen = previous.seen_ids + seen
    return KeysetCursor(before=last_at, seen_ids=seen)

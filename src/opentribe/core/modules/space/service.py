from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service
from opentribe.core.modules.space.models import Space, SpaceCreate, SpaceUpdate
from opentribe.errors import NotFoundError, ValidationError
from opentribe.utils import check_length, now

logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200


class SpaceService(Service):
    """Service for managing spaces with in-memory caching."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("spaces")
        self._spaces: dict[UUID, Space] = {}

    async def on_start(self) -> None:
        await self._collection.create_index([("order", 1)])
        await self.update_all_spaces_cache()
        logger.debug("space_service_started", space_count=len(self._spaces))

    async def update_all_spaces_cache(self) -> None:
        """Reload all spaces cache from database."""
        spaces = await Space.list_cursor(self._collection.find())
        self._spaces = {space.id: space for space in spaces}

    async def update_space_cache(self, space_id: UUID) -> Space:
        """Reload a specific space cache from database."""
        space = await self._collection.find_one({"_id": space_id})
        if space is None:
            raise NotFoundError(f"Space '{space_id}' not found")
        self._spaces[space_id] = Space.model_validate(space)
        return self._spaces[space_id]

    def get_space(self, space_id: UUID, include_deleted: bool = False) -> Space:
        """Get a space by ID. Soft-deleted spaces count as missing unless asked for."""
        space = self._spaces.get(space_id)
        if space is None or (space.is_deleted and not include_deleted):
            raise NotFoundError(f"Space '{space_id}' not found")
        return space

    def list_spaces(self) -> list[Space]:
        """Non-deleted spaces in display order."""
        return sorted((space for space in self._spaces.values() if not space.is_deleted), key=lambda s: s.order)

    def list_all_spaces(self) -> list[Space]:
        """All spaces including deleted ones, deleted last."""
        return sorted(self._spaces.values(), key=lambda s: (s.is_deleted, s.order))

    async def create_space(self, data: SpaceCreate) -> Space:
        """Create a space appended after the current last one."""
        self._validate_fields(data.model_dump())
        order = max((space.order for space in self.list_spaces()), default=0) + 1
        space = Space(**data.model_dump(), order=order)
        res = await self._collection.insert_one(space.to_mongo())
        logger.info("space_created", space_id=str(space.id), order=order)
        return await self.update_space_cache(res.inserted_id)

    async def update_space(self, space_id: UUID, update: SpaceUpdate) -> Space:
        """Apply a partial update; omitted fields keep their values."""
        self.get_space(space_id)
        changes = update.model_dump(exclude_unset=True)
        for key in ("name", "visibility", "post_permission"):
            if key in changes and changes[key] is None:
                del changes[key]
        self._validate_fields(changes)
        if changes:
            await self._collection.update_one({"_id": space_id}, {"$set": changes})
        return await self.update_space_cache(space_id)

    async def delete_space(self, space_id: UUID) -> None:
        """Soft delete a space; its posts stay in place but are no longer reachable."""
        self.get_space(space_id)
        await self._collection.update_one({"_id": space_id}, {"$set": {"deleted_at": now()}})
        await self.update_space_cache(space_id)
        logger.info("space_deleted", space_id=str(space_id))

    async def reorder_spaces(self, ordered_ids: list[UUID]) -> list[Space]:
        """Set order = position + 1 for each id. All ids are validated before any write."""
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Space ids must be unique")
        for space_id in ordered_ids:
            self.get_space(space_id)

        for position, space_id in enumerate(ordered_ids):
            await self._collection.update_one({"_id": space_id}, {"$set": {"order": position + 1}})
        await self.update_all_spaces_cache()
        return self.list_spaces()

    @staticmethod
    def _validate_fields(fields: dict[str, Any]) -> None:
        if "name" in fields:
            check_length(fields["name"], "Space name", MAX_NAME_LENGTH, min_length=1)
        if fields.get("description") is not None:
            check_length(fields["description"], "Description", MAX_DESCRIPTION_LENGTH)

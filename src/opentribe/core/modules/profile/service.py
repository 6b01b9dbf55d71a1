import re
from collections.abc import Iterable
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from opentribe.core.core import Service
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.points.levels import level_for_points
from opentribe.core.modules.profile.models import (
    Membership,
    MembershipStatus,
    NotificationPrefs,
    Profile,
    ProfileUpdate,
    ProfileVisibility,
    Role,
)
from opentribe.errors import NotFoundError
from opentribe.utils import check_length, normalize_email, now

logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 100
MAX_BIO_LENGTH = 500


class ProfileService(Service):
    """Manages profiles and their memberships."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("profiles")
        self._memberships = database.get_collection("memberships")

    async def on_start(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)
        await self._memberships.create_index([("user_id", 1)], unique=True)

    async def get_or_create_profile(self, identity: AuthIdentity) -> Profile:
        """Return the profile for an identity, creating it (and its membership) on first sight."""
        email = identity.normalized_email
        existing = await self.find_profile_by_email(email)
        if existing is not None:
            return existing

        role = Role.ADMIN if email in {normalize_email(e) for e in self.core.config.admin_emails} else Role.MEMBER
        profile = Profile(email=email, name=identity.name, role=role)
        try:
            await self._collection.insert_one(profile.to_mongo())
        except DuplicateKeyError:
            # Created concurrently by another request for the same identity
            return await self.get_profile_by_email(email)

        await self._memberships.insert_one(Membership(user_id=profile.id).to_mongo())
        logger.info("profile_created", profile_id=str(profile.id), role=role)
        return profile

    async def find_profile_by_email(self, email: str) -> Profile | None:
        doc = await self._collection.find_one({"email": normalize_email(email)})
        return Profile.model_validate(doc) if doc else None

    async def get_profile_by_email(self, email: str) -> Profile:
        profile = await self.find_profile_by_email(email)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def get_profile(self, profile_id: UUID) -> Profile:
        doc = await self._collection.find_one({"_id": profile_id})
        if doc is None:
            raise NotFoundError(f"Profile '{profile_id}' not found")
        return Profile.model_validate(doc)

    async def get_profiles(self, profile_ids: Iterable[UUID]) -> dict[UUID, Profile]:
        """Batch load profiles by id; missing ids are simply absent from the result."""
        ids = list(set(profile_ids))
        if not ids:
            return {}
        profiles = await Profile.list_cursor(self._collection.find({"_id": {"$in": ids}}))
        return {profile.id: profile for profile in profiles}

    async def get_levels(self, profile_ids: Iterable[UUID]) -> dict[UUID, int]:
        """Current level per profile id (live, not denormalized)."""
        profiles = await self.get_profiles(profile_ids)
        return {profile_id: profile.level for profile_id, profile in profiles.items()}

    async def search_profiles(self, query: str, limit: int = 20) -> list[Profile]:
        """Case-insensitive substring search over name and email of public profiles."""
        pattern = {"$regex": re.escape(query.strip()), "$options": "i"}
        cursor = self._collection.find(
            {"visibility": ProfileVisibility.PUBLIC, "$or": [{"name": pattern}, {"email": pattern}]},
            sort=[("name", 1)],
            limit=limit,
        )
        return await Profile.list_cursor(cursor)

    async def update_profile(self, profile_id: UUID, update: ProfileUpdate) -> Profile:
        """Apply a partial update. Historical post/comment bylines are left untouched."""
        changes = update.model_dump(exclude_unset=True)
        if changes.get("name") is not None:
            check_length(changes["name"], "Name", MAX_NAME_LENGTH)
        if changes.get("bio") is not None:
            check_length(changes["bio"], "Bio", MAX_BIO_LENGTH)
        if "visibility" in changes and changes["visibility"] is None:
            del changes["visibility"]
        return await self._set_fields(profile_id, changes)

    async def update_notification_prefs(self, profile_id: UUID, prefs: NotificationPrefs) -> Profile:
        return await self._set_fields(profile_id, {"notification_prefs": prefs.model_dump()})

    async def set_role(self, profile_id: UUID, role: Role) -> Profile:
        profile = await self._set_fields(profile_id, {"role": role})
        logger.info("profile_role_changed", profile_id=str(profile_id), role=role)
        return profile

    async def add_points(self, profile_id: UUID, amount: int) -> Profile:
        """Atomically add points and keep the derived level in sync."""
        doc = await self._collection.find_one_and_update(
            {"_id": profile_id},
            {"$inc": {"points": amount}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(f"Profile '{profile_id}' not found")
        profile = Profile.model_validate(doc)
        level = level_for_points(profile.points)
        if level != profile.level:
            await self._collection.update_one({"_id": profile_id}, {"$set": {"level": level}})
            logger.info("profile_level_changed", profile_id=str(profile_id), level=level)
            profile = profile.model_copy(update={"level": level})
        return profile

    async def get_membership(self, user_id: UUID) -> Membership | None:
        doc = await self._memberships.find_one({"user_id": user_id})
        return Membership.model_validate(doc) if doc else None

    async def update_membership(
        self, user_id: UUID, tier: str | None = None, status: MembershipStatus | None = None
    ) -> Membership:
        await self.get_profile(user_id)
        changes: dict[str, Any] = {"updated_at": now()}
        if tier is not None:
            check_length(tier, "Tier", 50, min_length=1)
            changes["tier"] = tier
        if status is not None:
            changes["status"] = status
        doc = await self._memberships.find_one_and_update(
            {"user_id": user_id},
            {"$set": changes, "$setOnInsert": {"_id": Membership(user_id=user_id).id}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return Membership.model_validate(doc)

    async def _set_fields(self, profile_id: UUID, changes: dict[str, Any]) -> Profile:
        doc = await self._collection.find_one_and_update(
            {"_id": profile_id},
            {"$set": {**changes, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(f"Profile '{profile_id}' not found")
        return Profile.model_validate(doc)

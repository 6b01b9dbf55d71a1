from opentribe.core.core import Service
from opentribe.core.db import SoftDeletable
from opentribe.core.modules.access import permissions
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.profile.models import Membership, Profile, Role
from opentribe.core.modules.space.models import Space, SpaceVisibility
from opentribe.errors import AccessDeniedError, AuthenticationError, NotFoundError


class AccessService(Service):
    """Turns permission predicates into assertions for the App facade."""

    async def ensure_authenticated(self, identity: AuthIdentity | None) -> Profile:
        """Resolve the caller's profile, creating it on first sight."""
        if identity is None:
            raise AuthenticationError
        return await self.core.services.profile.get_or_create_profile(identity)

    async def get_viewer(self, identity: AuthIdentity | None) -> Profile | None:
        """Profile of the caller for read endpoints that also serve anonymous visitors."""
        if identity is None:
            return None
        return await self.core.services.profile.get_or_create_profile(identity)

    async def ensure_admin(self, identity: AuthIdentity | None) -> Profile:
        profile = await self.ensure_authenticated(identity)
        permissions.require_admin(profile)
        return profile

    async def ensure_moderator(self, identity: AuthIdentity | None) -> Profile:
        profile = await self.ensure_authenticated(identity)
        permissions.require_moderator(profile)
        return profile

    async def can_view_space(self, profile: Profile | None, space: Space) -> bool:
        membership = await self._membership_for(profile, [space])
        return permissions.can_view_space(profile, space, membership)

    async def ensure_can_view_space(self, profile: Profile | None, space: Space) -> None:
        """Raise NotFoundError for spaces the caller cannot see."""
        if not await self.can_view_space(profile, space):
            raise NotFoundError(f"Space '{space.id}' not found")

    async def ensure_can_post(self, profile: Profile, space: Space) -> None:
        membership = await self._membership_for(profile, [space])
        if not permissions.can_view_space(profile, space, membership):
            raise NotFoundError(f"Space '{space.id}' not found")
        if not permissions.can_post_in_space(profile, space, membership):
            raise AccessDeniedError("You do not have permission to post in this space")

    def ensure_can_edit(self, profile: Profile, content: SoftDeletable) -> None:
        """Raise unless the caller may edit the content. Deleted content is treated as missing."""
        if content.is_deleted:
            raise NotFoundError(f"{type(content).__name__} not found")
        if not permissions.can_edit_content(profile, content):
            raise AccessDeniedError("You can only edit your own content")

    def ensure_can_delete(self, profile: Profile, content: SoftDeletable) -> None:
        """Raise unless the caller may delete the content.

        Callers without delete rights get NotFoundError for already deleted content,
        so they learn nothing about it.
        """
        if not permissions.can_delete_content(profile, content):
            if content.is_deleted:
                raise NotFoundError(f"{type(content).__name__} not found")
            raise AccessDeniedError("You can only delete your own content")

    async def viewable_spaces(self, profile: Profile | None) -> list[Space]:
        """All non-deleted spaces the caller can view, in display order."""
        spaces = self.core.services.space.list_spaces()
        membership = await self._membership_for(profile, spaces)
        return [space for space in spaces if permissions.can_view_space(profile, space, membership)]

    async def _membership_for(self, profile: Profile | None, spaces: list[Space]) -> Membership | None:
        """Load the membership only when a tier-gated space is involved."""
        if profile is None or permissions.has_role(profile.role, Role.MODERATOR):
            return None
        if not any(space.visibility == SpaceVisibility.PAID and space.required_tier for space in spaces):
            return None
        return await self.core.services.profile.get_membership(profile.id)

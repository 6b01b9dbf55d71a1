"""Pure permission predicates.

Every check here is a function of already-loaded records, so the same rules
apply to single lookups, bulk feed filtering and tests alike.
"""

from typing import Protocol, assert_never
from uuid import UUID

from opentribe.core.modules.profile.models import Membership, Profile, Role
from opentribe.core.modules.space.models import PostPermission, Space, SpaceVisibility
from opentribe.errors import AccessDeniedError


class AuthoredContent(Protocol):
    @property
    def author_id(self) -> UUID: ...


def has_role(actual: Role, minimum: Role) -> bool:
    """Whether `actual` is at least `minimum` in member < moderator < admin."""
    return actual.rank >= minimum.rank


def can_view_space(profile: Profile | None, space: Space, membership: Membership | None = None) -> bool:
    if space.is_deleted:
        return False
    if profile is not None and has_role(profile.role, Role.MODERATOR):
        return True

    match space.visibility:
        case SpaceVisibility.PUBLIC:
            return True
        case SpaceVisibility.MEMBERS:
            return profile is not None
        case SpaceVisibility.PAID:
            if profile is None:
                return False
            if space.required_tier is None:
                return True
            return membership is not None and membership.grants_tier(space.required_tier)
        case _:
            assert_never(space.visibility)


def can_post_in_space(profile: Profile, space: Space, membership: Membership | None = None) -> bool:
    if not can_view_space(profile, space, membership):
        return False

    match space.post_permission:
        case PostPermission.ALL:
            return True
        case PostPermission.MODERATORS:
            return has_role(profile.role, Role.MODERATOR)
        case PostPermission.ADMIN:
            return has_role(profile.role, Role.ADMIN)
        case _:
            assert_never(space.post_permission)


def can_edit_content(profile: Profile, content: AuthoredContent) -> bool:
    return content.author_id == profile.id or has_role(profile.role, Role.MODERATOR)


def can_delete_content(profile: Profile, content: AuthoredContent) -> bool:
    return content.author_id == profile.id or has_role(profile.role, Role.MODERATOR)


def require_role(profile: Profile, minimum: Role) -> None:
    if not has_role(profile.role, minimum):
        raise AccessDeniedError(f"{minimum.capitalize()} privileges required")


def require_admin(profile: Profile) -> None:
    require_role(profile, Role.ADMIN)


def require_moderator(profile: Profile) -> None:
    require_role(profile, Role.MODERATOR)

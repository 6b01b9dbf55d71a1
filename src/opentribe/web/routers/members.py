"""Member directory and member administration endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from opentribe.core.modules.post.models import PostDetails
from opentribe.core.modules.profile.models import Membership, MembershipStatus, ProfileView, Role
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["members"])


class SetRoleRequest(BaseModel):
    role: Role = Field(..., description="New role")


class UpdateMembershipRequest(BaseModel):
    tier: str | None = Field(None, description="Membership tier, e.g. 'pro'")
    status: MembershipStatus | None = Field(None, description="Subscription status")


@router.get(
    "/members/search",
    summary="Search members",
    description="Case-insensitive search over names and emails of public profiles.",
    operation_id="searchMembers",
    responses={
        200: {"description": "Matching profiles"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def search_members(
    app: AppDep,
    identity: IdentityDep,
    q: Annotated[str, Query(description="Search text")],
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 20,
) -> list[ProfileView]:
    return await app.search_members(identity, q, limit)


@router.get(
    "/members/by-email",
    summary="Find member by email",
    operation_id="getMemberByEmail",
    responses={
        200: {"description": "Profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator privileges required"},
        404: {"model": ErrorResponse, "description": "Profile not found"},
    },
)
async def get_member_by_email(
    app: AppDep, identity: IdentityDep, email: Annotated[str, Query(description="Email address")]
) -> ProfileView:
    return await app.get_profile_by_email(identity, email)


@router.get(
    "/members/{profile_id}",
    summary="Get member profile",
    operation_id="getMember",
    responses={
        200: {"description": "Profile"},
        404: {"model": ErrorResponse, "description": "Profile not found or private"},
    },
)
async def get_member(profile_id: UUID, app: AppDep, identity: IdentityDep) -> ProfileView:
    return await app.get_profile(identity, profile_id)


@router.get(
    "/members/{profile_id}/posts",
    summary="List member posts",
    description="Posts by a member in spaces the caller can view, newest first.",
    operation_id="listMemberPosts",
    responses={200: {"description": "Posts"}},
)
async def list_member_posts(
    profile_id: UUID,
    app: AppDep,
    identity: IdentityDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 20,
) -> list[PostDetails]:
    return await app.list_posts_by_author(identity, profile_id, limit)


@router.put(
    "/members/{profile_id}/role",
    summary="Set member role",
    description="Change the role of a member. Admins cannot change their own role.",
    operation_id="setMemberRole",
    responses={
        200: {"description": "Updated profile"},
        400: {"model": ErrorResponse, "description": "Cannot change your own role"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Profile not found"},
    },
)
async def set_member_role(profile_id: UUID, request: SetRoleRequest, app: AppDep, identity: IdentityDep) -> ProfileView:
    return await app.set_member_role(identity, profile_id, request.role)


@router.put(
    "/members/{profile_id}/membership",
    summary="Update member membership",
    operation_id="updateMemberMembership",
    responses={
        200: {"description": "Updated membership"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Profile not found"},
    },
)
async def update_member_membership(
    profile_id: UUID, request: UpdateMembershipRequest, app: AppDep, identity: IdentityDep
) -> Membership:
    return await app.update_membership(identity, profile_id, request.tier, request.status)

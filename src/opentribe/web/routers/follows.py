"""Follow graph endpoints."""

from uuid import UUID

from fastapi import APIRouter

from opentribe.core.modules.profile.models import ProfileView
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["follows"])


@router.get(
    "/follows/following",
    summary="List followed members",
    operation_id="listFollowing",
    responses={
        200: {"description": "Profiles the caller follows"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_following(app: AppDep, identity: IdentityDep) -> list[ProfileView]:
    return await app.list_following(identity)


@router.get(
    "/follows/followers",
    summary="List followers",
    operation_id="listFollowers",
    responses={
        200: {"description": "Profiles following the caller"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_followers(app: AppDep, identity: IdentityDep) -> list[ProfileView]:
    return await app.list_followers(identity)


@router.put(
    "/follows/{profile_id}",
    summary="Follow member",
    operation_id="followMember",
    status_code=204,
    responses={
        204: {"description": "Now following"},
        400: {"model": ErrorResponse, "description": "Cannot follow yourself"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Profile not found"},
        409: {"model": ErrorResponse, "description": "Already following"},
    },
)
async def follow_member(profile_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.follow_user(identity, profile_id)


@router.delete(
    "/follows/{profile_id}",
    summary="Unfollow member",
    operation_id="unfollowMember",
    status_code=204,
    responses={
        204: {"description": "No longer following"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        409: {"model": ErrorResponse, "description": "Not following"},
    },
)
async def unfollow_member(profile_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.unfollow_user(identity, profile_id)

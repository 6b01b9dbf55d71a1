"""Endpoints for the caller's own profile."""

from typing import Annotated

from fastapi import APIRouter, Query

from opentribe.core.modules.points.models import PointsLedgerEntry
from opentribe.core.modules.profile.models import Membership, NotificationPrefs, Profile, ProfileUpdate
from opentribe.core.pagination import PaginationResult
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["profile"])


@router.get(
    "/profile",
    summary="Get current profile",
    description="Get the caller's profile. The profile is created on first access.",
    operation_id="getMyProfile",
    responses={
        200: {"description": "Current profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_my_profile(app: AppDep, identity: IdentityDep) -> Profile:
    return await app.get_my_profile(identity)


@router.patch(
    "/profile",
    summary="Update current profile",
    description="Update name, bio, avatar or visibility. Bylines on existing posts and comments are not changed.",
    operation_id="updateMyProfile",
    responses={
        200: {"description": "Updated profile"},
        400: {"model": ErrorResponse, "description": "Name or bio too long"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_my_profile(update: ProfileUpdate, app: AppDep, identity: IdentityDep) -> Profile:
    return await app.update_profile(identity, update)


@router.put(
    "/profile/notification-prefs",
    summary="Replace notification preferences",
    operation_id="updateNotificationPrefs",
    responses={
        200: {"description": "Updated profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_notification_prefs(prefs: NotificationPrefs, app: AppDep, identity: IdentityDep) -> Profile:
    return await app.update_notification_prefs(identity, prefs)


@router.get(
    "/profile/membership",
    summary="Get current membership",
    operation_id="getMyMembership",
    responses={
        200: {"description": "Membership tier and status"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_my_membership(app: AppDep, identity: IdentityDep) -> Membership | None:
    return await app.get_my_membership(identity)


@router.get(
    "/profile/points",
    summary="Get points history",
    description="Paginated points ledger of the caller, newest first.",
    operation_id="getMyPointsHistory",
    responses={
        200: {"description": "Paginated ledger entries"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_my_points_history(
    app: AppDep,
    identity: IdentityDep,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[PointsLedgerEntry]:
    return await app.get_my_points_history(identity, limit, offset)

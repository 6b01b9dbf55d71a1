"""Notification endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from opentribe.core.modules.notification.models import Notification
from opentribe.core.pagination import PaginationResult
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["notifications"])


@router.get(
    "/notifications",
    summary="List notifications",
    operation_id="listNotifications",
    responses={
        200: {"description": "Paginated notifications, newest first"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_notifications(
    app: AppDep,
    identity: IdentityDep,
    unread_only: Annotated[bool, Query(description="Only unread notifications")] = False,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Notification]:
    return await app.list_notifications(identity, unread_only, limit, offset)


@router.get(
    "/notifications/unread-count",
    summary="Count unread notifications",
    operation_id="getUnreadNotificationCount",
    responses={
        200: {"description": "Number of unread notifications"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_unread_count(app: AppDep, identity: IdentityDep) -> dict[str, int]:
    return {"count": await app.get_unread_notification_count(identity)}


@router.post(
    "/notifications/read-all",
    summary="Mark all notifications read",
    operation_id="markAllNotificationsRead",
    responses={
        200: {"description": "Number of notifications marked read"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def mark_all_read(app: AppDep, identity: IdentityDep) -> dict[str, int]:
    return {"updated": await app.mark_all_notifications_read(identity)}


@router.post(
    "/notifications/{notification_id}/read",
    summary="Mark notification read",
    operation_id="markNotificationRead",
    status_code=204,
    responses={
        204: {"description": "Marked read"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Notification not found"},
    },
)
async def mark_read(notification_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.mark_notification_read(identity, notification_id)

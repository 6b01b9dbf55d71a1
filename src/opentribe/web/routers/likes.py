"""Like endpoints for posts and comments."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from opentribe.core.modules.like.models import LikeTarget, LikeToggleResult
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["likes"])


class LikeStatus(BaseModel):
    liked: bool = Field(..., description="Whether the caller liked the target")
    count: int = Field(..., description="Current like count")


class LikeLookupRequest(BaseModel):
    target_ids: list[UUID] = Field(..., description="Targets to check", max_length=200)


@router.post(
    "/likes/{target_type}/{target_id}/toggle",
    summary="Toggle like",
    description="Like the target, or remove the caller's like if present.",
    operation_id="toggleLike",
    responses={
        200: {"description": "Like state after the toggle"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Target not found"},
    },
)
async def toggle_like(target_type: LikeTarget, target_id: UUID, app: AppDep, identity: IdentityDep) -> LikeToggleResult:
    return await app.toggle_like(identity, target_type, target_id)


@router.get(
    "/likes/{target_type}/{target_id}",
    summary="Get like status",
    operation_id="getLikeStatus",
    responses={200: {"description": "Like flag and count"}},
)
async def get_like_status(target_type: LikeTarget, target_id: UUID, app: AppDep, identity: IdentityDep) -> LikeStatus:
    return LikeStatus(
        liked=await app.has_user_liked(identity, target_type, target_id),
        count=await app.get_like_count(target_type, target_id),
    )


@router.post(
    "/likes/{target_type}/lookup",
    summary="Check likes for many targets",
    operation_id="getUserLikesForTargets",
    responses={200: {"description": "Mapping of target id to liked flag"}},
)
async def get_user_likes_for_targets(
    target_type: LikeTarget, request: LikeLookupRequest, app: AppDep, identity: IdentityDep
) -> dict[UUID, bool]:
    return await app.get_user_likes_for_targets(identity, target_type, request.target_ids)

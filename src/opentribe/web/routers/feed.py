"""Activity feed endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from opentribe.core.modules.post.models import PostPage
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["feed"])

LimitQuery = Annotated[int, Query(ge=1, le=100, description="Maximum posts per page")]
CursorQuery = Annotated[str | None, Query(description="Cursor from the previous page")]


@router.get(
    "/feed",
    summary="Recent activity",
    description="Newest posts across all spaces the caller can view.",
    operation_id="listActivityFeed",
    responses={
        200: {"description": "Page of posts"},
        400: {"model": ErrorResponse, "description": "Invalid cursor"},
    },
)
async def list_activity_feed(
    app: AppDep, identity: IdentityDep, limit: LimitQuery = 20, cursor: CursorQuery = None
) -> PostPage:
    return await app.list_activity_feed(identity, limit, cursor)


@router.get(
    "/feed/following",
    summary="Activity from followed members",
    operation_id="listActivityFeedFollowing",
    responses={
        200: {"description": "Page of posts"},
        400: {"model": ErrorResponse, "description": "Invalid cursor"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_activity_feed_following(
    app: AppDep, identity: IdentityDep, limit: LimitQuery = 20, cursor: CursorQuery = None
) -> PostPage:
    return await app.list_activity_feed_following(identity, limit, cursor)


@router.get(
    "/feed/popular",
    summary="Popular posts",
    description=(
        "Posts from the last 7 days ranked by likes + 2 x comments. "
        "Paged by offset, so pages can shift while engagement changes."
    ),
    operation_id="listActivityFeedPopular",
    responses={
        200: {"description": "Page of posts"},
        400: {"model": ErrorResponse, "description": "Invalid cursor"},
    },
)
async def list_activity_feed_popular(
    app: AppDep, identity: IdentityDep, limit: LimitQuery = 20, cursor: CursorQuery = None
) -> PostPage:
    return await app.list_activity_feed_popular(identity, limit, cursor)

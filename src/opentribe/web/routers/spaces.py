"""Space endpoints: listing, administration, visits and space post listings."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from opentribe.core.modules.post.models import PostPage
from opentribe.core.modules.space.models import AdminSpace, MemberSpace, Space, SpaceCreate, SpaceUpdate
from opentribe.core.modules.space_visit.models import SpaceVisit
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["spaces"])


class ReorderSpacesRequest(BaseModel):
    space_ids: list[UUID] = Field(..., description="Space IDs in their new display order")


@router.get(
    "/spaces",
    summary="List spaces",
    description="Spaces the caller can view, in display order. Works without authentication.",
    operation_id="listSpaces",
    responses={200: {"description": "Spaces"}},
)
async def list_spaces(app: AppDep, identity: IdentityDep) -> list[Space]:
    return await app.list_spaces(identity)


@router.get(
    "/spaces/member",
    summary="List spaces with unread markers",
    operation_id="listSpacesForMember",
    responses={
        200: {"description": "Spaces with unread flags"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_spaces_for_member(app: AppDep, identity: IdentityDep) -> list[MemberSpace]:
    return await app.list_spaces_for_member(identity)


@router.get(
    "/spaces/admin",
    summary="List all spaces for admins",
    description="All spaces including deleted ones, with post statistics.",
    operation_id="listSpacesForAdmin",
    responses={
        200: {"description": "Spaces with statistics"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_spaces_for_admin(app: AppDep, identity: IdentityDep) -> list[AdminSpace]:
    return await app.list_spaces_for_admin(identity)


@router.get(
    "/spaces/visits",
    summary="List space visits",
    operation_id="getSpaceVisits",
    responses={
        200: {"description": "Last visit per space"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_space_visits(app: AppDep, identity: IdentityDep) -> list[SpaceVisit]:
    return await app.get_space_visits(identity)


@router.post(
    "/spaces",
    summary="Create space",
    description="Create a space at the end of the display order (admin only).",
    operation_id="createSpace",
    status_code=201,
    responses={
        201: {"description": "Space created"},
        400: {"model": ErrorResponse, "description": "Invalid name or description"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def create_space(data: SpaceCreate, app: AppDep, identity: IdentityDep) -> Space:
    return await app.create_space(identity, data)


@router.put(
    "/spaces/order",
    summary="Reorder spaces",
    description="Assign display order 1..n following the given ids. Nothing changes if any id is invalid.",
    operation_id="reorderSpaces",
    responses={
        200: {"description": "Spaces in their new order"},
        400: {"model": ErrorResponse, "description": "Duplicate ids"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def reorder_spaces(request: ReorderSpacesRequest, app: AppDep, identity: IdentityDep) -> list[Space]:
    return await app.reorder_spaces(identity, request.space_ids)


@router.get(
    "/spaces/{space_id}",
    summary="Get space",
    operation_id="getSpace",
    responses={
        200: {"description": "Space"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def get_space(space_id: UUID, app: AppDep, identity: IdentityDep) -> Space:
    return await app.get_space(identity, space_id)


@router.patch(
    "/spaces/{space_id}",
    summary="Update space",
    description="Partial update; omitted fields keep their values (admin only).",
    operation_id="updateSpace",
    responses={
        200: {"description": "Updated space"},
        400: {"model": ErrorResponse, "description": "Invalid name or description"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def update_space(space_id: UUID, update: SpaceUpdate, app: AppDep, identity: IdentityDep) -> Space:
    return await app.update_space(identity, space_id, update)


@router.delete(
    "/spaces/{space_id}",
    summary="Delete space",
    description="Soft delete a space (admin only).",
    operation_id="deleteSpace",
    status_code=204,
    responses={
        204: {"description": "Space deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def delete_space(space_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.delete_space(identity, space_id)


@router.get(
    "/spaces/{space_id}/posts",
    summary="List space posts",
    description=(
        "Pinned posts first (first page only), then posts newest first. "
        "Pass `next_cursor` from the previous page as `cursor`."
    ),
    operation_id="listPostsBySpace",
    responses={
        200: {"description": "Page of posts"},
        400: {"model": ErrorResponse, "description": "Invalid cursor"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def list_posts_by_space(
    space_id: UUID,
    app: AppDep,
    identity: IdentityDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum posts per page")] = 20,
    cursor: Annotated[str | None, Query(description="Cursor from the previous page")] = None,
) -> PostPage:
    return await app.list_posts_by_space(identity, space_id, limit, cursor)


@router.post(
    "/spaces/{space_id}/visit",
    summary="Record space visit",
    operation_id="recordSpaceVisit",
    responses={
        200: {"description": "Visit recorded"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def record_space_visit(space_id: UUID, app: AppDep, identity: IdentityDep) -> SpaceVisit:
    return await app.record_space_visit(identity, space_id)


@router.get(
    "/spaces/{space_id}/visit",
    summary="Get space visit",
    operation_id="getSpaceVisit",
    responses={
        200: {"description": "Last visit, or null"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_space_visit(space_id: UUID, app: AppDep, identity: IdentityDep) -> SpaceVisit | None:
    return await app.get_space_visit(identity, space_id)

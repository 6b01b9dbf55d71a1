"""Single-comment endpoints. Creation and listing live under /posts/{post_id}/comments."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from opentribe.core.modules.comment.models import CommentView
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["comments"])


class UpdateCommentRequest(BaseModel):
    content: str = Field(..., description="New comment text (1-500 characters)")


@router.get(
    "/comments/{comment_id}",
    summary="Get comment",
    operation_id="getComment",
    responses={
        200: {"description": "Comment"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def get_comment(comment_id: UUID, app: AppDep, identity: IdentityDep) -> CommentView:
    return await app.get_comment(identity, comment_id)


@router.patch(
    "/comments/{comment_id}",
    summary="Update comment",
    operation_id="updateComment",
    status_code=204,
    responses={
        204: {"description": "Comment updated"},
        400: {"model": ErrorResponse, "description": "Invalid content"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def update_comment(comment_id: UUID, request: UpdateCommentRequest, app: AppDep, identity: IdentityDep) -> None:
    await app.update_comment(identity, comment_id, request.content)


@router.delete(
    "/comments/{comment_id}",
    summary="Delete comment",
    description="Soft delete. The comment stays in its thread with redacted content.",
    operation_id="deleteComment",
    status_code=204,
    responses={
        204: {"description": "Comment deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
        409: {"model": ErrorResponse, "description": "Comment already deleted"},
    },
)
async def delete_comment(comment_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.delete_comment(identity, comment_id)

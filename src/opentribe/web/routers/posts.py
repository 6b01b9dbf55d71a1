"""Post endpoints, including the comment threads hanging off a post."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from opentribe.core.modules.comment.models import CommentView
from opentribe.core.modules.post.models import Post, PostCreate, PostDetails, PostUpdate
from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["posts"])


class CreateCommentRequest(BaseModel):
    """Request to create a new comment."""

    content: str = Field(..., description="The comment text (1-500 characters)")
    parent_id: UUID | None = Field(
        None, description="Comment being replied to; replies to replies join the root thread"
    )


@router.post(
    "/posts",
    summary="Create post",
    operation_id="createPost",
    status_code=201,
    responses={
        201: {"description": "Post created"},
        400: {"model": ErrorResponse, "description": "Empty content or title too long"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Posting not allowed in this space"},
        404: {"model": ErrorResponse, "description": "Space not found"},
    },
)
async def create_post(data: PostCreate, app: AppDep, identity: IdentityDep) -> Post:
    return await app.create_post(identity, data)


@router.get(
    "/posts/deleted",
    summary="List deleted posts",
    description="Soft-deleted posts, most recently deleted first (admin only).",
    operation_id="listDeletedPosts",
    responses={
        200: {"description": "Deleted posts"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_deleted_posts(
    app: AppDep,
    identity: IdentityDep,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum items to return")] = 50,
) -> list[Post]:
    return await app.list_deleted_posts(identity, limit)


@router.get(
    "/posts/{post_id}",
    summary="Get post",
    operation_id="getPost",
    responses={
        200: {"description": "Post with details"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def get_post(post_id: UUID, app: AppDep, identity: IdentityDep) -> PostDetails:
    return await app.get_post(identity, post_id)


@router.patch(
    "/posts/{post_id}",
    summary="Update post",
    description="Partial update by the author or a moderator.",
    operation_id="updatePost",
    responses={
        200: {"description": "Updated post"},
        400: {"model": ErrorResponse, "description": "Empty content or title too long"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def update_post(post_id: UUID, update: PostUpdate, app: AppDep, identity: IdentityDep) -> Post:
    return await app.update_post(identity, post_id, update)


@router.delete(
    "/posts/{post_id}",
    summary="Delete post",
    operation_id="deletePost",
    status_code=204,
    responses={
        204: {"description": "Post deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Post not found"},
        409: {"model": ErrorResponse, "description": "Post already deleted"},
    },
)
async def delete_post(post_id: UUID, app: AppDep, identity: IdentityDep) -> None:
    await app.delete_post(identity, post_id)


@router.post(
    "/posts/{post_id}/restore",
    summary="Restore post",
    operation_id="restorePost",
    responses={
        200: {"description": "Restored post"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Post not found"},
        409: {"model": ErrorResponse, "description": "Post is not deleted"},
    },
)
async def restore_post(post_id: UUID, app: AppDep, identity: IdentityDep) -> Post:
    return await app.restore_post(identity, post_id)


@router.post(
    "/posts/{post_id}/pin",
    summary="Pin post",
    description="Pin a post to the top of its space. A space holds at most three pinned posts.",
    operation_id="pinPost",
    responses={
        200: {"description": "Pinned post"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator privileges required"},
        404: {"model": ErrorResponse, "description": "Post not found"},
        409: {"model": ErrorResponse, "description": "Already pinned or pin limit reached"},
    },
)
async def pin_post(post_id: UUID, app: AppDep, identity: IdentityDep) -> Post:
    return await app.pin_post(identity, post_id)


@router.delete(
    "/posts/{post_id}/pin",
    summary="Unpin post",
    operation_id="unpinPost",
    responses={
        200: {"description": "Unpinned post"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator privileges required"},
        404: {"model": ErrorResponse, "description": "Post not found"},
        409: {"model": ErrorResponse, "description": "Post is not pinned"},
    },
)
async def unpin_post(post_id: UUID, app: AppDep, identity: IdentityDep) -> Post:
    return await app.unpin_post(identity, post_id)


@router.get(
    "/posts/{post_id}/comments",
    summary="List post comments",
    description="Root comments newest first, each with its replies oldest first. Deleted comments are redacted.",
    operation_id="listCommentsByPost",
    responses={
        200: {"description": "Comment threads"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def list_comments(post_id: UUID, app: AppDep, identity: IdentityDep) -> list[CommentView]:
    return await app.list_comments_by_post(identity, post_id)


@router.post(
    "/posts/{post_id}/comments",
    summary="Create comment",
    operation_id="createComment",
    status_code=201,
    responses={
        201: {"description": "Comment created"},
        400: {"model": ErrorResponse, "description": "Invalid content or parent on another post"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Post or parent comment not found"},
    },
)
async def create_comment(
    post_id: UUID, request: CreateCommentRequest, app: AppDep, identity: IdentityDep
) -> CommentView:
    return await app.create_comment(identity, post_id, request.content, request.parent_id)

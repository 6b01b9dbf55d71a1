"""Media endpoints backed by the blob storage service."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from opentribe.web.deps import AppDep, IdentityDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["media"])


class UrlResponse(BaseModel):
    url: str | None = Field(..., description="Resolved URL, or null when unavailable")


class MediaUrlsRequest(BaseModel):
    refs: list[str] = Field(..., description="Blob storage references", max_length=100)


@router.post(
    "/media/upload-url",
    summary="Generate upload URL",
    description="Get a one-time URL to upload a file directly to blob storage.",
    operation_id="generateUploadUrl",
    responses={
        200: {"description": "Upload URL"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def generate_upload_url(app: AppDep, identity: IdentityDep) -> UrlResponse:
    return UrlResponse(url=await app.generate_upload_url(identity))


@router.get(
    "/media/{ref}/url",
    summary="Resolve media URL",
    operation_id="getMediaUrl",
    responses={200: {"description": "URL, or null if the blob does not exist"}},
)
async def get_media_url(ref: str, app: AppDep) -> UrlResponse:
    return UrlResponse(url=await app.get_media_url(ref))


@router.post(
    "/media/urls",
    summary="Resolve many media URLs",
    operation_id="getMediaUrls",
    responses={200: {"description": "Mapping of reference to URL"}},
)
async def get_media_urls(request: MediaUrlsRequest, app: AppDep) -> dict[str, str | None]:
    return await app.get_media_urls(request.refs)

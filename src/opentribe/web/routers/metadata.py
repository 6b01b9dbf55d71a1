"""Metadata endpoints for exposing system information."""

from fastapi import APIRouter

from opentribe.web.deps import AppDep

router = APIRouter(tags=["metadata"])


@router.get(
    "/metadata/version",
    summary="Get version information",
    description="Returns package version, git commit hash, commit date and build time.",
    operation_id="getVersion",
    responses={200: {"description": "Version and build information"}},
)
async def get_version(app: AppDep) -> dict[str, str]:
    """Get version information."""
    return await app.get_version()

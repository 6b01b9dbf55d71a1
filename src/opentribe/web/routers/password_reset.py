"""Password reset request admission (rate limiting only)."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from opentribe.core.modules.rate_limit.models import RateLimitDecision
from opentribe.web.deps import AppDep
from opentribe.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["password-reset"])


class PasswordResetRequest(BaseModel):
    email: str = Field(..., description="Email address of the account")


@router.post(
    "/password-reset/requests",
    summary="Request password reset",
    description="Admit a reset request. At most 3 requests per email per rolling hour.",
    operation_id="requestPasswordReset",
    responses={
        200: {"description": "Request accepted"},
        400: {"model": ErrorResponse, "description": "Email missing"},
        429: {"model": ErrorResponse, "description": "Too many requests; see retry_at"},
    },
)
async def request_password_reset(request: PasswordResetRequest, app: AppDep) -> RateLimitDecision:
    return await app.request_password_reset(request.email)

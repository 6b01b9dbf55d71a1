from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

# Endpoints that never look at an identity token
PUBLIC_ENDPOINTS = {
    ("POST", "/api/v1/password-reset/requests"),
    ("GET", "/api/v1/media/{ref}/url"),
    ("POST", "/api/v1/media/urls"),
    ("GET", "/metadata/version"),
    ("GET", "/health"),
}

# Reads open to anonymous callers; a token only personalizes the response
OPTIONAL_AUTH_ENDPOINTS = {
    ("GET", "/api/v1/spaces"),
    ("GET", "/api/v1/spaces/{space_id}"),
    ("GET", "/api/v1/spaces/{space_id}/posts"),
    ("GET", "/api/v1/posts/{post_id}"),
    ("GET", "/api/v1/posts/{post_id}/comments"),
    ("GET", "/api/v1/comments/{comment_id}"),
    ("GET", "/api/v1/members/{profile_id}"),
    ("GET", "/api/v1/members/{profile_id}/posts"),
    ("GET", "/api/v1/likes/{target_type}/{target_id}"),
    ("POST", "/api/v1/likes/{target_type}/lookup"),
    ("GET", "/api/v1/feed"),
    ("GET", "/api/v1/feed/popular"),
}

BEARER: list[dict[str, list[str]]] = [{"BearerAuth": []}]
OPTIONAL_BEARER: list[dict[str, list[str]]] = [{}, {"BearerAuth": []}]


def operation_security(method: str, path: str) -> list[dict[str, list[str]]]:
    key = (method.upper(), path)
    if key in PUBLIC_ENDPOINTS:
        return []
    if key in OPTIONAL_AUTH_ENDPOINTS:
        return OPTIONAL_BEARER
    return BEARER


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="OpenTribe API",
            version="0.1.0",
            summary="Community platform with spaces, threaded discussions and gamification",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Identity token issued by the auth provider",
            },
        }
        openapi_schema["security"] = BEARER

        # Replaces the per-route HTTPBearer entries FastAPI derives from the token dependency
        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                operation["security"] = operation_security(method, path)

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Authentication required", "type": "authentication_error"},
                {"message": "Post not found", "type": "not_found"},
                {"message": "A space can have at most 3 pinned posts", "type": "capacity_exceeded"},
            ]
        }
    }

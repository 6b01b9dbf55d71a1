from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from opentribe.app import App
from opentribe.core.modules.identity.models import AuthIdentity

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_identity(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> AuthIdentity | None:
    """Resolve the caller's identity once per request.

    No token means an anonymous caller; a token that fails verification is
    rejected rather than silently downgraded to anonymous.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return app.resolve_identity(credentials.credentials)


AppDep = Annotated[App, Depends(get_app)]
IdentityDep = Annotated[AuthIdentity | None, Depends(get_identity)]

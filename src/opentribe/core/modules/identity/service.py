from typing import Any

import structlog
from jose import JWTError, jwt

from opentribe.core.core import Service
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class IdentityService(Service):
    """Verifies bearer tokens issued by the external auth provider."""

    def resolve_token(self, token: str) -> AuthIdentity:
        """Decode and verify a bearer token, returning the identity it carries."""
        config = self.core.config
        options: dict[str, Any] = {"verify_aud": config.auth_jwt_audience is not None}
        try:
            payload = jwt.decode(
                token,
                config.auth_jwt_secret,
                algorithms=[config.auth_jwt_algorithm],
                audience=config.auth_jwt_audience,
                options=options,
            )
        except JWTError as e:
            logger.debug("identity_token_rejected", error=str(e))
            raise AuthenticationError("Invalid identity token") from e

        email = payload.get("email")
        if not isinstance(email, str) or not email.strip():
            raise AuthenticationError("Identity token has no email claim")
        name = payload.get("name")
        return AuthIdentity(email=email, name=name if isinstance(name, str) and name.strip() else None)

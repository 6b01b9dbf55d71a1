from pydantic import BaseModel, Field

from opentribe.utils import normalize_email


class AuthIdentity(BaseModel):
    """Identity asserted by the external auth provider for one request."""

    email: str = Field(..., description="Email address from the identity token")
    name: str | None = Field(None, description="Display name from the identity token, if any")

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3100
    debug: bool = False
    cors_origins: list[str] = []
    # Identity tokens are issued by the external auth provider; we only verify them
    auth_jwt_secret: str
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: str | None = None
    admin_emails: list[str] = []  # Profiles created for these emails start as admins
    blob_storage_url: str  # Base URL of the blob storage service, e.g. https://blobs.example.com
    blob_storage_api_key: str | None = None
    blob_storage_timeout: float = 10.0  # Seconds
    # Build metadata injected during Docker build via environment variables
    git_commit_hash: str = "unknown"
    git_commit_date: str = "unknown"
    build_time: str = "unknown"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "OPENTRIBE_",
        "extra": "ignore",
    }

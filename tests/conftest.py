"""Shared pytest fixtures."""

from uuid import UUID

import pytest

from opentribe.config import Config
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.profile.models import Profile, Role
from opentribe.core.modules.space.models import Space

ADMIN_EMAIL = "admin@example.com"
JWT_SECRET = "test-secret"


@pytest.fixture
def mock_space():
    """Create a public space for testing."""
    return Space(
        id=UUID("12345678-1234-5678-1234-567812345678"),
        name="General",
        order=1,
    )


@pytest.fixture
def mock_member():
    """Create a plain member profile."""
    return Profile(id=UUID("87654321-4321-8765-4321-876543218765"), email="member@example.com", name="Member")


@pytest.fixture
def mock_moderator():
    return Profile(
        id=UUID("11111111-1111-1111-1111-111111111111"), email="mod@example.com", name="Mod", role=Role.MODERATOR
    )


@pytest.fixture
def mock_admin():
    return Profile(id=UUID("22222222-2222-2222-2222-222222222222"), email=ADMIN_EMAIL, name="Admin", role=Role.ADMIN)


@pytest.fixture
def config():
    """Configuration that does not read the environment's .env file."""
    return Config(
        _env_file=None,
        database_url="mongodb://localhost:27017/opentribe_test",
        auth_jwt_secret=JWT_SECRET,
        admin_emails=[ADMIN_EMAIL],
        blob_storage_url="http://blobs.test",
    )


@pytest.fixture
def admin():
    return AuthIdentity(email=ADMIN_EMAIL, name="Admin")


@pytest.fixture
def alice():
    return AuthIdentity(email="Alice@Example.com", name="Alice")


@pytest.fixture
def bob():
    return AuthIdentity(email="bob@example.com", name="Bob")


@pytest.fixture
def carol():
    return AuthIdentity(email="carol@example.com", name=None)

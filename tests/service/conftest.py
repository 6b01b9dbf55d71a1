"""Fixtures running the full App against an in-memory MongoDB."""

import asyncio
import inspect

import pytest

from opentribe.app import App
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.post.models import Post, PostCreate
from opentribe.core.modules.profile.models import Role
from opentribe.core.modules.space.models import Space, SpaceCreate

mongomock_motor = pytest.importorskip("mongomock_motor")


@pytest.fixture
def mongo_client(monkeypatch):
    """In-memory client storing UUIDs natively.

    mongomock validates inserts by encoding them with default codec options,
    which rejects native UUIDs regardless of the client's uuidRepresentation.
    """
    monkeypatch.setattr("mongomock.collection.BSON", None)
    return mongomock_motor.AsyncMongoMockClient(tz_aware=True, uuidRepresentation="standard")


@pytest.fixture
async def app(config, mongo_client):
    """Fully started App backed by an in-memory MongoDB."""
    app = App(config, mongo_client=mongo_client)
    async with app.lifespan():
        yield app


@pytest.fixture
async def moderator(app, admin):
    """Identity whose profile was promoted to moderator by the admin."""
    identity = AuthIdentity(email="mod@example.com", name="Mod")
    profile = await app.get_my_profile(identity)
    await app.set_member_role(admin, profile.id, Role.MODERATOR)
    return identity


@pytest.fixture
async def space(app, admin):
    return await app.create_space(admin, SpaceCreate(name="General", description="Anything goes"))


@pytest.fixture
def make_post(app):
    """Factory creating posts with a minimal rich-text document."""

    async def _make_post(identity: AuthIdentity, space: Space, text: str = "Hello") -> Post:
        return await app.create_post(
            identity,
            PostCreate(space_id=space.id, content=f'{{"type":"doc","text":"{text}"}}', content_html=f"<p>{text}</p>"),
        )

    return _make_post


class YieldingCollection:
    """Collection wrapper that yields to the event loop before every driver call.

    The in-memory driver never suspends, so concurrent coroutines would run one
    after another; yielding lets them interleave the way real network I/O does.
    """

    def __init__(self, collection):
        self._collection = collection

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not inspect.iscoroutinefunction(attr):
            return attr

        async def call(*args, **kwargs):
            await asyncio.sleep(0)
            return await attr(*args, **kwargs)

        return call


@pytest.fixture
def interleave_io(monkeypatch):
    """Make the given collections of a service yield on every call."""

    def _interleave(service, *attrs: str) -> None:
        for attr in attrs:
            monkeypatch.setattr(service, attr, YieldingCollection(getattr(service, attr)))

    return _interleave

from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.config import Config


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from opentribe.core.modules.access.service import AccessService  # noqa: PLC0415
    from opentribe.core.modules.comment.service import CommentService  # noqa: PLC0415
    from opentribe.core.modules.feed.service import FeedService  # noqa: PLC0415
    from opentribe.core.modules.follow.service import FollowService  # noqa: PLC0415
    from opentribe.core.modules.identity.service import IdentityService  # noqa: PLC0415
    from opentribe.core.modules.like.service import LikeService  # noqa: PLC0415
    from opentribe.core.modules.media.service import MediaService  # noqa: PLC0415
    from opentribe.core.modules.notification.service import NotificationService  # noqa: PLC0415
    from opentribe.core.modules.points.service import PointsService  # noqa: PLC0415
    from opentribe.core.modules.post.service import PostService  # noqa: PLC0415
    from opentribe.core.modules.profile.service import ProfileService  # noqa: PLC0415
    from opentribe.core.modules.rate_limit.service import RateLimitService  # noqa: PLC0415
    from opentribe.core.modules.space.service import SpaceService  # noqa: PLC0415
    from opentribe.core.modules.space_visit.service import SpaceVisitService  # noqa: PLC0415

    identity: IdentityService
    profile: ProfileService
    space: SpaceService
    access: AccessService
    points: PointsService
    media: MediaService
    post: PostService
    comment: CommentService
    like: LikeService
    notification: NotificationService
    follow: FollowService
    feed: FeedService
    space_visit: SpaceVisitService
    rate_limit: RateLimitService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - profile and space must be first
        service_configs = [
            ("identity", "opentribe.core.modules.identity.service", "IdentityService"),
            ("profile", "opentribe.core.modules.profile.service", "ProfileService"),
            ("space", "opentribe.core.modules.space.service", "SpaceService"),
            ("access", "opentribe.core.modules.access.service", "AccessService"),
            ("points", "opentribe.core.modules.points.service", "PointsService"),
            ("media", "opentribe.core.modules.media.service", "MediaService"),
            ("post", "opentribe.core.modules.post.service", "PostService"),
            ("comment", "opentribe.core.modules.comment.service", "CommentService"),
            ("like", "opentribe.core.modules.like.service", "LikeService"),
            ("notification", "opentribe.core.modules.notification.service", "NotificationService"),
            ("follow", "opentribe.core.modules.follow.service", "FollowService"),
            ("feed", "opentribe.core.modules.feed.service", "FeedService"),
            ("space_visit", "opentribe.core.modules.space_visit.service", "SpaceVisitService"),
            ("rate_limit", "opentribe.core.modules.rate_limit.service", "RateLimitService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config, mongo_client: AsyncMongoClient[dict[str, Any]] | None = None) -> None:
        """Initialize core with config, MongoDB, and auto-register services.

        A pre-built client may be passed in (tests use an in-memory one); Core only
        closes clients it created itself.
        """
        self.config = config
        self._owns_client = mongo_client is None
        if mongo_client is None:
            mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.mongo_client = mongo_client
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self._owns_client:
            await self.mongo_client.aclose()

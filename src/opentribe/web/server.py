from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.config import LOGGING_CONFIG

from opentribe.app import App
from opentribe.config import Config
from opentribe.errors import UserError
from opentribe.web.error_handlers import general_exception_handler, user_error_handler
from opentribe.web.openapi import set_custom_openapi
from opentribe.web.routers import (
    comments_router,
    feed_router,
    follows_router,
    likes_router,
    media_router,
    members_router,
    metadata_router,
    notifications_router,
    password_reset_router,
    posts_router,
    profile_router,
    spaces_router,
)

API_PREFIX = "/api/v1"


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="OpenTribe API", lifespan=lifespan, debug=config.debug)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        return await call_next(request)

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    for router in (
        profile_router,
        members_router,
        follows_router,
        spaces_router,
        posts_router,
        comments_router,
        likes_router,
        feed_router,
        notifications_router,
        media_router,
        password_reset_router,
    ):
        app.include_router(router, prefix=API_PREFIX)
    app.include_router(metadata_router)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app


def run_server(app: App, config: Config) -> None:
    """Serve the API with uvicorn, using compact log formats."""
    log_config = LOGGING_CONFIG.copy()
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"

    uvicorn.run(
        create_fastapi_app(app, config),
        host=config.host,
        port=config.port,
        log_config=log_config,
        log_level="debug" if config.debug else "info",
        access_log=True,
        proxy_headers=True,
    )

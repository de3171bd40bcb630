"""FastAPI application factory for the command box service."""

from __future__ import annotations

from fastapi import FastAPI

from ..exception_handler import setup_logging
from ..mcpserver.server import ServiceContext, create_server
from ..persistence.config import StorageSettings
from ..store import CommandStore
from .route import router, store_for_state


def create_app(
    store: CommandStore | None = None,
    settings: StorageSettings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Run with ``uvicorn commandbox.api.server:create_app --factory``.
    """

    settings = settings or StorageSettings.from_env()
    setup_logging(settings.log_level)

    # setup mcp; its tools share the HTTP app's store
    services = ServiceContext(store_provider=lambda: store_for_state(app.state, settings))
    mcp_app = create_server(services).http_app("/")

    app = FastAPI(
        title="Command Box API",
        version="0.1.0",
        lifespan=mcp_app.lifespan,
    )
    app.state.settings = settings
    if store is not None:
        app.state.store = store
    app.include_router(router)

    app.mount("/mcp", mcp_app)

    return app


__all__ = ["create_app"]

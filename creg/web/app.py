"""FastAPI application exposing the content registry over HTTP.

Run with any ASGI server, e.g. ``uvicorn --factory creg.web.app:create_app``.
Without an explicit registry the application loads its state from the
configured home directory and writes a new snapshot after every accepted
mutation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from creg import __version__
from creg.registry.content_registry import ContentRegistry
from creg.errors import RegistryOperationError
from creg.web.routers import registry


def create_app(
    content_registry: Optional[ContentRegistry] = None,
    snapshot_path: Optional[Path] = None,
) -> FastAPI:
    """Build the API around *content_registry*."""
    if content_registry is None:
        from creg.config import load_settings
        from creg.registry.snapshot import open_registry

        settings = load_settings()
        content_registry = open_registry(settings)
        snapshot_path = snapshot_path or settings.snapshot_path

    app = FastAPI(
        title="creg API",
        description="Content ownership registry: register, update and verify content hashes.",
        version=__version__,
    )
    app.state.registry = content_registry
    app.state.snapshot_path = snapshot_path

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(registry.router)
    app.add_exception_handler(RegistryOperationError, registry.registry_error_handler)

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {"name": "creg API", "version": __version__, "docs": "/docs"}

    @app.get("/health", tags=["meta"])
    def health():
        return {"status": "ok", "contents": content_registry.count().value}

    return app

"""
FastAPI application entry point for the gateway.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway.config import Settings, get_settings
from gateway.dependencies import build_backends
from gateway.errors import register_exception_handlers
from gateway.routes import api_router, router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. Settings are read once here and never again;
    backend initialization failures propagate so the process does not start.
    """
    settings = settings or get_settings()
    app = FastAPI(title="Firebase CRUD Gateway", version="0.1.0")
    app.state.backends = build_backends(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(
        app, expose_dependency_errors=settings.expose_dependency_errors
    )

    app.include_router(router)
    app.include_router(api_router, prefix="/api")
    return app

"""
FastAPI application entrypoint for the consent proxy.
"""

from __future__ import annotations

from fastapi import FastAPI

from obproxy.api.routes import router as api_router
from obproxy.core.config import get_settings
from obproxy.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Open Banking Consent Proxy",
        version="0.1.0",
        description="Consent-aware proxy for ASPSP resource APIs.",
    )
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]

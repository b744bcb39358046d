"""Application entry point."""

from fastapi import FastAPI

from .api import api_router
from .api.errors import register_error_handlers
from .core.config import settings
from .core.logging import RequestIDMiddleware, init_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    init_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()

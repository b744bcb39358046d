"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..domain.errors import ValidationError

logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning(
        exc.message,
        extra={"error_code": exc.code, "field": exc.field, "path": request.url.path},
    )
    return JSONResponse(status_code=422, content={"error": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on ``app``."""
    app.add_exception_handler(ValidationError, validation_error_handler)

"""
Uniform {ok: false, ...} error responses and application exception handlers
"""

from typing import Any, Dict, List, Optional
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from schemas.api import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    details: Optional[List[Dict[str, Any]]] = None,
    stack: Optional[str] = None,
    available_tables: Optional[List[str]] = None
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        stack=stack,
        available_tables=available_tables
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True)
    )


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "path": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg"),
            }
            for err in exc.errors()
        ]
        return error_response(400, "Invalid request", details=details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Request error on {request.method} {request.url.path}: {exc}",
            exc_info=exc
        )
        stack = None
        if settings.ENVIRONMENT == "development":
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return error_response(500, "Internal server error", message=str(exc), stack=stack)

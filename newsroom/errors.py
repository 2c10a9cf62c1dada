"""
Newsroom - Error Taxonomy

Every failure raised by the auth core and the content routers is one of the
NewsroomError subclasses below. The handlers at the bottom translate them into
the JSON envelope clients expect; anything else becomes a generic 500.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from newsroom.config import settings


logger = logging.getLogger(__name__)


class NewsroomError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(NewsroomError):
    """Malformed or missing input."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(NewsroomError):
    """Missing, invalid, expired or reused token, or a wrong credential."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(NewsroomError):
    """Authenticated but not allowed to perform the action."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(NewsroomError):
    """Referenced account or resource does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(NewsroomError):
    """Uniqueness violation."""
    status_code = status.HTTP_409_CONFLICT


def error_body(
    status_code: int,
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    stack: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": False,
        "statusCode": status_code,
        "message": message,
        "errors": errors or [],
    }
    if stack and settings.is_development:
        body["stack"] = stack
    return body


def api_response(status_code: int, data: Any, message: str) -> Dict[str, Any]:
    """Success envelope shared by all routers."""
    return {
        "success": status_code < 400,
        "statusCode": status_code,
        "message": message,
        "data": data,
    }


async def newsroom_error_handler(request: Request, exc: NewsroomError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.errors),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    message = ", ".join(e["message"] for e in errors) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, message, errors),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity violation on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body(status.HTTP_409_CONFLICT, "Resource already exists"),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            stack="".join(traceback.format_exception(exc)),
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NewsroomError, newsroom_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

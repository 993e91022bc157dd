"""
Domain errors and their HTTP translation.

Services raise these close to the violated rule; the handlers registered by
``register_exception_handlers`` turn them into JSON responses. Anything that
is not an ``AppError`` is logged and reduced to a generic 500.
"""
from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        if not message and not details:
            message = HTTPStatus(self.status_code).phrase
        super().__init__(message or "")
        self.message = message
        self.details = details
        self.metadata = metadata

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.message:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        if self.metadata is not None:
            body["metadata"] = self.metadata
        return body


class ConflictError(AppError):
    status_code = HTTPStatus.CONFLICT


class ForbiddenError(AppError):
    status_code = HTTPStatus.FORBIDDEN


class UnauthorizedError(AppError):
    status_code = HTTPStatus.UNAUTHORIZED


class UnprocessableEntityError(AppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY


class NotFoundError(AppError):
    status_code = HTTPStatus.NOT_FOUND


def validation_details(errors: list[dict[str, Any]]) -> dict[str, str]:
    details: dict[str, list[str]] = {}
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in ("body", "query", "path", "cookie", "header")]
        field = str(loc[-1]) if loc else "__root__"
        details.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return {field: ", ".join(msgs) for field, msgs in details.items()}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s -> %s %s", request.method, request.url.path, int(exc.status_code), exc.to_dict())
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
        content={"details": validation_details(list(exc.errors()))},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

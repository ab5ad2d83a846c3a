# taskapi/errors.py
"""
Typed failures raised by the service layer.

Routers never build HTTP errors for domain failures themselves; they let these
propagate and the handlers registered in taskapi.main turn them into
{"detail": ...} responses with the matching status code.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

logger = logging.getLogger(__name__)


class TaskApiError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class BadRequestError(TaskApiError):
    status_code = 400
    default_detail = "Bad request"


class UnauthorizedError(TaskApiError):
    status_code = 401
    default_detail = "Unauthorized"


class NotFoundError(TaskApiError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(TaskApiError):
    status_code = 409
    default_detail = "Conflict"


class InternalError(TaskApiError):
    status_code = 500
    default_detail = "Internal server error"


@contextmanager
def store_errors(detail: str, session: Optional[Session] = None):
    """
    Collapse unexpected storage failures into InternalError(detail).
    The original exception is logged and chained, never shown to the client.
    """
    try:
        yield
    except SQLAlchemyError as e:
        if session is not None:
            session.rollback()
        logger.exception("store failure: %s", detail)
        raise InternalError(detail) from e


async def task_api_error_handler(request: Request, exc: TaskApiError) -> JSONResponse:
    if isinstance(exc, InternalError):
        # cause stays in the log, never in the response
        logger.error("[%s %s] %s (cause=%r)", request.method, request.url.path, exc.detail, exc.__cause__)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskApiError, task_api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

"""Map domain errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from procurement.errors import (
    AlreadyAwardedError,
    ConsistencyError,
    DeadlinePassedError,
    InvalidStateTransitionError,
)

_CONFLICT_ERRORS = (
    InvalidStateTransitionError,
    DeadlinePassedError,
    AlreadyAwardedError,
    ConsistencyError,
)


def _body(exc) -> dict:
    return {"error": type(exc).__name__, "messages": getattr(exc, "messages", {}) or {"detail": [str(exc)]}}


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    status_code = 409 if isinstance(exc, _CONFLICT_ERRORS) else 400
    return JSONResponse(status_code=status_code, content=_body(exc))


async def not_found_error_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_error_handler)

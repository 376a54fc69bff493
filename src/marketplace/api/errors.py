"""Maps marketplace and Protean errors onto the JSON error envelope.

Every failure is answered as ``{"success": false, "message": ..., "errors": {...}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ObjectNotFoundError, ValidationError

from marketplace.exceptions import MarketplaceError

logger = structlog.get_logger(__name__)


def _first_message(errors: dict, fallback: str) -> str:
    for messages in errors.values():
        if isinstance(messages, list) and messages:
            return str(messages[0])
        if isinstance(messages, str):
            return messages
    return fallback


def error_response(status_code: int, errors: dict, fallback: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": _first_message(errors, fallback), "errors": errors},
    )


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return error_response(exc.status_code, exc.messages, "Request could not be completed")


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(400, exc.messages, "Invalid request")


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return error_response(400, errors, "Invalid request")


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return error_response(404, {"entity": [str(exc) or "Not found"]}, "Not found")


async def invalid_operation_handler(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return error_response(400, {"operation": [str(exc)]}, "Invalid operation")


async def stale_write_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("Stale write rejected", path=request.url.path)
    return error_response(409, {"version": ["Resource was modified concurrently; retry"]}, "Conflict")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return error_response(500, {"server": ["Internal server error"]}, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(InvalidOperationError, invalid_operation_handler)
    app.add_exception_handler(ExpectedVersionError, stale_write_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

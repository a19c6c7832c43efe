from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import app_logger

VALIDATION_MESSAGE = "The given data was invalid."
INTERNAL_ERROR_DETAIL = "Internal server error"
LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _field_name(error: dict) -> str:
    """Dotted field path without the request-part prefix, e.g. nfc_data.card_id."""
    parts = [str(part) for part in error.get("loc", ())]
    # Malformed JSON reports the character offset as the second location part
    if error.get("type") == "json_invalid":
        return parts[0] if parts else "body"
    if len(parts) > 1 and parts[0] in LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)


def format_validation_errors(errors) -> dict[str, list[str]]:
    """Group validation error messages by field."""
    grouped: dict[str, list[str]] = {}
    for error in errors:
        grouped.setdefault(_field_name(error), []).append(error.get("msg", "Invalid value"))
    return grouped


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": INTERNAL_ERROR_DETAIL},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            {
                "message": VALIDATION_MESSAGE,
                "errors": format_validation_errors(exc.errors()),
            }
        ),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    # Log internal error details for debugging (to stdout), return a generic body
    app_logger.error(
        f"Database error on {request.method} {request.url.path}: {exc!r}"
    )
    return _internal_error()


async def unhandled_exception_handler(request: Request, exc: Exception):
    app_logger.exception(
        f"Unhandled error on {request.method} {request.url.path}: {exc!r}"
    )
    return _internal_error()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    # Served by Starlette's ServerErrorMiddleware; DEBUG=True would show its traceback page instead
    app.add_exception_handler(Exception, unhandled_exception_handler)

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.exceptions import AppException
from src.shared.schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(
    status_code: int, message: str, errors: list[ErrorDetail] | None = None
) -> JSONResponse:
    response = ErrorResponse(
        message=message,
        errors=errors if errors is not None else [ErrorDetail(message=message)],
    )
    return JSONResponse(status_code=status_code, content=response.model_dump())


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions."""
    errors = [ErrorDetail(field=exc.details.get("field"), message=exc.message)]
    return _error_response(exc.status_code, exc.message, errors)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query validation failures, one entry per field."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append(
            ErrorDetail(field=".".join(loc) or None, message=error.get("msg", "Invalid value"))
        )
    return _error_response(422, "Validation error", errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail) if exc.detail else "HTTP error")


def _db_error_message(exc: Exception) -> tuple[str, int]:
    """Map driver errors to a stable message. Raw text only in debug."""
    raw = str(getattr(exc, "orig", exc))
    lower = raw.lower()

    if ("does not exist" in lower or "no such" in lower) and (
        "column" in lower or "table" in lower
    ):
        # Code deployed without running migrations
        return "Database schema is out of date. Run `alembic upgrade head`.", 500
    if "foreign key" in lower:
        return "Referenced record does not exist", 409
    if "unique" in lower or "duplicate key" in lower:
        return "Record already exists", 409
    if settings.debug:
        return raw, 500
    return "Database error", 500


async def sqlalchemy_db_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    message, status_code = _db_error_message(exc)
    return _error_response(status_code, message)

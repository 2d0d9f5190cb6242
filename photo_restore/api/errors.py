"""Error response formatting: every failure is rendered as {"error": message}"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from photo_restore.services.errors import (
    FolderCycleError,
    InvalidJobTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from photo_restore.services.restoration_client import (
    ModelTransportError,
    RestorationRefusedError,
)
from photo_restore.services.s3_service import (
    EmptyFileError,
    FileTooLargeError,
    InvalidFileTypeError,
    S3ServiceError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal server error occurred"
MODEL_ERROR_MESSAGE = "Something went wrong while processing your image. Please try again."


def create_error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """
    Create an error response

    Args:
        status_code: HTTP status code
        message: Human-readable message safe to show the client
        headers: Optional extra headers

    Returns:
        JSONResponse with {"error": message}
    """
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return create_error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return create_error_response(status.HTTP_400_BAD_REQUEST, _format_validation_error(exc))


async def bad_upload_handler(request: Request, exc: S3ServiceError) -> JSONResponse:
    return create_error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def storage_error_handler(request: Request, exc: S3ServiceError) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return create_error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
    return create_error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    return create_error_response(status.HTTP_409_CONFLICT, str(exc))


async def model_refused_handler(request: Request, exc: RestorationRefusedError) -> JSONResponse:
    return create_error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


async def model_transport_handler(request: Request, exc: ModelTransportError) -> JSONResponse:
    logger.error(f"Restoration model error on {request.method} {request.url.path}: {exc}")
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, MODEL_ERROR_MESSAGE)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Map service exceptions to status codes"""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    for bad_upload in (InvalidFileTypeError, FileTooLargeError, EmptyFileError):
        app.add_exception_handler(bad_upload, bad_upload_handler)
    app.add_exception_handler(S3ServiceError, storage_error_handler)

    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ValidationFailedError, validation_failed_handler)
    app.add_exception_handler(FolderCycleError, conflict_handler)
    app.add_exception_handler(InvalidJobTransitionError, conflict_handler)

    app.add_exception_handler(RestorationRefusedError, model_refused_handler)
    app.add_exception_handler(ModelTransportError, model_transport_handler)

    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

import logging
import traceback

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, TimeoutError as PoolTimeoutError

from pinmap.config import settings
from pinmap.utils.errors import ServiceError

logger = logging.getLogger(__name__)

_FOREIGN_KEY_MARKERS = ("foreign key", "foreign_key", "23503")


def create_response(
    message: str,
    data=None,
    status_code: int = status.HTTP_200_OK,
    status_text: str | None = None
) -> JSONResponse:
    """Return a consistent API response payload and status code."""
    payload_status = status_text or ("success" if status_code < 400 else "error")
    encoded_data = jsonable_encoder(data)
    return JSONResponse(
        status_code=status_code,
        content={
            "message": message,
            "data": encoded_data,
            "status": payload_status,
            "status_code": status_code,
        },
    )


def _integrity_response(error: IntegrityError) -> JSONResponse:
    text = str(getattr(error, "orig", error)).lower()
    if any(marker in text for marker in _FOREIGN_KEY_MARKERS):
        return create_response("Referenced resource does not exist", None, status.HTTP_400_BAD_REQUEST)
    return create_response("Resource already exists", None, status.HTTP_409_CONFLICT)


def handle_exception(error: Exception, fallback_message: str = "Internal server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, ServiceError):
        return create_response(error.message, None, error.status_code, status_text="error")

    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        return create_response(detail, None, error.status_code, status_text="error")

    if isinstance(error, IntegrityError):
        logger.warning("Constraint violation: %s", error.orig)
        return _integrity_response(error)

    if isinstance(error, PoolTimeoutError):
        logger.error("Database connection pool exhausted: %s", error)
        return create_response(
            "Database connection timeout", None, status.HTTP_503_SERVICE_UNAVAILABLE, status_text="error"
        )

    logger.exception("Unhandled error: %s", error)
    data = None
    if not settings.is_production:
        data = {
            "error": repr(error),
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
    return create_response(fallback_message, data, status.HTTP_500_INTERNAL_SERVER_ERROR, status_text="error")

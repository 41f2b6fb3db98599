import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.database import get_db
from pinmap.utils.response import create_response, handle_exception

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return create_response(
            message="OK",
            data={
                "service": "pinmap",
                "database": "ok",
                "environment": settings.ENVIRONMENT,
            },
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        return handle_exception(exc, fallback_message="Database unavailable")

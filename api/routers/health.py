import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_db
from api.schemas import HealthResponse
from sentiment_index import __version__

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["System Health"])


@router.get("", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)):
    """
    Liveness plus a database round trip.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "up"
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        database=database,
        version=__version__,
    )

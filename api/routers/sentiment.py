import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.clock import from_iso8601
from sentiment_index.exceptions import (
    AggregationError,
    IndicatorSourceError,
    PersistenceError,
)
from sentiment_index.service import SentimentService
from sentiment_index.stats import QueryStatsService
from storage.repositories import RepositoryException
from api.dependencies import get_sentiment_service, get_stats_service
from api.schemas import (
    LatestSentimentResponse,
    SentimentHistoryResponse,
    SentimentResponse,
    SentimentStatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sentiment", tags=["Sentiment"])


@router.get("", response_model=SentimentResponse)
def get_current_sentiment(service: SentimentService = Depends(get_sentiment_service)):
    """
    Compute the current sentiment index.

    A data outage yields a no_data result (200); 503 only when
    the fallback path fails as well.
    """
    try:
        result = service.calculate_current_sentiment()
    except IndicatorSourceError as e:
        logger.error(f"Sentiment unavailable: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)
    except AggregationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return SentimentResponse(data=result.to_dict())


@router.post("/refresh", response_model=SentimentResponse)
def refresh_sentiment(service: SentimentService = Depends(get_sentiment_service)):
    """
    Manual trigger: compute and append to history.
    """
    try:
        result = service.compute_and_record()
    except (IndicatorSourceError, PersistenceError) as e:
        logger.error(f"Sentiment refresh failed: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)
    except AggregationError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return SentimentResponse(data=result.to_dict(), message="Sentiment recorded")


@router.get("/history", response_model=SentimentHistoryResponse)
def get_sentiment_history(
    days: int = Query(30, le=3650),
    stats: QueryStatsService = Depends(get_stats_service),
):
    """
    Sentiment series for the last `days` days, oldest first.
    """
    try:
        points = stats.get_history(days)
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    return SentimentHistoryResponse(data=[p.to_dict() for p in points])


@router.get("/stats", response_model=SentimentStatsResponse)
def get_sentiment_stats(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    stats: QueryStatsService = Depends(get_stats_service),
):
    """
    Summary statistics between two ISO dates (default: last 30 days).
    """
    try:
        start = from_iso8601(start_date) if start_date else None
        end = from_iso8601(end_date) if end_date else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date: {e}")

    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    try:
        summary = stats.get_aggregated_stats(start, end)
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    if summary is None:
        return SentimentStatsResponse(data=None, message="No sentiment history in range")
    return SentimentStatsResponse(data=summary.to_dict())


@router.get("/latest", response_model=LatestSentimentResponse)
def get_latest_sentiment(stats: QueryStatsService = Depends(get_stats_service)):
    """
    Most recently recorded sentiment.
    """
    try:
        latest = stats.get_latest()
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    if latest is None:
        raise HTTPException(status_code=404, detail="No sentiment recorded yet.")
    return LatestSentimentResponse(data=latest)

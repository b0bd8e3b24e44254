import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, ensure_utc, from_iso8601, to_iso8601
from sentiment_index.config import SentimentIndexConfig
from sentiment_index.types import IndicatorType
from storage.models.market_data import MarketDataRecord
from storage.repositories import MarketDataRepository, RepositoryException
from api.dependencies import get_clock, get_config, get_db
from api.schemas import (
    MarketDataLatestResponse,
    MarketDataQueryResponse,
    MarketDataStatisticsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/market-data", tags=["Market Data"])


def _parse_type(indicator_type: str) -> IndicatorType:
    try:
        return IndicatorType.parse(indicator_type)
    except ValueError:
        valid = ", ".join(t.value for t in IndicatorType.all_types())
        raise HTTPException(
            status_code=400,
            detail=f"Unknown indicator type '{indicator_type}' (expected one of: {valid})",
        )


def _to_reading(
    record: MarketDataRecord,
    clock: ClockProtocol,
    config: SentimentIndexConfig,
) -> dict:
    minutes_old = clock.minutes_since(record.created_at)
    return {
        "id": record.id,
        "data_type": record.data_type,
        "source": record.source,
        "raw_data": record.raw_data,
        "normalized_value": record.normalized_value,
        "is_valid": record.is_valid,
        "error_message": record.error_message,
        "trading_date": record.trading_date,
        "created_at": to_iso8601(ensure_utc(record.created_at)),
        "minutes_old": minutes_old,
        "is_fresh": minutes_old < config.fresh_minutes,
    }


@router.get("/latest/{indicator_type}", response_model=MarketDataLatestResponse)
def get_latest_data_by_type(
    indicator_type: str,
    max_age_minutes: int = Query(60, gt=0),
    db: Session = Depends(get_db),
    clock: ClockProtocol = Depends(get_clock),
    config: SentimentIndexConfig = Depends(get_config),
):
    """
    Latest valid reading of one indicator no older than max_age_minutes.
    """
    parsed = _parse_type(indicator_type)
    since = clock.now() - timedelta(minutes=max_age_minutes)

    try:
        record = MarketDataRepository(db).get_latest_valid(parsed.value, since)
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    if record is None:
        return MarketDataLatestResponse(
            data=None,
            message=f"No valid {parsed.value} reading in the last {max_age_minutes} minutes",
        )
    return MarketDataLatestResponse(data=_to_reading(record, clock, config))


@router.get("/query", response_model=MarketDataQueryResponse)
def query_market_data(
    data_type: Optional[str] = None,
    source: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: int = Query(100, gt=0, le=1000),
    only_valid: bool = True,
    db: Session = Depends(get_db),
    clock: ClockProtocol = Depends(get_clock),
    config: SentimentIndexConfig = Depends(get_config),
):
    """
    Filtered market data listing, newest first.
    """
    parsed = _parse_type(data_type).value if data_type else None
    try:
        start = from_iso8601(start_date) if start_date else None
        end = from_iso8601(end_date) if end_date else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date: {e}")

    try:
        records = MarketDataRepository(db).query(
            data_type=parsed,
            source=source,
            start_time=start,
            end_time=end,
            limit=limit,
            only_valid=only_valid,
        )
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    return MarketDataQueryResponse(data=[_to_reading(r, clock, config) for r in records])


@router.get("/statistics", response_model=MarketDataStatisticsResponse)
def get_market_data_statistics(
    data_type: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: ClockProtocol = Depends(get_clock),
):
    """
    Record counts, optionally for one indicator type.
    """
    parsed = _parse_type(data_type).value if data_type else None

    try:
        stats = MarketDataRepository(db).get_statistics(clock.trading_date(), data_type=parsed)
    except RepositoryException as e:
        raise HTTPException(status_code=503, detail=e.message)

    return MarketDataStatisticsResponse(data=stats)

"""
Pydantic schemas for the sentiment API responses.

Scores and indicator values use -1 for "no data" on the wire.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)


# =======================
# 1. SENTIMENT
# =======================

class SentimentData(BaseModel):
    score: int  # 0-100, -1 when no data
    status: str
    color: str
    action: str
    indicators: Dict[str, float]
    calculation_details: Dict[str, Any]
    timestamp: str

class SentimentResponse(BaseResponse):
    data: SentimentData

class HistoryPointData(BaseModel):
    date: str  # trading date, YYYY-MM-DD
    captured_at: str
    score: int
    status: str

class SentimentHistoryResponse(BaseResponse):
    data: List[HistoryPointData]

class SentimentStatsResponse(BaseResponse):
    data: Optional[Dict[str, Any]] = None  # None when the range is empty

class RecordedSentimentData(BaseModel):
    id: int
    score: int
    status: str
    color: Optional[str] = None
    action: Optional[str] = None
    indicators: Dict[str, Any]
    calculation_details: Dict[str, Any]
    method: str
    trading_date: str
    created_at: str

class LatestSentimentResponse(BaseResponse):
    data: RecordedSentimentData


# =======================
# 2. MARKET DATA
# =======================

class MarketDataReading(BaseModel):
    id: int
    data_type: str
    source: str
    raw_data: Optional[Dict[str, Any]] = None
    normalized_value: Optional[float] = None
    is_valid: bool
    error_message: Optional[str] = None
    trading_date: str
    created_at: str
    minutes_old: int
    is_fresh: bool

class MarketDataLatestResponse(BaseResponse):
    data: Optional[MarketDataReading] = None

class MarketDataQueryResponse(BaseResponse):
    data: List[MarketDataReading]

class MarketDataStatistics(BaseModel):
    total_records: int
    valid_records: int
    today_records: int
    source_distribution: Dict[str, int]

class MarketDataStatisticsResponse(BaseResponse):
    data: MarketDataStatistics


# =======================
# 3. HEALTH
# =======================

class HealthResponse(BaseModel):
    status: str  # ok, degraded
    database: str  # up, down
    version: str
    timestamp: datetime = Field(default_factory=_utc_now)

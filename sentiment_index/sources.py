"""
Sentiment Index - Indicator Sources.

============================================================
PURPOSE
============================================================
An indicator source supplies the engine with the latest
usable value of each indicator. The engine runs one pipeline;
switching to degraded mode means passing a different source.

============================================================
SOURCES
============================================================
StoreIndicatorSource (primary)
    Stored normalized values of the latest valid readings.
    Any store failure raises IndicatorSourceError.

RawPayloadIndicatorSource (fallback)
    Pulls each indicator separately and re-normalizes its raw
    payload. A failed lookup only drops that indicator; the
    source fails only when every lookup failed.

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import ensure_utc
from storage.models.market_data import MarketDataRecord
from storage.repositories import MarketDataRepository, RepositoryException
from .exceptions import IndicatorSourceError
from .normalizer import IndicatorNormalizer
from .types import ComputationMethod, IndicatorReading, IndicatorType, IndicatorValue


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourcedIndicator:
    """Value of one indicator plus the capture time of its reading."""

    value: IndicatorValue
    captured_at: Optional[datetime] = None


def reading_from_record(record: MarketDataRecord) -> IndicatorReading:
    """Convert a stored market data row to an IndicatorReading."""
    return IndicatorReading(
        indicator_type=IndicatorType.parse(record.data_type),
        raw_value=record.raw_data,
        normalized_value=record.normalized_value,
        source=record.source,
        trading_date=record.trading_date,
        captured_at=ensure_utc(record.created_at),
        valid=record.is_valid,
        error_message=record.error_message,
    )


class IndicatorSource(ABC):
    """Provider of indicator values for one computation."""

    name: str = "abstract"
    method: ComputationMethod = ComputationMethod.PRIMARY

    @abstractmethod
    def fetch(
        self,
        indicator_types: Iterable[IndicatorType],
        since: datetime,
    ) -> Dict[IndicatorType, SourcedIndicator]:
        """
        Latest value of each requested indicator captured after `since`.

        Indicators without a usable reading are returned absent.

        Raises:
            IndicatorSourceError: If the backing store cannot be read
        """
        pass


# ============================================================
# PRIMARY SOURCE
# ============================================================


class StoreIndicatorSource(IndicatorSource):
    """Reads stored normalized values from the market data store."""

    name = "market_data_store"
    method = ComputationMethod.PRIMARY

    def __init__(self, session: Session) -> None:
        self._repository = MarketDataRepository(session)

    def fetch(
        self,
        indicator_types: Iterable[IndicatorType],
        since: datetime,
    ) -> Dict[IndicatorType, SourcedIndicator]:
        result: Dict[IndicatorType, SourcedIndicator] = {}

        for indicator_type in indicator_types:
            try:
                record = self._repository.get_latest_valid(indicator_type.value, since)
            except (RepositoryException, SQLAlchemyError) as e:
                raise IndicatorSourceError(
                    f"Failed to read {indicator_type.value}: {e}",
                    source_name=self.name,
                    context={"indicator_type": indicator_type.value},
                ) from e

            if record is None:
                logger.warning(f"{indicator_type.value} has no valid reading since {since.isoformat()}")
                result[indicator_type] = SourcedIndicator(IndicatorValue.absent("missing"))
                continue

            result[indicator_type] = SourcedIndicator(
                value=IndicatorValue.coerce(record.normalized_value),
                captured_at=ensure_utc(record.created_at),
            )

        return result


# ============================================================
# FALLBACK SOURCE
# ============================================================


class RawPayloadIndicatorSource(IndicatorSource):
    """
    Re-normalizes raw payloads, one indicator at a time.

    Uses the same normalizer (and therefore the same bounds) as
    the collection layer, so primary and fallback scores are
    comparable.
    """

    name = "raw_payload"
    method = ComputationMethod.FALLBACK

    def __init__(self, session: Session, normalizer: IndicatorNormalizer) -> None:
        self._session = session
        self._repository = MarketDataRepository(session)
        self._normalizer = normalizer

    def fetch(
        self,
        indicator_types: Iterable[IndicatorType],
        since: datetime,
    ) -> Dict[IndicatorType, SourcedIndicator]:
        requested = list(indicator_types)
        result: Dict[IndicatorType, SourcedIndicator] = {}
        failures: Dict[str, str] = {}

        for indicator_type in requested:
            try:
                record = self._repository.get_latest_valid(indicator_type.value, since)
            except (RepositoryException, SQLAlchemyError) as e:
                logger.warning(f"Fallback lookup failed for {indicator_type.value}: {e}")
                self._session.rollback()
                failures[indicator_type.value] = str(e)
                result[indicator_type] = SourcedIndicator(IndicatorValue.absent("source_error"))
                continue

            if record is None:
                result[indicator_type] = SourcedIndicator(IndicatorValue.absent("missing"))
                continue

            if record.raw_data is not None:
                value = self._normalizer.normalize(indicator_type, record.raw_data)
            else:
                value = IndicatorValue.coerce(record.normalized_value)

            result[indicator_type] = SourcedIndicator(
                value=value,
                captured_at=ensure_utc(record.created_at),
            )

        if requested and len(failures) == len(requested):
            raise IndicatorSourceError(
                "Every fallback lookup failed",
                source_name=self.name,
                context={"failures": failures},
            )

        return result


# ============================================================
# IN-MEMORY SOURCE
# ============================================================


class StaticIndicatorSource(IndicatorSource):
    """
    Fixed values, for ad hoc computation and tests.

    Values may be IndicatorValue instances or raw numbers (coerced).
    """

    name = "static"

    def __init__(
        self,
        values: Dict[IndicatorType, object],
        captured_at: Optional[datetime] = None,
        method: ComputationMethod = ComputationMethod.PRIMARY,
    ) -> None:
        self._values = {
            IndicatorType.parse(k): v if isinstance(v, IndicatorValue) else IndicatorValue.coerce(v)
            for k, v in values.items()
        }
        self._captured_at = captured_at
        self.method = method

    def fetch(
        self,
        indicator_types: Iterable[IndicatorType],
        since: datetime,
    ) -> Dict[IndicatorType, SourcedIndicator]:
        result = {}
        for indicator_type in indicator_types:
            value = self._values.get(indicator_type, IndicatorValue.absent("missing"))
            captured_at = self._captured_at if value.is_present else None
            result[indicator_type] = SourcedIndicator(value, captured_at)
        return result

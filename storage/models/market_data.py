"""
Market Data ORM Model.

============================================================
PURPOSE
============================================================
Raw indicator observations written by the collection layer
and read by the sentiment engine through the market data
store.

============================================================
DATA LIFECYCLE
============================================================
- Stage: RAW
- Mutability: APPEND-ONLY (updated_at exists for admin fixes)
- Failed collections are stored too, with is_valid = False

============================================================
"""

from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Float, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, TimestampMixin


class MarketDataRecord(Base, TimestampMixin):
    """
    One collected indicator observation.

    ============================================================
    WHAT IT STORES
    ============================================================
    - Indicator type (volatility, breadth, volume, margin, foreign)
    - Raw provider payload (JSON)
    - Normalized value in [0, 1], NULL when unavailable
    - Validity flag and error message for failed collections
    - Trading date bucket

    ============================================================
    """

    __tablename__ = "market_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    data_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Indicator type",
    )

    raw_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Provider payload as collected",
    )

    normalized_value: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Normalized value (0-1)",
    )

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Data source identifier",
    )

    is_valid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether collection succeeded",
    )

    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    trading_date: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Trading date (YYYY-MM-DD, market timezone)",
    )

    __table_args__ = (
        Index("ix_market_data_type_created", "data_type", "created_at"),
        Index("ix_market_data_source_created", "source", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"MarketDataRecord("
            f"id={self.id}, "
            f"type={self.data_type}, "
            f"value={self.normalized_value}, "
            f"valid={self.is_valid})"
        )

"""
Sentiment History ORM Model.

============================================================
PURPOSE
============================================================
Append-only snapshots of computed sentiment results, kept
for audit and backtesting.

One row per aggregation run; several rows per trading date
are expected (the scheduler runs every 10 minutes).

============================================================
"""

from typing import Any, Dict, Optional

from sqlalchemy import Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, CreatedAtMixin


class SentimentHistoryRecord(Base, CreatedAtMixin):
    """
    Persisted snapshot of one sentiment computation.

    ============================================================
    WHAT IT STORES
    ============================================================
    - Composite score (NULL for no_data results)
    - Status, color and action advice
    - Normalized indicator snapshot (JSON)
    - Full calculation details (JSON)
    - Computation method (primary / fallback)
    - Trading date bucket

    ============================================================
    """

    __tablename__ = "sentiment_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    score: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Sentiment score (0-100), NULL when no data",
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    action: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    indicators: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Normalized indicator snapshot",
    )

    calculation_details: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Weights, sums and freshness used for the score",
    )

    method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="primary",
    )

    trading_date: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Trading date (YYYY-MM-DD, market timezone)",
    )

    __table_args__ = (
        Index("ix_sentiment_history_created_at", "created_at"),
        Index("ix_sentiment_history_trading_date", "trading_date"),
    )

    def __repr__(self) -> str:
        return (
            f"SentimentHistoryRecord("
            f"id={self.id}, "
            f"score={self.score}, "
            f"status={self.status}, "
            f"date={self.trading_date})"
        )

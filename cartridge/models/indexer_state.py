"""
Indexer State model.

Tracks the block-scan progress cursor.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cartridge.models.base import Base


class IndexerState(Base):
    """
    Tracks block-scan synchronization state.

    Used to:
    - Resume scanning after restart
    - Record the last error seen by the scanner
    """

    __tablename__ = "indexer_state"

    # Cursor name (block_scan)
    name: Mapped[str] = mapped_column(String(50), primary_key=True)

    # Highest height whose processing attempt completed
    last_indexed_height: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

"""
Chunk model.

Stores one decoded fragment of an artifact, keyed by (game_id, idx).
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Index,
    LargeBinary,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from cartridge.models.base import Base


class Chunk(Base):
    """
    Artifact chunk recovered from a transaction payload.

    At most one row exists per (game_id, idx); a later observation of the
    same key replaces the earlier one.
    """

    __tablename__ = "chunks"

    # Composite primary key
    game_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    idx: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )

    # Payload
    length: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    # Provenance
    tx_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    height: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

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

    __table_args__ = (
        Index("ix_chunks_game_tx_hash", "game_id", "tx_hash"),
        Index("ix_chunks_height", "height"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Chunk(game_id={self.game_id}, idx={self.idx}, "
            f"len={self.length}, tx={self.tx_hash[:16]}...)>"
        )

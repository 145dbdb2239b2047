from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class PersonRow(Base):
    """Roster table. Reference data, seeded once."""

    __tablename__ = "persons"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)


class BlockRow(Base):
    """Time blocks.

    Stores:
    - start_text/end_text: ISO-8601 text exactly as accepted from the caller
    - starts_at/ends_at: naive UTC instants derived from the text, used for range queries
    """

    __tablename__ = "blocks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    person_id: Mapped[str] = mapped_column(String, ForeignKey("persons.id"), nullable=False, index=True)
    start_text: Mapped[str] = mapped_column(String, nullable=False)
    end_text: Mapped[str] = mapped_column(String, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("idx_blocks_range", "starts_at", "ends_at"),)


class HistoryRow(Base):
    """Append-only change log, trimmed to a retention size by the store."""

    __tablename__ = "history"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actor_person_id: Mapped[str] = mapped_column(String, nullable=False)
    target_person_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)

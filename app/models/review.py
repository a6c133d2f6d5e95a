"""Persisted Google review."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, new_id, utcnow
from app.models.enums import ReviewSource


class Review(Base):
    """A single review; immutable once inserted."""

    __tablename__ = "review"
    __table_args__ = (
        UniqueConstraint("store_id", "source_review_id", name="uq_review_store_source_id"),
        Index("ix_review_store_created", "store_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    store_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("store.id", ondelete="CASCADE"), nullable=False
    )
    source: Mapped[str] = mapped_column(String(16), nullable=False, default=ReviewSource.GOOGLE.value)
    # "<store_id>_<publish unix time>_<author name>", the ingestion idempotency key
    source_review_id: Mapped[str] = mapped_column(String(512), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    text: Mapped[Optional[str]] = mapped_column(Text)
    author_name: Mapped[Optional[str]] = mapped_column(String(255))
    # Original posting time (UTC), not ingestion time.
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    review_url: Mapped[Optional[str]] = mapped_column(String(2048))
    raw_payload: Mapped[Optional[str]] = mapped_column(Text)
    ingested_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    store: Mapped["Store"] = relationship("Store", back_populates="reviews")

"""Per-store ingestion attempt log."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, new_id, utcnow
from app.models.enums import FetchStatus


class FetchLog(Base):
    """RUNNING -> SUCCESS | ERROR; written for observability only."""

    __tablename__ = "fetch_log"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    store_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("store.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=FetchStatus.RUNNING.value)
    message: Mapped[Optional[str]] = mapped_column(Text)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    store: Mapped["Store"] = relationship("Store", back_populates="fetch_logs")

"""Store (physical shop location) model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, new_id, utcnow


class Store(Base):
    """One retail location; owns its reviews and fetch logs."""

    __tablename__ = "store"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(32), nullable=False, index=True, comment="Brand enum value")
    store_type: Mapped[str] = mapped_column(String(32), nullable=False, default="DIRECT")
    place_id: Mapped[Optional[str]] = mapped_column(String(255))
    google_maps_url: Mapped[Optional[str]] = mapped_column(String(1024))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    reviews: Mapped[list["Review"]] = relationship("Review", back_populates="store")
    fetch_logs: Mapped[list["FetchLog"]] = relationship("FetchLog", back_populates="store")

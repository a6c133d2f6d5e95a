"""ORM model exports for convenient imports elsewhere in the app."""

from app.models.base import Base
from app.models.enums import Brand, FetchStatus, Granularity, ReviewSource
from app.models.fetch_log import FetchLog
from app.models.review import Review
from app.models.store import Store

__all__ = [
    "Base",
    "Brand",
    "FetchLog",
    "FetchStatus",
    "Granularity",
    "Review",
    "ReviewSource",
    "Store",
]

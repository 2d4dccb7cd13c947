from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class VersionMixin:
    """Optimistic concurrency counter; bumped on every accepted change."""

    version = Column(Integer, nullable=False, default=1)

"""
Shared columns for every table: a UUID primary key plus creation and
modification times. Listings order by ``created_at``.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Uuid, func

from app.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Python-side defaults keep ordering stable on SQLite, where
    # server_default only has second resolution
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"

from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, String, Text

from app.db.db import Base


def _utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class StorageSlot(Base):
    """One key-value slot; the account blob lives under a single fixed key."""
    __tablename__ = "storage_slot"
    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_utc_now_naive, onupdate=_utc_now_naive, nullable=False)

"""Sync log: one row per accounting sync run."""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class SyncLog(Base):
    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_type = Column(String(50), nullable=False)  # full, today, items, scheduled
    records_processed = Column(Integer, default=0)
    records_skipped = Column(Integer, default=0)
    status = Column(String(50), nullable=False)  # success, partial_success, failed
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<SyncLog {self.sync_type} - {self.status}>"

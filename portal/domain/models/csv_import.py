"""CSV import history: one row per file loaded into a dynamic table."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class CsvImport(Base):
    __tablename__ = "csv_imports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(200), nullable=False, index=True)
    original_name = Column(String(500), nullable=False)
    row_count = Column(Integer, default=0)
    columns = Column(Text, nullable=True)  # comma-joined headers
    uploaded_by = Column(String(200), nullable=True)
    status = Column(String(50), default="processing")  # processing, completed, failed
    error_message = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<CsvImport {self.original_name} -> {self.table_name} ({self.row_count} rows)>"

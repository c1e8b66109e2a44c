"""Pydantic schemas for CSV imports."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class CsvPreview(BaseModel):
    table_name: str
    headers: list[str]
    row_count: int
    rows: list[dict[str, Any]]


class CsvImportResult(BaseModel):
    import_id: int
    table_name: str
    row_count: int
    columns: list[str]
    status: str


class CsvImportRead(BaseModel):
    id: int
    table_name: str
    original_name: str
    row_count: int = 0
    columns: Optional[str] = None
    uploaded_by: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

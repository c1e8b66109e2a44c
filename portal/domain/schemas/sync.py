"""Pydantic schemas for the accounting sync."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SyncLogRead(BaseModel):
    id: int
    sync_type: str
    records_processed: int = 0
    records_skipped: int = 0
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SyncResult(BaseModel):
    sync_type: str
    status: str
    records_seen: int = 0
    records_imported: int = 0
    records_skipped: int = 0
    lines_inserted: int = 0
    errors: list[str] = []
    log_id: Optional[int] = None


class SyncStatus(BaseModel):
    configured: bool
    invoice_lines: int
    invoices: int
    products: int
    unique_clients: int
    last_sync: Optional[SyncLogRead] = None

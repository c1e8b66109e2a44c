"""Pydantic schemas for the product catalog."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProductRead(BaseModel):
    id: int
    item_id: Optional[str] = None
    item_name: str
    category: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductImportResult(BaseModel):
    created: int
    updated: int
    skipped: int
    row_count: int

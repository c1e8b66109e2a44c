"""Pydantic schemas for product catalogues."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CatalogueRead(BaseModel):
    id: int
    title: str
    file_name: str
    file_url: str
    file_size: int
    uploaded_by: Optional[int] = None
    uploaded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CatalogueCount(BaseModel):
    count: int

"""Pydantic schemas for invoice lines and purchase history."""

import datetime as dt
from typing import Optional

from pydantic import BaseModel


class InvoiceLineRead(BaseModel):
    id: int
    invoice_id: Optional[str] = None
    client_name: Optional[str] = None
    date: Optional[dt.date] = None
    product: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}


class LineSummary(BaseModel):
    total_spent: float = 0.0
    total_orders: int = 0
    total_items: float = 0.0
    most_recent_order: Optional[dt.date] = None


class PurchaseItem(BaseModel):
    id: Optional[int] = None
    invoice_id: Optional[str] = None
    date: Optional[dt.date] = None
    product: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    category: str
    total: float


class InvoiceGroup(BaseModel):
    invoice_id: str
    client_name: Optional[str] = None
    date: Optional[dt.date] = None
    items: list[PurchaseItem]
    total: float


class PurchaseFilter(BaseModel):
    date: Optional[dt.date] = None
    product: Optional[str] = None
    category: Optional[str] = None


class PurchaseHistory(BaseModel):
    client_name: str
    invoices: list[InvoiceGroup]
    summary: LineSummary
    categories: list[str]

"""Pydantic schemas for analytics reports, the query box and smart alerts."""

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Timeframe = Literal["all", "30d", "90d", "1y"]


class KPIs(BaseModel):
    total_revenue: float
    total_orders: int
    total_invoices: int
    average_order_value: float
    unique_clients: int
    total_items: float
    top_category: str
    currency: str = "MAD"


class ClientRevenue(BaseModel):
    name: str
    revenue: float


class MonthlyRevenue(BaseModel):
    month: str
    revenue: float
    orders: int
    avg_order: float
    top_clients: list[ClientRevenue]


class TopClient(BaseModel):
    client: str
    total_sales: float
    order_count: int
    avg_order: float
    last_order: Optional[date] = None
    recent_products: list[str]


class StatusCustomer(BaseModel):
    name: str
    order_count: int
    total_revenue: float


class StatusBucket(BaseModel):
    status: str
    count: int
    revenue: float
    customers: list[StatusCustomer]


class CategoryPerformance(BaseModel):
    category: str
    revenue: float
    quantity: float
    items_count: int
    products: list[str]


class CustomerSegment(BaseModel):
    segment: str
    count: int
    revenue: float
    avg_order: float


class AnalyticsReport(BaseModel):
    timeframe: Timeframe
    kpis: KPIs
    monthly_revenue: list[MonthlyRevenue]
    top_clients: list[TopClient]
    status_distribution: list[StatusBucket]
    category_performance: list[CategoryPerformance]
    customer_segments: list[CustomerSegment]


class QueryRequest(BaseModel):
    question: str = Field(min_length=1, max_length=500)

    @field_validator("question")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question must not be blank")
        return v.strip()


class QueryResult(BaseModel):
    type: Literal["chart", "table", "metric", "text"]
    title: str
    data: Any = None
    interpretation: str


class Alert(BaseModel):
    id: str
    type: Literal["opportunity", "warning", "insight", "action_required"]
    priority: Literal["high", "medium", "low"]
    category: str
    title: str
    description: str
    action_items: list[str]
    data: dict[str, Any] = {}


class AlertsResponse(BaseModel):
    generated_at: date
    total: int
    by_priority: dict[str, int]
    alerts: list[Alert]

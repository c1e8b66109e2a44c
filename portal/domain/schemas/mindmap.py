"""Pydantic schemas for the invoice mind map."""

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel


class Position(BaseModel):
    x: float
    y: float


class MindMapNode(BaseModel):
    id: str
    kind: Literal["root", "client", "category", "product"]
    label: str
    position: Position
    width: int
    height: int
    background: str
    border: str
    expanded: bool = False
    data: dict[str, Any] = {}


class MindMapEdge(BaseModel):
    id: str
    source: str
    target: str
    color: str


class MindMapStats(BaseModel):
    total_clients: int
    total_orders: int
    total_revenue: float


class MindMap(BaseModel):
    nodes: list[MindMapNode]
    edges: list[MindMapEdge]
    stats: MindMapStats


class MindMapFilter(BaseModel):
    clients: list[str] = []
    products: list[str] = []
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class MindMapFilterOptions(BaseModel):
    clients: list[str]
    products: list[str]

"""Mind map API: radial client/category/product graph of invoice lines."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from portal.interfaces.api.deps import require_admin
from portal.interfaces.deps import get_invoice_repository, get_product_repository
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.models.user import User
from portal.domain.schemas.mindmap import MindMap, MindMapFilterOptions
from portal.application.services.mindmap_service import DEFAULT_HEIGHT, DEFAULT_WIDTH, build_mindmap

router = APIRouter(prefix="/api/mindmap", tags=["Mind Map"])


@router.get("", response_model=MindMap)
def get_mindmap(
    clients: Optional[List[str]] = Query(None),
    products: Optional[List[str]] = Query(None),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    expanded: Optional[List[str]] = Query(None),
    width: int = Query(DEFAULT_WIDTH, ge=200, le=10000),
    height: int = Query(DEFAULT_HEIGHT, ge=200, le=10000),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(require_admin),
):
    """Nodes and edges for the filtered lines.

    `expanded` lists the node ids currently open; omitted means only the root.
    """
    lines = invoice_repo.list_filtered(
        clients=clients,
        products=products,
        date_from=date_from,
        date_to=date_to,
    )
    return build_mindmap(lines, product_repo.list_catalog(), expanded=expanded, width=width, height=height)


@router.get("/filters", response_model=MindMapFilterOptions)
def get_filter_options(
    q: Optional[str] = None,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    user: User = Depends(require_admin),
):
    return MindMapFilterOptions(
        clients=invoice_repo.distinct_clients(q),
        products=invoice_repo.distinct_products(q),
    )

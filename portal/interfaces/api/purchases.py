"""Purchase history API: a client's invoices with item filters."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends

from portal.interfaces.api.deps import get_current_user
from portal.interfaces.deps import get_invoice_repository, get_product_repository
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.models.user import User
from portal.domain.schemas.invoice import PurchaseFilter, PurchaseHistory
from portal.application.services.purchase_service import get_purchase_history

router = APIRouter(prefix="/api/purchases", tags=["Purchases"])


@router.get("", response_model=PurchaseHistory)
def list_purchases(
    date: Optional[dt.date] = None,
    product: Optional[str] = None,
    category: Optional[str] = None,
    client: Optional[str] = None,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(get_current_user),
):
    """Clients always see their own lines; admins may look up any client by name."""
    client_name = client if user.is_admin and client else user.name
    filters = PurchaseFilter(date=date, product=product, category=category)
    return get_purchase_history(client_name, invoice_repo, product_repo, filters)

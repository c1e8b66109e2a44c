"""Sync API routes: Zoho Books invoice/item imports and sync history."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.interfaces.api.deps import require_admin
from portal.interfaces.deps import (
    get_db,
    get_invoice_repository,
    get_product_repository,
    get_zoho_client,
)
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.models.user import User
from portal.domain.schemas.sync import SyncLogRead, SyncResult, SyncStatus
from portal.infrastructure.zoho_client import ZohoBooksClient
from portal.application.services import sync_service

router = APIRouter(prefix="/api/sync", tags=["Sync"])


@router.get("/status", response_model=SyncStatus)
def sync_status(
    db: Session = Depends(get_db),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    client: ZohoBooksClient = Depends(get_zoho_client),
    user: User = Depends(require_admin),
):
    return sync_service.get_status(db, invoice_repo, product_repo, client)


@router.get("/logs", response_model=list[SyncLogRead])
def sync_logs(
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return sync_service.list_logs(db, limit=limit)


@router.post("/invoices", response_model=SyncResult)
async def sync_invoices(
    date_start: Optional[date] = None,
    date_end: Optional[date] = None,
    db: Session = Depends(get_db),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    client: ZohoBooksClient = Depends(get_zoho_client),
    user: User = Depends(require_admin),
):
    return await sync_service.sync_invoices(
        db, invoice_repo, client, sync_type="full", date_start=date_start, date_end=date_end
    )


@router.post("/today", response_model=SyncResult)
async def sync_today(
    db: Session = Depends(get_db),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    client: ZohoBooksClient = Depends(get_zoho_client),
    user: User = Depends(require_admin),
):
    return await sync_service.sync_today(db, invoice_repo, client)


@router.post("/items", response_model=SyncResult)
async def sync_items(
    db: Session = Depends(get_db),
    product_repo: ProductRepository = Depends(get_product_repository),
    client: ZohoBooksClient = Depends(get_zoho_client),
    user: User = Depends(require_admin),
):
    return await sync_service.sync_items(db, product_repo, client)

"""Products API routes: catalog listing, categories and spreadsheet import."""

import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from portal.interfaces.api.deps import get_current_user, require_admin
from portal.interfaces.api.uploads import save_upload
from portal.interfaces.deps import get_product_repository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.models.user import User
from portal.domain.schemas.product import ProductImportResult, ProductRead
from portal.application.services.product_service import import_products

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=list[ProductRead])
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(get_current_user),
):
    return repo.search(search=search, category=category, skip=skip, limit=limit)


@router.get("/categories", response_model=list[str])
def list_categories(
    repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(get_current_user),
):
    return repo.list_categories()


@router.post("/import", response_model=ProductImportResult)
async def import_catalog(
    file: UploadFile = File(...),
    repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(require_admin),
):
    """Upsert the product catalog from a Zoho items export (.xlsx or .csv)."""
    file_path = await save_upload(file, ("xlsx", "csv"))
    try:
        return import_products(file_path, file.filename, repo)
    finally:
        os.remove(file_path)

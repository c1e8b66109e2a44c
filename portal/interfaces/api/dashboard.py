"""Dashboard API: navigation tiles and counters per role."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.interfaces.api.deps import get_current_user, require_admin
from portal.interfaces.deps import (
    get_catalogue_repository,
    get_db,
    get_forum_repository,
    get_invoice_repository,
)
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.domain.repositories.forum_repository import ForumRepository
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.models.user import User
from portal.application.services.dashboard_service import admin_dashboard, client_dashboard

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("")
def get_dashboard(
    db: Session = Depends(get_db),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    forum_repo: ForumRepository = Depends(get_forum_repository),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repository),
    user: User = Depends(get_current_user),
):
    """Dashboard matching the caller's role."""
    if user.is_admin:
        return admin_dashboard(db, user, invoice_repo, forum_repo, catalogue_repo)
    return client_dashboard(user, invoice_repo, forum_repo, catalogue_repo)


@router.get("/admin")
def get_admin_dashboard(
    db: Session = Depends(get_db),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    forum_repo: ForumRepository = Depends(get_forum_repository),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repository),
    user: User = Depends(require_admin),
):
    return admin_dashboard(db, user, invoice_repo, forum_repo, catalogue_repo)


@router.get("/client")
def get_client_dashboard(
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    forum_repo: ForumRepository = Depends(get_forum_repository),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repository),
    user: User = Depends(get_current_user),
):
    return client_dashboard(user, invoice_repo, forum_repo, catalogue_repo)

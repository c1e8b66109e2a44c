"""
API Dependencies: repository providers.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from portal.infrastructure.database import get_db
from portal.domain.models.catalogue import ProductCatalogue
from portal.domain.models.forum import ForumPost
from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.models.product import Product
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.domain.repositories.forum_repository import ForumRepository
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.infrastructure.repositories.catalogue_repository import SQLAlchemyCatalogueRepository
from portal.infrastructure.repositories.forum_repository import SQLAlchemyForumRepository
from portal.infrastructure.repositories.invoice_repository import SQLAlchemyInvoiceRepository
from portal.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
from portal.infrastructure.zoho_client import ZohoBooksClient


def get_invoice_repository(db: Session = Depends(get_db)) -> InvoiceRepository:
    """Get invoice line repository instance."""
    return SQLAlchemyInvoiceRepository(db, InvoiceLine)


def get_product_repository(db: Session = Depends(get_db)) -> ProductRepository:
    """Get product catalog repository instance."""
    return SQLAlchemyProductRepository(db, Product)


def get_forum_repository(db: Session = Depends(get_db)) -> ForumRepository:
    return SQLAlchemyForumRepository(db, ForumPost)


def get_catalogue_repository(db: Session = Depends(get_db)) -> CatalogueRepository:
    return SQLAlchemyCatalogueRepository(db, ProductCatalogue)


def get_zoho_client() -> ZohoBooksClient:
    """Zoho Books client built from settings."""
    return ZohoBooksClient()

"""
SQLAlchemy Implementation of the Product Catalogue Repository.
"""

from typing import List

from portal.domain.models.catalogue import ProductCatalogue
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyCatalogueRepository(SQLAlchemyRepository[ProductCatalogue], CatalogueRepository):
    """Catalogue repository implementation using SQLAlchemy."""

    def list_recent(self) -> List[ProductCatalogue]:
        return (
            self.db.query(ProductCatalogue)
            .order_by(ProductCatalogue.uploaded_at.desc(), ProductCatalogue.id.desc())
            .all()
        )

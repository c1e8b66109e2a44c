"""
Product Catalogue Repository Interface.
"""

from typing import List

from portal.domain.repositories.base import BaseRepository
from portal.domain.models.catalogue import ProductCatalogue


class CatalogueRepository(BaseRepository[ProductCatalogue]):
    """Interface for catalogue metadata."""

    def list_recent(self) -> List[ProductCatalogue]:
        """All catalogues, most recently uploaded first."""
        ...

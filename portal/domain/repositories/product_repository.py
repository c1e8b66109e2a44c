"""
Product Catalog Repository Interface.
"""

from typing import List, Optional

from portal.domain.repositories.base import BaseRepository
from portal.domain.models.product import Product


class ProductRepository(BaseRepository[Product]):
    """Interface for product catalog operations."""

    def list_catalog(self) -> List[Product]:
        """Whole catalog in insertion order, used for category resolution."""
        ...

    def search(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Product]:
        ...

    def list_categories(self) -> List[str]:
        ...

    def upsert(self, item_name: str, category: Optional[str], item_id: Optional[str] = None) -> bool:
        """Insert or update an entry keyed by item id (or name). Returns True when created."""
        ...

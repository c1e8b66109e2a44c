"""
SQLAlchemy Implementation of the Product Catalog Repository.
"""

from typing import List, Optional

from sqlalchemy import func

from portal.domain.models.product import Product
from portal.domain.repositories.product_repository import ProductRepository
from portal.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyProductRepository(SQLAlchemyRepository[Product], ProductRepository):
    """Product catalog repository implementation using SQLAlchemy."""

    def list_catalog(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.id).all()

    def search(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Product]:
        query = self.db.query(Product)
        if search:
            query = query.filter(func.lower(Product.item_name).contains(search.strip().lower()))
        if category:
            query = query.filter(Product.category == category)
        return query.order_by(Product.item_name).offset(skip).limit(limit).all()

    def list_categories(self) -> List[str]:
        rows = (
            self.db.query(Product.category)
            .distinct()
            .filter(Product.category.isnot(None), Product.category != "")
            .all()
        )
        return sorted(r[0] for r in rows)

    def upsert(self, item_name: str, category: Optional[str], item_id: Optional[str] = None) -> bool:
        query = self.db.query(Product)
        if item_id:
            existing = query.filter(Product.item_id == item_id).first()
        else:
            existing = query.filter(func.lower(Product.item_name) == item_name.strip().lower()).first()

        if existing:
            existing.item_name = item_name
            existing.category = category
            return False

        self.db.add(Product(item_id=item_id, item_name=item_name, category=category))
        self.db.flush()
        return True

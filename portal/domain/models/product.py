"""Product catalog entry: maps to the 'products' table.

A lookup table of item names and their category, used to classify invoice
lines by product name.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String(100), nullable=True, unique=True)  # accounting item id
    item_name = Column(String(500), nullable=False, index=True)
    category = Column(String(200), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Product {self.item_name} [{self.category}]>"

"""Product catalogue: metadata of an uploaded PDF; the file lives in object storage."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class ProductCatalogue(Base):
    __tablename__ = "product_catalogues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False)
    file_name = Column(String(300), nullable=False, unique=True)  # storage key
    file_url = Column(String(1000), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<ProductCatalogue {self.title}>"

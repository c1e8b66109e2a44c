"""Invoice line: one product row of an invoice, maps to the 'facture' table.

Rows are appended by the accounting sync and never updated. Quantity, price
and date may be missing; aggregations treat missing numbers as zero.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class InvoiceLine(Base):
    __tablename__ = "facture"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(String(100), nullable=True, index=True)
    client_name = Column(String(255), nullable=True, index=True)
    date = Column(Date, nullable=True, index=True)
    product = Column(String(500), nullable=True)
    quantity = Column(Float, nullable=True)
    price = Column(Float, nullable=True)
    status = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<InvoiceLine {self.invoice_id} - {self.product}>"

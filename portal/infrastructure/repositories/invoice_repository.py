"""
SQLAlchemy Implementation of the Invoice Line Repository.
"""

from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import func

from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyInvoiceRepository(SQLAlchemyRepository[InvoiceLine], InvoiceRepository):
    """Invoice line repository implementation using SQLAlchemy."""

    def _ordered(self, query):
        return query.order_by(InvoiceLine.date.desc().nullslast(), InvoiceLine.id.desc())

    def list_all(self) -> List[InvoiceLine]:
        return self._ordered(self.db.query(InvoiceLine)).all()

    def list_for_client(self, client_name: str) -> List[InvoiceLine]:
        query = self.db.query(InvoiceLine).filter(InvoiceLine.client_name == client_name)
        return self._ordered(query).all()

    def list_filtered(
        self,
        clients: Optional[Sequence[str]] = None,
        products: Optional[Sequence[str]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[InvoiceLine]:
        query = self.db.query(InvoiceLine)

        if clients:
            query = query.filter(InvoiceLine.client_name.in_(list(clients)))
        if products:
            query = query.filter(InvoiceLine.product.in_(list(products)))
        # A date range drops lines that have no date
        if date_from:
            query = query.filter(InvoiceLine.date.isnot(None), InvoiceLine.date >= date_from)
        if date_to:
            query = query.filter(InvoiceLine.date.isnot(None), InvoiceLine.date <= date_to)

        return query.order_by(InvoiceLine.id).all()

    def _distinct(self, column, search: Optional[str]) -> List[str]:
        query = self.db.query(column).distinct().filter(column.isnot(None), column != "")
        if search:
            query = query.filter(func.lower(column).contains(search.strip().lower()))
        return sorted(r[0] for r in query.all())

    def distinct_clients(self, search: Optional[str] = None) -> List[str]:
        return self._distinct(InvoiceLine.client_name, search)

    def distinct_products(self, search: Optional[str] = None) -> List[str]:
        return self._distinct(InvoiceLine.product, search)

    def invoice_exists(self, invoice_id: str) -> bool:
        return (
            self.db.query(InvoiceLine.id)
            .filter(InvoiceLine.invoice_id == invoice_id)
            .first()
            is not None
        )

    def add_many(self, lines: Sequence[InvoiceLine]) -> int:
        self.db.add_all(lines)
        self.db.commit()
        return len(lines)

    def count_invoices(self) -> int:
        return (
            self.db.query(func.count(func.distinct(InvoiceLine.invoice_id)))
            .filter(InvoiceLine.invoice_id.isnot(None), InvoiceLine.invoice_id != "")
            .scalar()
            or 0
        )

    def count_clients(self) -> int:
        return (
            self.db.query(func.count(func.distinct(InvoiceLine.client_name)))
            .filter(InvoiceLine.client_name.isnot(None), InvoiceLine.client_name != "")
            .scalar()
            or 0
        )

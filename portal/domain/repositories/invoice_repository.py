"""
Invoice Line Repository Interface.
Read access to the 'facture' feed plus the append path used by the sync.
"""

from datetime import date
from typing import List, Optional, Sequence

from portal.domain.repositories.base import BaseRepository
from portal.domain.models.invoice_line import InvoiceLine


class InvoiceRepository(BaseRepository[InvoiceLine]):
    """Interface for invoice-line specific operations."""

    def list_all(self) -> List[InvoiceLine]:
        """All lines, most recent date first."""
        ...

    def list_for_client(self, client_name: str) -> List[InvoiceLine]:
        """Lines whose client name equals the given name, most recent first."""
        ...

    def list_filtered(
        self,
        clients: Optional[Sequence[str]] = None,
        products: Optional[Sequence[str]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[InvoiceLine]:
        """Lines restricted by client names, product names and an inclusive date range."""
        ...

    def distinct_clients(self, search: Optional[str] = None) -> List[str]:
        ...

    def distinct_products(self, search: Optional[str] = None) -> List[str]:
        ...

    def invoice_exists(self, invoice_id: str) -> bool:
        """True when at least one line of the invoice is stored."""
        ...

    def add_many(self, lines: Sequence[InvoiceLine]) -> int:
        ...

    def count_invoices(self) -> int:
        ...

    def count_clients(self) -> int:
        ...

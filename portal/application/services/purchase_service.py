"""Purchase history: a client's invoice lines grouped into invoices with category filters."""

from portal.application.services.rollup import CategoryResolver, group_by_invoice, summarize_lines
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.schemas.invoice import InvoiceGroup, PurchaseFilter, PurchaseHistory


def _matches(item, filters: PurchaseFilter) -> bool:
    if filters.product and filters.product.strip().lower() not in (item.product or "").lower():
        return False
    if filters.category and item.category != filters.category:
        return False
    return True


def get_purchase_history(
    client_name: str,
    invoice_repo: InvoiceRepository,
    product_repo: ProductRepository,
    filters: PurchaseFilter | None = None,
) -> PurchaseHistory:
    filters = filters or PurchaseFilter()
    resolver = CategoryResolver(product_repo.list_catalog())
    invoices = group_by_invoice(invoice_repo.list_for_client(client_name), resolver)

    categories = sorted({item.category for inv in invoices for item in inv.items})

    filtered: list[InvoiceGroup] = []
    for invoice in invoices:
        if filters.date and invoice.date != filters.date:
            continue
        items = [item for item in invoice.items if _matches(item, filters)]
        if not items:
            continue
        filtered.append(
            invoice.model_copy(update={"items": items, "total": round(sum(i.total for i in items), 2)})
        )

    remaining = [item for inv in filtered for item in inv.items]

    return PurchaseHistory(
        client_name=client_name,
        invoices=filtered,
        summary=summarize_lines(remaining),
        categories=categories,
    )

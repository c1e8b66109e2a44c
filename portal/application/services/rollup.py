"""Invoice-line rollups shared by dashboards, purchase history, analytics and the mind map.

Invoice lines arrive from the accounting feed with loosely typed values:
quantity and price may be missing or text, dates may be missing. Every
aggregate here treats a missing number as zero and skips missing dates.
"""

import re
from collections import OrderedDict
from datetime import date, datetime
from typing import Any, Iterable, Optional

import pandas as pd
import pytz

from portal.config import get_settings
from portal.domain.schemas.invoice import InvoiceGroup, LineSummary, PurchaseItem

UNCATEGORIZED = "Uncategorized"
NO_INVOICE = "no-invoice"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y", "%d-%m-%Y")


def parse_number(value: Any) -> float:
    """Lenient number parsing: strips currency symbols and separators, 0 when unparsable."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return 0.0 if pd.isna(value) else float(value)
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_date(value: Any) -> Optional[date]:
    """Parse a date from a date/datetime or the text formats the accounting exports use."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    # ISO timestamps with fractional seconds or a timezone suffix
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def month_key(value: date) -> str:
    return value.strftime("%Y-%m")


def line_total(line: Any) -> float:
    return parse_number(getattr(line, "quantity", None)) * parse_number(getattr(line, "price", None))


def summarize_lines(lines: Iterable[Any]) -> LineSummary:
    """Total spent, distinct invoices, total items and the most recent order date."""
    total_spent = 0.0
    total_items = 0.0
    invoices = set()
    most_recent: Optional[date] = None

    for line in lines:
        total_spent += line_total(line)
        total_items += parse_number(getattr(line, "quantity", None))

        invoice_id = getattr(line, "invoice_id", None)
        if invoice_id:
            invoices.add(invoice_id)

        line_date = parse_date(getattr(line, "date", None))
        if line_date and (most_recent is None or line_date > most_recent):
            most_recent = line_date

    return LineSummary(
        total_spent=round(total_spent, 2),
        total_orders=len(invoices),
        total_items=total_items,
        most_recent_order=most_recent,
    )


class CategoryResolver:
    """Best-effort product name → category lookup against the product catalog.

    Resolution order: exact (case-insensitive, trimmed) name, then optionally
    the same comparison with every non-alphanumeric character removed, then
    substring containment in either direction. Catalog order breaks ties.
    """

    def __init__(self, products: Iterable[Any], normalized_match: bool = False):
        self.normalized_match = normalized_match
        self._entries: list[tuple[str, str, str]] = []
        for product in products:
            name = (getattr(product, "item_name", None) or "").strip().lower()
            if not name:
                continue
            category = (getattr(product, "category", None) or "").strip()
            self._entries.append((name, _NON_ALNUM.sub("", name), category))
        self._cache: dict[str, str] = {}

    def resolve(self, product_name: Optional[str]) -> str:
        key = (product_name or "").strip().lower()
        if not key:
            return UNCATEGORIZED
        if key not in self._cache:
            self._cache[key] = self._lookup(key) or UNCATEGORIZED
        return self._cache[key]

    def _lookup(self, key: str) -> Optional[str]:
        for name, _, category in self._entries:
            if name == key:
                return category

        if self.normalized_match:
            normalized = _NON_ALNUM.sub("", key)
            if normalized:
                for _, norm_name, category in self._entries:
                    if norm_name == normalized:
                        return category

        for name, _, category in self._entries:
            if key in name or name in key:
                return category
        return None


def group_by_invoice(lines: Iterable[Any], resolver: CategoryResolver) -> list[InvoiceGroup]:
    """Group lines by invoice id (first-seen order) with categorised items and totals."""
    groups: "OrderedDict[str, dict]" = OrderedDict()

    for line in lines:
        invoice_id = getattr(line, "invoice_id", None) or NO_INVOICE
        group = groups.get(invoice_id)
        if group is None:
            group = {
                "invoice_id": invoice_id,
                "client_name": getattr(line, "client_name", None),
                "date": parse_date(getattr(line, "date", None)),
                "items": [],
            }
            groups[invoice_id] = group

        group["items"].append(
            PurchaseItem(
                id=getattr(line, "id", None),
                invoice_id=getattr(line, "invoice_id", None),
                date=parse_date(getattr(line, "date", None)),
                product=getattr(line, "product", None),
                quantity=getattr(line, "quantity", None),
                price=getattr(line, "price", None),
                category=resolver.resolve(getattr(line, "product", None)),
                total=round(line_total(line), 2),
            )
        )

    return [
        InvoiceGroup(total=round(sum(item.total for item in g["items"]), 2), **g)
        for g in groups.values()
    ]


def local_today() -> date:
    """Current date in the portal's timezone."""
    return datetime.now(pytz.timezone(get_settings().TIMEZONE)).date()

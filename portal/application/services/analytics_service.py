"""Analytics dashboard: monthly, client, status, category and segment rollups over invoice lines.

"Orders" in KPIs and monthly figures count invoice lines; distinct invoice
ids are reported separately as ``total_invoices``.
"""

from collections import OrderedDict, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Sequence

from portal.application.services.rollup import (
    CategoryResolver,
    line_total,
    local_today,
    month_key,
    parse_date,
    parse_number,
)
from portal.config import get_settings
from portal.domain.schemas.analytics import (
    AnalyticsReport,
    CategoryPerformance,
    ClientRevenue,
    CustomerSegment,
    KPIs,
    MonthlyRevenue,
    StatusBucket,
    StatusCustomer,
    TopClient,
)

settings = get_settings()

UNKNOWN_CLIENT = "Unknown"
DEFAULT_STATUS = "Completed"
TOP_CLIENTS_LIMIT = 15
RECENT_PRODUCTS_LIMIT = 5
MONTHLY_TOP_CLIENTS = 5

VIP_THRESHOLD = 50_000
REGULAR_THRESHOLD = 10_000

TIMEFRAME_DAYS = {"30d": 30, "90d": 90, "1y": 365}


@dataclass
class ClientStats:
    """Per-client running totals. Lines are fed most recent first."""

    name: str
    revenue: float = 0.0
    orders: int = 0
    quantity: float = 0.0
    last_order: Optional[date] = None
    products: "OrderedDict[str, float]" = field(default_factory=OrderedDict)

    def add(self, line: Any) -> None:
        total = line_total(line)
        self.revenue += total
        self.orders += 1
        self.quantity += parse_number(line.quantity)

        line_date = parse_date(line.date)
        if line_date and (self.last_order is None or line_date > self.last_order):
            self.last_order = line_date

        if line.product:
            self.products[line.product] = self.products.get(line.product, 0.0) + total


def client_name(line: Any) -> str:
    return (line.client_name or "").strip() or UNKNOWN_CLIENT


def distinct_clients(lines: Iterable[Any]) -> set[str]:
    """Distinct non-blank client names."""
    return {line.client_name.strip() for line in lines if line.client_name and line.client_name.strip()}


def collect_client_stats(lines: Iterable[Any]) -> dict[str, ClientStats]:
    stats: dict[str, ClientStats] = {}
    for line in lines:
        name = client_name(line)
        if name not in stats:
            stats[name] = ClientStats(name=name)
        stats[name].add(line)
    return stats


def filter_timeframe(lines: Sequence[Any], timeframe: str, today: Optional[date] = None) -> list[Any]:
    """Restrict lines to the trailing window; undated lines only count for 'all'."""
    days = TIMEFRAME_DAYS.get(timeframe)
    if days is None:
        return list(lines)
    start = (today or local_today()) - timedelta(days=days)
    result = []
    for line in lines:
        line_date = parse_date(line.date)
        if line_date and line_date >= start:
            result.append(line)
    return result


def monthly_revenue(lines: Iterable[Any]) -> list[MonthlyRevenue]:
    buckets: dict[str, dict] = defaultdict(lambda: {"revenue": 0.0, "orders": 0, "clients": defaultdict(float)})
    for line in lines:
        line_date = parse_date(line.date)
        if not line_date:
            continue
        bucket = buckets[month_key(line_date)]
        total = line_total(line)
        bucket["revenue"] += total
        bucket["orders"] += 1
        bucket["clients"][client_name(line)] += total

    result = []
    for month in sorted(buckets):
        bucket = buckets[month]
        top = sorted(bucket["clients"].items(), key=lambda kv: kv[1], reverse=True)[:MONTHLY_TOP_CLIENTS]
        result.append(
            MonthlyRevenue(
                month=month,
                revenue=round(bucket["revenue"], 2),
                orders=bucket["orders"],
                avg_order=round(bucket["revenue"] / bucket["orders"], 2) if bucket["orders"] else 0.0,
                top_clients=[ClientRevenue(name=n, revenue=round(r, 2)) for n, r in top],
            )
        )
    return result


def top_clients(stats: dict[str, ClientStats], limit: int = TOP_CLIENTS_LIMIT) -> list[TopClient]:
    ranked = sorted(stats.values(), key=lambda s: s.revenue, reverse=True)[:limit]
    return [
        TopClient(
            client=s.name,
            total_sales=round(s.revenue, 2),
            order_count=s.orders,
            avg_order=round(s.revenue / s.orders, 2) if s.orders else 0.0,
            last_order=s.last_order,
            recent_products=list(s.products)[:RECENT_PRODUCTS_LIMIT],
        )
        for s in ranked
    ]


def status_distribution(lines: Iterable[Any]) -> list[StatusBucket]:
    buckets: "OrderedDict[str, dict]" = OrderedDict()
    for line in lines:
        status = (line.status or "").strip() or DEFAULT_STATUS
        bucket = buckets.setdefault(status, {"count": 0, "revenue": 0.0, "customers": OrderedDict()})
        total = line_total(line)
        bucket["count"] += 1
        bucket["revenue"] += total

        customer = bucket["customers"].setdefault(client_name(line), [0, 0.0])
        customer[0] += 1
        customer[1] += total

    return [
        StatusBucket(
            status=status,
            count=b["count"],
            revenue=round(b["revenue"], 2),
            customers=sorted(
                (
                    StatusCustomer(name=name, order_count=c[0], total_revenue=round(c[1], 2))
                    for name, c in b["customers"].items()
                ),
                key=lambda c: c.total_revenue,
                reverse=True,
            ),
        )
        for status, b in buckets.items()
    ]


def category_performance(lines: Iterable[Any], resolver: CategoryResolver) -> list[CategoryPerformance]:
    buckets: "OrderedDict[str, dict]" = OrderedDict()
    for line in lines:
        category = resolver.resolve(line.product)
        bucket = buckets.setdefault(category, {"revenue": 0.0, "quantity": 0.0, "items": 0, "products": OrderedDict()})
        bucket["revenue"] += line_total(line)
        bucket["quantity"] += parse_number(line.quantity)
        bucket["items"] += 1
        if line.product:
            bucket["products"][line.product] = True

    ranked = sorted(buckets.items(), key=lambda kv: kv[1]["revenue"], reverse=True)
    return [
        CategoryPerformance(
            category=category,
            revenue=round(b["revenue"], 2),
            quantity=b["quantity"],
            items_count=b["items"],
            products=list(b["products"]),
        )
        for category, b in ranked
    ]


def segment_for(revenue: float) -> str:
    if revenue > VIP_THRESHOLD:
        return "VIP"
    if revenue > REGULAR_THRESHOLD:
        return "Regular"
    return "Occasional"


def customer_segments(stats: dict[str, ClientStats]) -> list[CustomerSegment]:
    currency = settings.CURRENCY
    labels = {
        "VIP": f"VIP (>50k {currency})",
        "Regular": f"Regular (10k-50k {currency})",
        "Occasional": f"Occasional (<10k {currency})",
    }
    totals = {key: [0, 0.0] for key in labels}
    for s in stats.values():
        bucket = totals[segment_for(s.revenue)]
        bucket[0] += 1
        bucket[1] += s.revenue

    return [
        CustomerSegment(
            segment=labels[key],
            count=count,
            revenue=round(revenue, 2),
            avg_order=round(revenue / count, 2) if count else 0.0,
        )
        for key, (count, revenue) in totals.items()
    ]


def compute_kpis(lines: Sequence[Any], categories: list[CategoryPerformance]) -> KPIs:
    revenue = sum(line_total(line) for line in lines)
    invoices = {line.invoice_id for line in lines if line.invoice_id}
    clients = distinct_clients(lines)

    return KPIs(
        total_revenue=round(revenue, 2),
        total_orders=len(lines),
        total_invoices=len(invoices),
        average_order_value=round(revenue / len(lines), 2) if lines else 0.0,
        unique_clients=len(clients),
        total_items=sum(parse_number(line.quantity) for line in lines),
        top_category=categories[0].category if categories else "N/A",
        currency=settings.CURRENCY,
    )


def build_report(
    lines: Sequence[Any],
    products: Iterable[Any],
    timeframe: str = "all",
    today: Optional[date] = None,
) -> AnalyticsReport:
    """Full analytics report for the lines inside the timeframe."""
    scoped = filter_timeframe(lines, timeframe, today)
    resolver = CategoryResolver(products)
    stats = collect_client_stats(scoped)
    categories = category_performance(scoped, resolver)

    return AnalyticsReport(
        timeframe=timeframe,
        kpis=compute_kpis(scoped, categories),
        monthly_revenue=monthly_revenue(scoped),
        top_clients=top_clients(stats),
        status_distribution=status_distribution(scoped),
        category_performance=categories,
        customer_segments=customer_segments(stats),
    )

"""Smart alerts: rule-based business alerts derived from invoice lines.

Rules: high-value churn risk, month-over-month revenue surge or drop,
three-month growth, top performer, rising star products, stale products,
seasonal opportunities and cross-sell candidates.
"""

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Sequence

import structlog

from portal.application.services.analytics_service import ClientStats, collect_client_stats
from portal.application.services.rollup import line_total, local_today, month_key, parse_date, parse_number
from portal.config import get_settings
from portal.domain.schemas.analytics import Alert, AlertsResponse

logger = structlog.get_logger(__name__)
settings = get_settings()

CHURN_DAYS = 45
CHURN_MIN_REVENUE = 1000
SURGE_PCT = 20
DROP_PCT = -15
THREE_MONTH_GROWTH_PCT = 10
TOP_PRODUCT_MIN_REVENUE = 10000
RISING_STAR_GROWTH_PCT = 50
RISING_STAR_MIN_SALES = 500
RISING_STAR_NEW_GROWTH = 1000
STALE_DAYS = 90
CROSS_SELL_MIN_REVENUE = 500

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class ProductStats:
    name: str
    revenue: float = 0.0
    quantity: float = 0.0
    last_sold: Optional[date] = None
    monthly: dict[str, float] = field(default_factory=lambda: defaultdict(float))


def _money(value: float) -> str:
    return f"{value:.2f} {settings.CURRENCY}"


def _growth(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous else 0.0


def _product_stats(lines: Sequence[Any]) -> list[ProductStats]:
    stats: dict[str, ProductStats] = {}
    for line in lines:
        name = line.product or "Unknown"
        entry = stats.setdefault(name, ProductStats(name=name))
        total = line_total(line)
        entry.revenue += total
        entry.quantity += parse_number(line.quantity)
        line_date = parse_date(line.date)
        if line_date:
            entry.monthly[month_key(line_date)] += total
            if entry.last_sold is None or line_date > entry.last_sold:
                entry.last_sold = line_date
    return sorted(stats.values(), key=lambda p: p.revenue, reverse=True)


def churn_alert(clients: dict[str, ClientStats], today: date) -> Optional[Alert]:
    at_risk = [
        {"name": c.name, "revenue": round(c.revenue, 2), "last_order": c.last_order.isoformat(),
         "days_since_last_order": (today - c.last_order).days}
        for c in clients.values()
        if c.last_order and (today - c.last_order).days > CHURN_DAYS and c.revenue > CHURN_MIN_REVENUE
    ]
    if not at_risk:
        return None
    at_risk.sort(key=lambda c: c["revenue"], reverse=True)
    return Alert(
        id="churn-risk",
        type="warning",
        priority="high",
        category="customers",
        title=f"{len(at_risk)} High-Value Customers at Risk",
        description=(
            f"Customers representing significant revenue ({_money(sum(c['revenue'] for c in at_risk))}) "
            f"haven't ordered in over {CHURN_DAYS} days."
        ),
        action_items=[
            "Send personalized retention emails",
            "Offer exclusive discounts or loyalty benefits",
            "Schedule personal check-in calls",
            "Analyze why they stopped ordering",
        ],
        data={"customers": at_risk[:5]},
    )


def revenue_alerts(lines: Sequence[Any]) -> list[Alert]:
    monthly: dict[str, float] = defaultdict(float)
    for line in lines:
        line_date = parse_date(line.date)
        if line_date:
            monthly[month_key(line_date)] += line_total(line)

    months = sorted(monthly)
    if len(months) < 3:
        return []

    latest, previous, third = (monthly[m] for m in (months[-1], months[-2], months[-3]))
    last_month_growth = _growth(latest, previous)
    three_month_growth = _growth(latest, third)
    alerts = []

    if last_month_growth > SURGE_PCT:
        alerts.append(Alert(
            id="revenue-surge",
            type="opportunity",
            priority="high",
            category="revenue",
            title="Sudden Revenue Surge Detected!",
            description=(
                f"Revenue increased by {last_month_growth:.1f}% in the last month. "
                "Investigate the cause and capitalize."
            ),
            action_items=[
                "Identify products/campaigns driving the surge",
                "Increase marketing spend on successful channels",
                "Ensure inventory can meet increased demand",
            ],
            data={"growth_rate": round(last_month_growth, 1), "month": months[-1]},
        ))
    elif last_month_growth < DROP_PCT:
        alerts.append(Alert(
            id="revenue-drop",
            type="warning",
            priority="high",
            category="revenue",
            title="Sharp Revenue Drop Detected!",
            description=(
                f"Revenue decreased by {abs(last_month_growth):.1f}% in the last month. "
                "Immediate investigation required."
            ),
            action_items=[
                "Review recent marketing campaigns and website performance",
                "Check for customer feedback or service issues",
                "Analyze competitor activities",
            ],
            data={"growth_rate": round(last_month_growth, 1), "month": months[-1]},
        ))

    if three_month_growth > THREE_MONTH_GROWTH_PCT:
        alerts.append(Alert(
            id="revenue-growth-3m",
            type="opportunity",
            priority="medium",
            category="revenue",
            title="Consistent Revenue Growth",
            description=f"Revenue has shown a healthy growth of {three_month_growth:.1f}% over the last three months.",
            action_items=[
                "Maintain successful strategies",
                "Explore new market segments",
                "Invest in customer loyalty programs",
            ],
            data={
                "growth_rate": round(three_month_growth, 1),
                "trend": [{"month": m, "revenue": round(monthly[m], 2)} for m in months[-3:]],
            },
        ))
    return alerts


def product_alerts(products: list[ProductStats], today: date) -> list[Alert]:
    alerts = []

    top = products[0] if products else None
    if top and top.revenue > TOP_PRODUCT_MIN_REVENUE:
        alerts.append(Alert(
            id="top-product",
            type="insight",
            priority="medium",
            category="products",
            title=f"{top.name} is Your Top Performer",
            description=(
                f"This product generated {_money(top.revenue)} ({top.quantity:g} units sold) "
                "and consistently leads sales."
            ),
            action_items=[
                "Prioritize stock levels for this product",
                "Create premium marketing assets",
                "Analyze its customer base for look-alike targeting",
            ],
            data={"product": top.name, "revenue": round(top.revenue, 2), "quantity": top.quantity},
        ))

    rising = []
    for product in products:
        months = sorted(product.monthly)
        if len(months) < 2:
            continue
        last_sales = product.monthly[months[-1]]
        prev_sales = product.monthly[months[-2]]
        if prev_sales:
            growth = _growth(last_sales, prev_sales)
        else:
            growth = RISING_STAR_NEW_GROWTH if last_sales > 0 else 0.0
        if growth > RISING_STAR_GROWTH_PCT and last_sales > RISING_STAR_MIN_SALES:
            rising.append({"product": product.name, "growth": round(growth, 1), "last_month_sales": round(last_sales, 2)})

    if rising:
        rising = sorted(rising, key=lambda p: p["growth"], reverse=True)[:3]
        names = ", ".join(p["product"] for p in rising)
        average = sum(p["growth"] for p in rising) / len(rising)
        alerts.append(Alert(
            id="rising-star-products",
            type="opportunity",
            priority="high",
            category="products",
            title=f"Rising Star Products Detected: {names}",
            description=f"These products show significant growth (avg. {average:.1f}% increase last month). Focus on them!",
            action_items=[
                "Allocate more marketing budget to these products",
                "Feature them prominently on your website and campaigns",
                "Gather customer testimonials and reviews",
            ],
            data={"products": rising},
        ))

    stale = [
        p for p in products
        if p.last_sold is None or ((today - p.last_sold).days > STALE_DAYS and p.quantity > 0)
    ]
    if stale:
        alerts.append(Alert(
            id="stale-inventory",
            type="action_required",
            priority="medium",
            category="products",
            title=f"{len(stale)} Products Have Stale Inventory",
            description=(
                f"These products haven't sold in over {STALE_DAYS} days, tying up capital. "
                f"Revenue tied: {_money(sum(p.revenue for p in stale))}."
            ),
            action_items=[
                "Implement aggressive clearance sales",
                "Re-evaluate pricing or marketing strategy",
                "Consider bundling with faster-moving items",
                "Remove from active listings if unsellable",
            ],
            data={
                "products": [
                    {"product": p.name, "revenue": round(p.revenue, 2),
                     "last_sold": p.last_sold.isoformat() if p.last_sold else None}
                    for p in stale[:5]
                ]
            },
        ))
    return alerts


def seasonal_alert(lines: Sequence[Any], today: date) -> Optional[Alert]:
    next_month = 1 if today.month == 12 else today.month + 1
    sales: dict[str, float] = defaultdict(float)
    for line in lines:
        line_date = parse_date(line.date)
        if line_date and line_date.month == next_month and line.product:
            sales[line.product] += line_total(line)

    if not sales:
        return None
    top = sorted(sales.items(), key=lambda kv: kv[1], reverse=True)[:3]
    month_name = calendar.month_name[next_month]
    return Alert(
        id="seasonal-opportunity",
        type="opportunity",
        priority="medium",
        category="operations",
        title="Seasonal Opportunity Approaching",
        description=(
            f"Based on historical data, next month ({month_name}) typically shows strong sales "
            f"for products like: {', '.join(name for name, _ in top)}."
        ),
        action_items=[
            "Increase stock for seasonal favorites",
            "Prepare targeted marketing campaigns for these products",
            "Offer early bird discounts to existing customers",
        ],
        data={"month": month_name, "products": [{"product": n, "revenue": round(r, 2)} for n, r in top]},
    )


def cross_sell_alert(clients: dict[str, ClientStats]) -> Optional[Alert]:
    candidates = [
        c.name for c in clients.values()
        if len(c.products) == 1 and c.revenue > CROSS_SELL_MIN_REVENUE
    ]
    if not candidates:
        return None
    return Alert(
        id="cross-sell-opportunity",
        type="opportunity",
        priority="low",
        category="customers",
        title=f"{len(candidates)} High-Potential Single-Product Customers",
        description=(
            "These customers show loyalty but haven't explored your full product range. "
            "Great cross-selling potential."
        ),
        action_items=[
            "Send personalized product recommendations",
            "Offer bundle discounts on complementary items",
            "Create educational content about other product benefits",
        ],
        data={"count": len(candidates), "customers": sorted(candidates)[:10]},
    )


def generate_alerts(lines: Sequence[Any], today: Optional[date] = None) -> AlertsResponse:
    today = today or local_today()
    clients = collect_client_stats(lines)
    products = _product_stats(lines)

    alerts = [
        churn_alert(clients, today),
        *revenue_alerts(lines),
        *product_alerts(products, today),
        seasonal_alert(lines, today),
        cross_sell_alert(clients),
    ]
    alerts = [a for a in alerts if a is not None]

    alerts.sort(key=lambda a: PRIORITY_ORDER[a.priority])
    by_priority = {p: sum(1 for a in alerts if a.priority == p) for p in PRIORITY_ORDER}

    logger.info("Smart alerts generated", total=len(alerts), **by_priority)
    return AlertsResponse(generated_at=today, total=len(alerts), by_priority=by_priority, alerts=alerts)

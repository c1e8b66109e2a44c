"""Keyword query box: answers a free-text business question from the invoice lines.

Questions are matched against keyword rules in a fixed order on the
lowercased text and the first rule that matches produces the answer.
There is no language model involved: the same question over the same data
on the same day always yields the same result.
"""

import re
from collections import OrderedDict, defaultdict
from datetime import date
from typing import Any, Callable, Iterable, Optional, Sequence

import structlog

from portal.application.services.analytics_service import category_performance, client_name, distinct_clients
from portal.application.services.rollup import (
    CategoryResolver,
    line_total,
    local_today,
    month_key,
    parse_date,
    parse_number,
)
from portal.config import get_settings
from portal.domain.schemas.analytics import QueryResult

logger = structlog.get_logger(__name__)
settings = get_settings()

DEFAULT_LIMIT = 5
DEFAULT_CHURN_DAYS = 60

NOT_UNDERSTOOD = (
    "I couldn't understand that query. Try asking about top customers, best selling products, "
    "customer churn, revenue trends, or business overview. Be more specific if asking about "
    "trends for a category."
)

_FIRST_NUMBER = re.compile(r"\d+")
_DAYS = re.compile(r"(\d+)\s*days")
_CATEGORY_NAME = re.compile(r"for\s+([a-zA-Z\s]+?)[\s?.!]*$")


def _has_any(text: str, *words: str) -> bool:
    return any(w in text for w in words)


def _money(value: float) -> str:
    return f"{value:.2f} {settings.CURRENCY}"


class QueryResponder:
    """Keyword-rule responder over a fixed set of invoice lines."""

    def __init__(self, lines: Sequence[Any], products: Iterable[Any], today: Optional[date] = None):
        self.lines = list(lines)
        self.resolver = CategoryResolver(products)
        self.today = today or local_today()
        self.rules: list[tuple[Callable[[str], bool], Callable[[str], QueryResult]]] = [
            (lambda q: _has_any(q, "top", "highest") and _has_any(q, "customer", "client"), self.top_customers),
            (lambda q: _has_any(q, "product", "item") and _has_any(q, "best", "selling", "top"), self.top_products),
            (lambda q: "churn" in q or ("haven't" in q and "order" in q), self.churn_risk),
            (lambda q: "revenue" in q and _has_any(q, "trend", "growth"), self.revenue_trend),
            (
                lambda q: _has_any(
                    q, "total revenue", "business overview", "total orders", "unique clients", "average order value"
                ),
                self.business_overview,
            ),
            (lambda q: "category" in q and _has_any(q, "performance", "top"), self.top_categories),
        ]

    def answer(self, question: str) -> QueryResult:
        query = question.lower().replace("’", "'").strip()
        for matches, handler in self.rules:
            if matches(query):
                result = handler(query)
                logger.info("Query answered", handler=handler.__name__, result_type=result.type)
                return result

        logger.info("Query not understood", question=question)
        return QueryResult(type="text", title="Query Not Understood", data=None, interpretation=NOT_UNDERSTOOD)

    # --- rules ---------------------------------------------------------

    def _limit(self, query: str) -> int:
        match = _FIRST_NUMBER.search(query)
        limit = int(match.group()) if match else DEFAULT_LIMIT
        return limit if limit > 0 else DEFAULT_LIMIT

    def top_customers(self, query: str) -> QueryResult:
        limit = self._limit(query)
        revenue: dict[str, float] = defaultdict(float)
        for line in self.lines:
            revenue[client_name(line)] += line_total(line)

        rows = [
            {"name": name, "revenue": round(total, 2)}
            for name, total in sorted(revenue.items(), key=lambda kv: kv[1], reverse=True)[:limit]
        ]
        if rows:
            interpretation = (
                f"Here are your top {limit} customers. {rows[0]['name']} is your highest-value "
                f"customer with {_money(rows[0]['revenue'])} in total revenue."
            )
        else:
            interpretation = "There are no invoices yet, so no customers can be ranked."

        return QueryResult(
            type="table",
            title=f"Top {limit} Customers by Revenue",
            data=rows,
            interpretation=interpretation,
        )

    def top_products(self, query: str) -> QueryResult:
        limit = self._limit(query)
        totals: "OrderedDict[str, list[float]]" = OrderedDict()
        for line in self.lines:
            if not line.product:
                continue
            entry = totals.setdefault(line.product, [0.0, 0.0])
            entry[0] += line_total(line)
            entry[1] += parse_number(line.quantity)

        ranked = sorted(totals.items(), key=lambda kv: kv[1][0], reverse=True)[:limit]
        rows = [{"name": name, "revenue": round(rev, 2), "quantity": qty} for name, (rev, qty) in ranked]
        if rows:
            interpretation = (
                f"Your best-selling product is {rows[0]['name']} with {_money(rows[0]['revenue'])} "
                f"in revenue and {rows[0]['quantity']:g} units sold."
            )
        else:
            interpretation = "There are no product sales recorded yet."

        return QueryResult(
            type="table",
            title=f"Top {limit} Best Selling Products",
            data=rows,
            interpretation=interpretation,
        )

    def churn_risk(self, query: str) -> QueryResult:
        match = _DAYS.search(query)
        threshold = int(match.group(1)) if match else DEFAULT_CHURN_DAYS

        last_order: dict[str, date] = {}
        for line in self.lines:
            line_date = parse_date(line.date)
            if not line_date:
                continue
            name = client_name(line)
            if name not in last_order or line_date > last_order[name]:
                last_order[name] = line_date

        rows = []
        for name, last in last_order.items():
            days = (self.today - last).days
            if days > threshold:
                rows.append({"name": name, "last_order": last.isoformat(), "days_since_last_order": days})
        rows.sort(key=lambda r: r["days_since_last_order"], reverse=True)

        return QueryResult(
            type="table",
            title=f"Customers at Risk of Churning (Over {threshold} Days)",
            data=rows,
            interpretation=(
                f"{len(rows)} customers haven't ordered in over {threshold} days. "
                "Consider reaching out with retention offers."
            ),
        )

    def _monthly_trend(self, lines: Iterable[Any]) -> list[dict]:
        monthly: dict[str, float] = defaultdict(float)
        for line in lines:
            line_date = parse_date(line.date)
            if line_date:
                monthly[month_key(line_date)] += line_total(line)
        return [{"month": m, "revenue": round(monthly[m], 2)} for m in sorted(monthly)]

    def revenue_trend(self, query: str) -> QueryResult:
        if "category" in query or "product type" in query:
            match = _CATEGORY_NAME.search(query)
            return self.category_trend(match.group(1).strip() if match else "")

        trend = self._monthly_trend(self.lines)
        if len(trend) > 1:
            interpretation = (
                f"Showing revenue trend across {len(trend)} months. "
                f"Latest reported revenue: {_money(trend[-1]['revenue'])}."
            )
        else:
            interpretation = "Not enough historical data for a meaningful trend analysis."

        return QueryResult(
            type="chart",
            title="Overall Monthly Revenue Trend",
            data=trend,
            interpretation=interpretation,
        )

    def category_trend(self, category_name: str) -> QueryResult:
        needle = category_name.lower()
        lines = [line for line in self.lines if needle in self.resolver.resolve(line.product).lower()]
        if not lines:
            return QueryResult(
                type="text",
                title=f"No Data for Category: {category_name}",
                data=None,
                interpretation=(
                    f'Could not find any transactions for the category "{category_name}". '
                    "Please check the spelling or try a different category."
                ),
            )

        trend = self._monthly_trend(lines)
        if len(trend) > 1:
            interpretation = (
                f"Showing revenue trend for {category_name} across {len(trend)} months. "
                f"Latest reported revenue: {_money(trend[-1]['revenue'])}."
            )
        else:
            interpretation = f"Not enough historical data for a meaningful trend analysis for {category_name}."

        return QueryResult(
            type="chart",
            title=f"Monthly Revenue Trend for {category_name or 'Selected'} Category",
            data=trend,
            interpretation=interpretation,
        )

    def business_overview(self, query: str) -> QueryResult:
        revenue = sum(line_total(line) for line in self.lines)
        orders = len(self.lines)
        customers = len(distinct_clients(self.lines))
        average = revenue / orders if orders else 0.0
        categories = category_performance(self.lines, self.resolver)
        top_category = categories[0].category if categories else "N/A"

        return QueryResult(
            type="metric",
            title="Overall Business Overview",
            data={
                "total_revenue": round(revenue, 2),
                "total_orders": orders,
                "unique_customers": customers,
                "average_order_value": round(average, 2),
                "top_category": top_category,
            },
            interpretation=(
                f"Your total business revenue is {_money(revenue)} across {orders} orders from "
                f"{customers} unique customers. The average order value is {_money(average)}. "
                f"Your top performing category is {top_category}."
            ),
        )

    def top_categories(self, query: str) -> QueryResult:
        categories = category_performance(self.lines, self.resolver)[:5]
        rows = [
            {"name": c.category, "revenue": c.revenue, "quantity": c.quantity, "items": c.items_count}
            for c in categories
        ]
        if rows:
            interpretation = (
                f'Here are your top 5 product categories. "{rows[0]["name"]}" is the leading '
                f"category with {_money(rows[0]['revenue'])}."
            )
        else:
            interpretation = "There are no categorised sales recorded yet."

        return QueryResult(
            type="table",
            title="Top 5 Product Categories by Revenue",
            data=rows,
            interpretation=interpretation,
        )

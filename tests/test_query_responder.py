from datetime import date

import pytest

from portal.application.services.analytics_service import build_report
from portal.application.services.query_responder import NOT_UNDERSTOOD, QueryResponder

TODAY = date(2024, 6, 30)


@pytest.fixture
def responder(make_line, catalog):
    lines = [
        make_line(client="Ferme Atlas", product="NPK 15-15-15", quantity=10, price=100, date=date(2024, 6, 10)),
        make_line(client="Ferme Atlas", product="Mancozeb 80 WP", quantity=5, price=200, date=date(2024, 5, 10)),
        make_line(client="Domaine Souss", product="NPK 15-15-15", quantity=2, price=100, date=date(2024, 3, 1)),
        make_line(client="Agri Draa", product="Mancozeb 80 WP", quantity=1, price=50, date=date(2024, 6, 20)),
    ]
    return QueryResponder(lines, catalog, today=TODAY)


def test_top_customers_with_limit(responder):
    result = responder.answer("Who are my top 2 customers?")

    assert result.type == "table"
    assert result.title == "Top 2 Customers by Revenue"
    assert [row["name"] for row in result.data] == ["Ferme Atlas", "Domaine Souss"]
    assert result.data[0]["revenue"] == 2000
    assert "Ferme Atlas" in result.interpretation


def test_best_selling_products(responder):
    result = responder.answer("What are the best selling products?")

    assert result.title == "Top 5 Best Selling Products"
    assert result.data[0] == {"name": "NPK 15-15-15", "revenue": 1200, "quantity": 12}
    assert result.data[1]["name"] == "Mancozeb 80 WP"


def test_churn_threshold_from_question(responder):
    result = responder.answer("Which customers haven't ordered in 90 days?")

    assert result.title == "Customers at Risk of Churning (Over 90 Days)"
    assert result.data == [
        {"name": "Domaine Souss", "last_order": "2024-03-01", "days_since_last_order": 121}
    ]


def test_churn_accepts_typographic_apostrophe(responder):
    result = responder.answer("Which customers haven’t ordered in 90 days?")
    assert len(result.data) == 1


def test_churn_default_threshold(responder):
    result = responder.answer("show churn risk")
    assert "60 Days" in result.title
    assert [row["name"] for row in result.data] == ["Domaine Souss"]


def test_revenue_trend(responder):
    result = responder.answer("Show me the revenue trend")

    assert result.type == "chart"
    assert [row["month"] for row in result.data] == ["2024-03", "2024-05", "2024-06"]
    assert result.data[-1]["revenue"] == 1050


def test_category_revenue_trend(responder):
    result = responder.answer("Show category revenue trend for Engrais?")

    assert result.type == "chart"
    assert result.data == [
        {"month": "2024-03", "revenue": 200},
        {"month": "2024-06", "revenue": 1000},
    ]


def test_category_trend_without_data(responder):
    result = responder.answer("category revenue growth for bananas")

    assert result.type == "text"
    assert result.title == "No Data for Category: bananas"


def test_business_overview(responder):
    result = responder.answer("Give me a business overview")

    assert result.type == "metric"
    assert result.data == {
        "total_revenue": 2250,
        "total_orders": 4,
        "unique_customers": 3,
        "average_order_value": 562.5,
        "top_category": "Engrais",
    }


def test_overview_and_kpis_agree_on_blank_clients(make_line, catalog):
    lines = [
        make_line(client="Ferme Atlas", date=date(2024, 6, 1)),
        make_line(client="", date=date(2024, 6, 2)),
        make_line(client="   ", date=date(2024, 6, 3)),
        make_line(client=None, date=date(2024, 6, 4)),
    ]

    overview = QueryResponder(lines, catalog, today=TODAY).answer("business overview")
    kpis = build_report(lines, catalog, today=TODAY).kpis

    assert overview.data["unique_customers"] == kpis.unique_clients == 1


def test_category_performance(responder):
    result = responder.answer("category performance")

    assert result.type == "table"
    assert [row["name"] for row in result.data] == ["Engrais", "Fongicides"]


def test_unrecognised_question(responder):
    result = responder.answer("What's the weather like?")

    assert result.type == "text"
    assert result.title == "Query Not Understood"
    assert result.interpretation == NOT_UNDERSTOOD


def test_empty_data_answers_gracefully(catalog):
    result = QueryResponder([], catalog, today=TODAY).answer("top customers")

    assert result.data == []
    assert "no invoices" in result.interpretation

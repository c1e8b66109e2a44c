from datetime import date

import pytest

from portal.application.services.analytics_service import build_report, filter_timeframe, segment_for

TODAY = date(2024, 6, 30)


@pytest.fixture
def lines(make_line):
    return [
        make_line(client="Ferme Atlas", invoice_id="INV-1", product="NPK 15-15-15", quantity=10, price=100,
                  date=date(2024, 6, 10), status="paid"),
        make_line(client="Ferme Atlas", invoice_id="INV-1", product="Mancozeb 80 WP", quantity=1, price=200,
                  date=date(2024, 6, 10), status="paid"),
        make_line(client="Domaine Souss", invoice_id="INV-2", product="NPK 15-15-15", quantity=2, price=100,
                  date=date(2024, 5, 2), status="overdue"),
        make_line(client="Agri Draa", invoice_id="INV-3", product="Mancozeb 80 WP", quantity=1, price=100,
                  date=None, status=""),
    ]


def test_kpis_include_undated_lines(lines, catalog):
    kpis = build_report(lines, catalog, "all", today=TODAY).kpis

    assert kpis.total_revenue == 1500
    assert kpis.total_orders == 4
    assert kpis.total_invoices == 3
    assert kpis.average_order_value == 375
    assert kpis.unique_clients == 3
    assert kpis.total_items == 14
    assert kpis.top_category == "Engrais"
    assert kpis.currency == "MAD"


def test_monthly_revenue_skips_undated(lines, catalog):
    monthly = build_report(lines, catalog, today=TODAY).monthly_revenue

    assert [m.month for m in monthly] == ["2024-05", "2024-06"]
    june = monthly[1]
    assert june.revenue == 1200
    assert june.orders == 2
    assert june.avg_order == 600
    assert [c.name for c in june.top_clients] == ["Ferme Atlas"]


def test_top_clients(lines, catalog):
    top = build_report(lines, catalog, today=TODAY).top_clients

    assert [c.client for c in top] == ["Ferme Atlas", "Domaine Souss", "Agri Draa"]
    assert top[0].order_count == 2
    assert top[0].avg_order == 600
    assert top[0].last_order == date(2024, 6, 10)
    assert top[0].recent_products == ["NPK 15-15-15", "Mancozeb 80 WP"]
    assert top[2].last_order is None


def test_status_distribution_defaults_blank_status(lines, catalog):
    buckets = {b.status: b for b in build_report(lines, catalog, today=TODAY).status_distribution}

    assert set(buckets) == {"paid", "overdue", "Completed"}
    assert buckets["paid"].count == 2
    assert buckets["paid"].revenue == 1200
    assert buckets["Completed"].customers[0].name == "Agri Draa"


def test_category_performance(lines, catalog):
    categories = build_report(lines, catalog, today=TODAY).category_performance

    assert [(c.category, c.revenue, c.items_count) for c in categories] == [
        ("Engrais", 1200, 2),
        ("Fongicides", 300, 2),
    ]


def test_timeframe_excludes_undated_and_old_lines(lines, catalog):
    assert len(filter_timeframe(lines, "all", TODAY)) == 4
    assert len(filter_timeframe(lines, "90d", TODAY)) == 3

    report = build_report(lines, catalog, "30d", today=TODAY)
    assert report.timeframe == "30d"
    assert report.kpis.total_revenue == 1200
    assert report.kpis.unique_clients == 1


@pytest.mark.parametrize(
    "revenue, segment",
    [(50_000.01, "VIP"), (50_000, "Regular"), (10_000.01, "Regular"), (10_000, "Occasional"), (0, "Occasional")],
)
def test_segment_boundaries(revenue, segment):
    assert segment_for(revenue) == segment


def test_customer_segments(lines, catalog):
    segments = build_report(lines, catalog, today=TODAY).customer_segments

    assert [s.segment for s in segments] == [
        "VIP (>50k MAD)",
        "Regular (10k-50k MAD)",
        "Occasional (<10k MAD)",
    ]
    assert segments[2].count == 3
    assert segments[2].revenue == 1500
    assert segments[0].avg_order == 0


def test_empty_report(catalog):
    report = build_report([], catalog, today=TODAY)

    assert report.kpis.total_revenue == 0
    assert report.kpis.average_order_value == 0
    assert report.kpis.top_category == "N/A"
    assert report.monthly_revenue == []

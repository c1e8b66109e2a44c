from datetime import date

from portal.application.services.alert_service import PRIORITY_ORDER, generate_alerts

TODAY = date(2024, 6, 30)


def _ids(response):
    return {alert.id for alert in response.alerts}


def _alert(response, alert_id):
    return next(a for a in response.alerts if a.id == alert_id)


def test_revenue_surge_and_three_month_growth(make_line):
    lines = [
        make_line(client="Ferme Atlas", product="P1", quantity=10, price=100, date=date(2024, 4, 15)),
        make_line(client="Ferme Atlas", product="P1", quantity=10, price=100, date=date(2024, 5, 15)),
        make_line(client="Ferme Atlas", product="P1", quantity=15, price=100, date=date(2024, 6, 15)),
    ]
    response = generate_alerts(lines, today=TODAY)

    assert _ids(response) == {"revenue-surge", "revenue-growth-3m", "cross-sell-opportunity"}
    assert _alert(response, "revenue-surge").data["growth_rate"] == 50.0
    assert [a.id for a in response.alerts] == ["revenue-surge", "revenue-growth-3m", "cross-sell-opportunity"]


def test_revenue_drop(make_line):
    lines = [
        make_line(product="P1", quantity=10, price=100, date=date(2024, 4, 15)),
        make_line(product="P1", quantity=10, price=100, date=date(2024, 5, 15)),
        make_line(product="P1", quantity=5, price=100, date=date(2024, 6, 15)),
    ]
    response = generate_alerts(lines, today=TODAY)

    assert "revenue-drop" in _ids(response)
    assert "revenue-growth-3m" not in _ids(response)
    assert _alert(response, "revenue-drop").priority == "high"


def test_no_revenue_alerts_below_three_months(make_line):
    lines = [
        make_line(product="P1", quantity=1, price=100, date=date(2024, 5, 15)),
        make_line(product="P1", quantity=9, price=100, date=date(2024, 6, 15)),
    ]
    ids = _ids(generate_alerts(lines, today=TODAY))
    assert not ids & {"revenue-surge", "revenue-drop", "revenue-growth-3m"}


def test_high_value_churn_and_stale_product(make_line):
    lines = [make_line(client="Old Farm", product="P2", quantity=50, price=100, date=date(2024, 3, 1))]
    response = generate_alerts(lines, today=TODAY)

    assert _ids(response) == {"churn-risk", "stale-inventory", "cross-sell-opportunity"}
    churn = _alert(response, "churn-risk")
    assert churn.data["customers"][0]["name"] == "Old Farm"
    assert churn.data["customers"][0]["days_since_last_order"] == 121
    assert [a.priority for a in response.alerts] == ["high", "medium", "low"]
    assert response.by_priority == {"high": 1, "medium": 1, "low": 1}


def test_rising_star(make_line):
    lines = [
        make_line(client="Nova", product="P3", quantity=4, price=100, date=date(2024, 5, 20)),
        make_line(client="Nova", product="P3", quantity=10, price=100, date=date(2024, 6, 20)),
    ]
    alert = _alert(generate_alerts(lines, today=TODAY), "rising-star-products")

    assert alert.data["products"] == [{"product": "P3", "growth": 150.0, "last_month_sales": 1000}]


def test_top_product(make_line):
    lines = [make_line(product="P4", quantity=200, price=100, date=date(2024, 6, 20))]
    alert = _alert(generate_alerts(lines, today=TODAY), "top-product")

    assert alert.title == "P4 is Your Top Performer"
    assert alert.data["revenue"] == 20000


def test_seasonal_opportunity_uses_next_month(make_line):
    lines = [make_line(product="Drip kit", quantity=1, price=10, date=date(2023, 7, 10))]
    alert = _alert(generate_alerts(lines, today=TODAY), "seasonal-opportunity")

    assert alert.data["month"] == "July"
    assert alert.data["products"][0]["product"] == "Drip kit"


def test_seasonal_wraps_to_january(make_line):
    lines = [make_line(product="Seed mix", quantity=1, price=10, date=date(2024, 1, 5))]
    alert = _alert(generate_alerts(lines, today=date(2024, 12, 15)), "seasonal-opportunity")

    assert alert.data["month"] == "January"


def test_alerts_sorted_by_priority(make_line):
    lines = [
        make_line(client="Old Farm", product="P2", quantity=50, price=100, date=date(2024, 3, 1)),
        make_line(client="Nova", product="P3", quantity=4, price=100, date=date(2024, 5, 20)),
        make_line(client="Nova", product="P3", quantity=10, price=100, date=date(2024, 6, 20)),
        make_line(client="Nova", product="P4", quantity=1, price=100, date=date(2024, 7, 2)),
    ]
    response = generate_alerts(lines, today=TODAY)
    ranks = [PRIORITY_ORDER[a.priority] for a in response.alerts]

    assert ranks == sorted(ranks)
    assert response.total == len(response.alerts)


def test_no_data_no_alerts():
    response = generate_alerts([], today=TODAY)

    assert response.total == 0
    assert response.generated_at == TODAY

import asyncio
from datetime import date

import httpx
import pytest
from sqlalchemy.exc import IntegrityError

from portal.application.services.sync_service import invoice_to_lines, item_category, sync_invoices, sync_items
from portal.core.exceptions import ExternalServiceException
from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.models.product import Product
from portal.domain.models.sync_log import SyncLog
from portal.infrastructure.repositories.invoice_repository import SQLAlchemyInvoiceRepository
from portal.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
from portal.infrastructure.zoho_client import ZohoBooksClient
from portal.interfaces.deps import get_zoho_client
from portal.main import app

INVOICES = {
    "invoices": [
        {"invoice_id": "0", "invoice_number": "INV-000"},
        {"invoice_id": "1", "invoice_number": "INV-001"},
        {"invoice_id": "2", "invoice_number": "INV-002"},
    ],
    "page_context": {"has_more_page": False},
}

INVOICE_001 = {
    "invoice": {
        "invoice_number": "INV-001",
        "customer_name": "Ferme Atlas",
        "date": "2024-06-10",
        "status": "Paid",
        "line_items": [
            {"name": "NPK 15-15-15", "quantity": 10, "rate": 100},
            {"name": "Mancozeb 80 WP", "quantity": "2", "rate": "55.5"},
        ],
    }
}

ITEMS = {
    "items": [
        {"item_id": "10", "name": "NPK 15-15-15", "cf_category": "Engrais"},
        {"item_id": "11", "name": "Mancozeb 80 WP", "custom_fields": [{"label": "Category", "value": "Fongicides"}]},
        {"item_id": "12", "name": ""},
    ],
    "page_context": {"has_more_page": False},
}


def zoho_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/invoices"):
        return httpx.Response(200, json=INVOICES)
    if path.endswith("/invoices/1"):
        return httpx.Response(200, json=INVOICE_001)
    if path.endswith("/items"):
        return httpx.Response(200, json=ITEMS)
    return httpx.Response(500, json={"message": "boom"})


def _zoho(handler=zoho_handler) -> ZohoBooksClient:
    client = ZohoBooksClient(organization_id="20099", access_token="token", transport=httpx.MockTransport(handler))
    client.retry_delay = 0
    return client


@pytest.fixture
def invoice_repo(db_session):
    return SQLAlchemyInvoiceRepository(db_session, InvoiceLine)


def test_invoice_to_lines():
    lines = invoice_to_lines(INVOICE_001["invoice"])

    assert [(l.invoice_id, l.client_name, l.product, l.quantity, l.price, l.status) for l in lines] == [
        ("INV-001", "Ferme Atlas", "NPK 15-15-15", 10, 100, "paid"),
        ("INV-001", "Ferme Atlas", "Mancozeb 80 WP", 2, 55.5, "paid"),
    ]
    assert lines[0].date == date(2024, 6, 10)


def test_item_category():
    assert item_category(ITEMS["items"][0]) == "Engrais"
    assert item_category(ITEMS["items"][1]) == "Fongicides"
    assert item_category(ITEMS["items"][2]) is None


def test_full_sync_skips_existing_and_counts_failures(db_session, invoice_repo, add_lines):
    add_lines(dict(invoice_id="INV-000", client_name="Domaine Souss", product="NPK 15-15-15", quantity=1, price=1))

    result = asyncio.run(sync_invoices(db_session, invoice_repo, _zoho()))

    assert result.records_seen == 3
    assert result.records_skipped == 1
    assert result.records_imported == 1
    assert result.lines_inserted == 2
    assert len(result.errors) == 1 and result.errors[0].startswith("INV-002")
    assert result.status == "partial_success"
    assert invoice_repo.count() == 3

    log = db_session.get(SyncLog, result.log_id)
    assert (log.sync_type, log.records_processed, log.records_skipped, log.status) == ("full", 2, 1, "partial_success")


def test_rerun_only_appends_new_invoices(db_session, invoice_repo):
    asyncio.run(sync_invoices(db_session, invoice_repo, _zoho()))
    second = asyncio.run(sync_invoices(db_session, invoice_repo, _zoho()))

    assert second.records_skipped == 1
    assert second.lines_inserted == 0
    assert invoice_repo.count_invoices() == 1


def _listing(*invoices) -> dict:
    return {"invoices": list(invoices), "page_context": {"has_more_page": False}}


def _invoice(number: str) -> dict:
    return {"invoice": dict(INVOICE_001["invoice"], invoice_number=number)}


def test_bad_invoice_does_not_stop_the_run(db_session, invoice_repo):
    listing = _listing(
        {"invoice_id": "1", "invoice_number": "INV-001"},
        {"invoice_number": "INV-003"},
        {"invoice_id": "2", "invoice_number": "INV-002"},
    )

    def handler(request):
        path = request.url.path
        if path.endswith("/invoices"):
            return httpx.Response(200, json=listing)
        if path.endswith("/invoices/1"):
            return httpx.Response(200, text="<html>gateway</html>")
        return httpx.Response(200, json=_invoice("INV-002"))

    result = asyncio.run(sync_invoices(db_session, invoice_repo, _zoho(handler)))

    assert result.records_imported == 1
    assert result.lines_inserted == 2
    assert [e.split(":")[0] for e in result.errors] == ["INV-001", "INV-003"]
    assert "invalid JSON" in result.errors[0]
    assert result.status == "partial_success"
    assert invoice_repo.invoice_exists("INV-002")
    assert not invoice_repo.invoice_exists("INV-001")

    log = db_session.get(SyncLog, result.log_id)
    assert (log.records_processed, log.status) == (2, "partial_success")


def test_database_error_is_recorded_and_run_continues(db_session, invoice_repo, monkeypatch):
    listing = _listing(
        {"invoice_id": "1", "invoice_number": "INV-001"},
        {"invoice_id": "2", "invoice_number": "INV-002"},
    )

    def handler(request):
        if request.url.path.endswith("/invoices"):
            return httpx.Response(200, json=listing)
        return httpx.Response(200, json=_invoice("INV-00" + request.url.path[-1]))

    add_many = invoice_repo.add_many
    calls = []

    def failing_once(lines):
        calls.append(lines)
        if len(calls) == 1:
            raise IntegrityError("INSERT INTO facture", {}, Exception("UNIQUE constraint failed: facture.id"))
        return add_many(lines)

    monkeypatch.setattr(invoice_repo, "add_many", failing_once)
    result = asyncio.run(sync_invoices(db_session, invoice_repo, _zoho(handler)))

    assert result.records_imported == 1
    assert result.errors[0].startswith("INV-001: Duplicate record rejected")
    assert invoice_repo.invoice_exists("INV-002")
    assert db_session.query(SyncLog).count() == 1


def test_item_sync_crash_still_writes_log(db_session, monkeypatch):
    repo = SQLAlchemyProductRepository(db_session, Product)

    def crash(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(repo, "upsert", crash)
    with pytest.raises(RuntimeError):
        asyncio.run(sync_items(db_session, repo, _zoho()))

    log = db_session.query(SyncLog).one()
    assert (log.sync_type, log.status) == ("items", "failed")
    assert "boom" in log.error_message


def test_client_retries_non_json_bodies_then_fails():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="<html>gateway</html>")

    client = _zoho(handler)
    with pytest.raises(ExternalServiceException) as exc:
        asyncio.run(client.get_invoice("1"))
    assert len(calls) == client.max_retries
    assert "invalid JSON" in exc.value.message


def test_unconfigured_client_fails_sync(db_session, invoice_repo):
    result = asyncio.run(sync_invoices(db_session, invoice_repo, ZohoBooksClient()))

    assert result.status == "failed"
    assert "not configured" in result.errors[0]
    assert db_session.query(SyncLog).count() == 1


def test_item_sync_upserts_catalog(db_session):
    repo = SQLAlchemyProductRepository(db_session, Product)
    result = asyncio.run(sync_items(db_session, repo, _zoho()))

    assert result.status == "success"
    assert result.records_skipped == 1
    assert result.records_imported == 2
    assert repo.list_categories() == ["Engrais", "Fongicides"]

    again = asyncio.run(sync_items(db_session, repo, _zoho()))
    assert again.records_imported == 0
    assert repo.count() == 2


def test_client_retries_rate_limits():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, json={"message": "slow down"})
        return httpx.Response(200, json=INVOICES)

    invoices, has_more = asyncio.run(_zoho(handler).list_invoices(page=1))

    assert len(calls) == 2
    assert len(invoices) == 3 and has_more is False
    assert calls[1].headers["Authorization"] == "Zoho-oauthtoken token"
    assert calls[1].url.params["organization_id"] == "20099"


def test_client_gives_up_on_client_errors():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404, json={"message": "not found"})

    with pytest.raises(ExternalServiceException):
        asyncio.run(_zoho(handler).get_invoice("404"))
    assert len(calls) == 1


def test_sync_api(client, admin_headers, client_headers):
    app.dependency_overrides[get_zoho_client] = lambda: _zoho()

    assert client.post("/api/sync/invoices", headers=client_headers).status_code == 403

    r = client.post("/api/sync/invoices", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["lines_inserted"] == 2

    r = client.get("/api/sync/status", headers=admin_headers)
    assert r.json()["configured"] is True
    assert r.json()["invoice_lines"] == 2
    assert r.json()["unique_clients"] == 1
    assert r.json()["last_sync"]["sync_type"] == "full"

    r = client.get("/api/sync/logs", headers=admin_headers)
    assert len(r.json()) == 1

import pytest

PDF = b"%PDF-1.4\n% test catalogue\n%%EOF\n"


@pytest.fixture
def uploaded(client, admin_headers):
    r = client.post(
        "/api/catalogues",
        files={"file": ("spring_price-list.pdf", PDF, "application/pdf")},
        headers=admin_headers,
    )
    assert r.status_code == 201
    return r.json()


def test_upload_derives_title(uploaded, admin_user, storage):
    assert uploaded["title"] == "Spring price list"
    assert uploaded["file_size"] == len(PDF)
    assert uploaded["uploaded_by"] == admin_user.id
    assert uploaded["file_url"] == f"/storage/catalogues/{uploaded['file_name']}"
    assert storage.exists("catalogues", uploaded["file_name"])


def test_upload_with_explicit_title(client, admin_headers):
    r = client.post(
        "/api/catalogues",
        data={"title": "Catalogue 2025"},
        files={"file": ("cat.pdf", PDF, "application/pdf")},
        headers=admin_headers,
    )
    assert r.json()["title"] == "Catalogue 2025"


def test_list_count_and_download(client, client_headers, uploaded):
    r = client.get("/api/catalogues", headers=client_headers)
    assert [c["id"] for c in r.json()] == [uploaded["id"]]

    r = client.get("/api/catalogues/count", headers=client_headers)
    assert r.json() == {"count": 1}

    r = client.get(f"/api/catalogues/{uploaded['id']}/download", headers=client_headers)
    assert r.status_code == 200
    assert r.content == PDF
    assert r.headers["content-type"] == "application/pdf"


def test_only_pdf_accepted(client, admin_headers):
    r = client.post(
        "/api/catalogues",
        files={"file": ("prices.xlsx", b"PK\x03\x04", "application/vnd.ms-excel")},
        headers=admin_headers,
    )
    assert r.status_code == 422
    assert r.json()["error"]["message"] == "Only PDF files are accepted"


def test_clients_cannot_upload_or_delete(client, client_headers, uploaded):
    r = client.post(
        "/api/catalogues",
        files={"file": ("cat.pdf", PDF, "application/pdf")},
        headers=client_headers,
    )
    assert r.status_code == 403
    assert client.delete(f"/api/catalogues/{uploaded['id']}", headers=client_headers).status_code == 403


def test_delete_removes_row_and_file(client, admin_headers, uploaded, storage):
    r = client.delete(f"/api/catalogues/{uploaded['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert "Spring price list" in r.json()["message"]

    assert not storage.exists("catalogues", uploaded["file_name"])
    assert client.get("/api/catalogues/count", headers=admin_headers).json() == {"count": 0}
    assert client.delete(f"/api/catalogues/{uploaded['id']}", headers=admin_headers).status_code == 404


def test_download_missing_file(client, admin_headers, uploaded, storage):
    storage.remove("catalogues", uploaded["file_name"])

    r = client.get(f"/api/catalogues/{uploaded['id']}/download", headers=admin_headers)
    assert r.status_code == 404

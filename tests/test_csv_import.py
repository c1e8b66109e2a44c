import os

from sqlalchemy import text

from portal.application.services.csv_importer import table_name_for
from portal.config import get_settings

SALES = "Client;Produit;Qté;id\nFerme Atlas;NPK 15-15-15;10;A1\n\nDomaine Souss; Mancozeb ;;A2\n".encode("utf-8")


def _upload(client, headers, content=SALES, name="Ventes 2024.csv", path="/api/csv-import"):
    return client.post(path, files={"file": (name, content, "text/csv")}, headers=headers)


def test_table_name_for():
    assert table_name_for("Ventes 2024.csv") == "ventes_2024"
    assert table_name_for("2024-stock.CSV") == "t_2024_stock"


def test_preview(client, client_headers):
    r = _upload(client, client_headers, path="/api/csv-import/preview")
    assert r.status_code == 200
    body = r.json()

    assert body["table_name"] == "ventes_2024"
    assert body["headers"] == ["Client", "Produit", "Qté", "csv_id"]
    assert body["row_count"] == 2
    assert body["rows"][1] == {"Client": "Domaine Souss", "Produit": "Mancozeb", "Qté": None, "csv_id": "A2"}


def test_import_creates_table_and_appends(client, admin_headers, db_session):
    r = _upload(client, admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["row_count"] == 2

    _upload(client, admin_headers)
    rows = db_session.execute(text('SELECT "Client", "csv_id" FROM ventes_2024 ORDER BY id')).all()
    assert [tuple(row) for row in rows] == [
        ("Ferme Atlas", "A1"),
        ("Domaine Souss", "A2"),
        ("Ferme Atlas", "A1"),
        ("Domaine Souss", "A2"),
    ]


def test_header_mismatch_rejected(client, admin_headers):
    _upload(client, admin_headers)

    r = _upload(client, admin_headers, content=b"Client,Total\nFerme Atlas,100\n")
    assert r.status_code == 422
    assert "structure mismatch" in r.json()["error"]["message"]

    history = client.get("/api/csv-import", headers=admin_headers).json()
    assert [h["status"] for h in history] == ["failed", "completed"]


def test_reserved_table_name_rejected(client, admin_headers):
    r = _upload(client, admin_headers, content=b"a,b\n1,2\n", name="users.csv")
    assert r.status_code == 422


def test_header_only_file_rejected(client, admin_headers):
    r = _upload(client, admin_headers, content=b"a,b\n")
    assert r.status_code == 422


def test_only_csv_files(client, admin_headers):
    r = _upload(client, admin_headers, name="sales.xlsx")
    assert r.status_code == 400


def test_import_is_admin_only(client, client_headers):
    assert _upload(client, client_headers).status_code == 403
    assert client.get("/api/csv-import", headers=client_headers).status_code == 403


def test_uploaded_files_are_removed(client, admin_headers):
    before = set(os.listdir(get_settings().UPLOAD_DIR))

    assert _upload(client, admin_headers).status_code == 200
    assert _upload(client, admin_headers, content=b"Client,Total\nFerme Atlas,100\n").status_code == 422

    assert set(os.listdir(get_settings().UPLOAD_DIR)) == before

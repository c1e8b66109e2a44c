import itertools
import os
import tempfile
from types import SimpleNamespace
from typing import Generator

# Settings are read once at import time; point everything at a scratch dir first.
_TMP = tempfile.mkdtemp(prefix="portal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'portal.db')}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["STORAGE_DIR"] = os.path.join(_TMP, "storage")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.makedirs(os.environ["UPLOAD_DIR"], exist_ok=True)
os.environ["ZOHO_ORG_ID"] = ""
os.environ["ZOHO_ACCESS_TOKEN"] = ""
os.environ["ZOHO_REFRESH_TOKEN"] = ""
os.environ["ZOHO_REQUEST_DELAY"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.main import app
from portal.infrastructure.database import Base, get_db
from portal.infrastructure.storage import LocalStorage, get_storage
from portal.application.services.auth_service import create_user, issue_token
from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.models.product import Product
from portal.domain.models.user import ROLE_ADMIN


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "storage"), "/storage")


@pytest.fixture(scope="function")
def client(db_session, storage):
    # Override dependencies to use the same session and a throwaway bucket root
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _auth(user) -> dict:
    token = issue_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session):
    return create_user(db_session, "Admin", "admin@test.ma", "secret123", role=ROLE_ADMIN)


@pytest.fixture
def client_user(db_session):
    return create_user(db_session, "Ferme Atlas", "atlas@test.ma", "secret123")


@pytest.fixture
def admin_headers(admin_user):
    return _auth(admin_user)


@pytest.fixture
def client_headers(client_user):
    return _auth(client_user)


@pytest.fixture
def add_lines(db_session):
    """Insert invoice lines given as keyword dicts."""
    def _add(*rows):
        lines = [InvoiceLine(**row) for row in rows]
        db_session.add_all(lines)
        db_session.commit()
        return lines
    return _add


@pytest.fixture
def add_products(db_session):
    """Insert catalog entries given as (name, category) pairs."""
    def _add(*pairs):
        products = [Product(item_name=name, category=category) for name, category in pairs]
        db_session.add_all(products)
        db_session.commit()
        return products
    return _add


@pytest.fixture
def make_line():
    """In-memory invoice line for the pure rollup/analytics functions."""
    ids = itertools.count(1)

    def _make(client="Ferme Atlas", product="NPK 15-15-15", quantity=1, price=100,
              invoice_id="INV-1", date=None, status="paid"):
        return SimpleNamespace(
            id=next(ids),
            invoice_id=invoice_id,
            client_name=client,
            date=date,
            product=product,
            quantity=quantity,
            price=price,
            status=status,
        )
    return _make


@pytest.fixture
def catalog():
    return [
        SimpleNamespace(item_name="NPK 15-15-15", category="Engrais"),
        SimpleNamespace(item_name="Mancozeb 80 WP", category="Fongicides"),
    ]

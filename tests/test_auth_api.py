from portal.application.services.auth_service import seed_default_admin
from portal.config import get_settings


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_register_creates_client(client):
    r = client.post(
        "/api/auth/register",
        json={"name": " Domaine Souss ", "email": "Souss@Example.MA", "password": "secret123", "role": "admin"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["name"] == "Domaine Souss"
    assert user["email"] == "souss@example.ma"
    assert user["role"] == "client"


def test_register_duplicate_email(client, client_user):
    r = client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "ATLAS@test.ma", "password": "secret123"},
    )
    assert r.status_code == 400


def test_register_validation(client):
    r = client.post("/api/auth/register", json={"name": "   ", "email": "x@y.ma", "password": "secret123"})
    assert r.status_code == 422

    r = client.post("/api/auth/register", json={"name": "X", "email": "not-an-email", "password": "secret123"})
    assert r.status_code == 422

    r = client.post("/api/auth/register", json={"name": "X", "email": "x@y.ma", "password": "123"})
    assert r.status_code == 422


def test_login_and_me(client, client_user):
    r = client.post("/api/auth/login", json={"email": "atlas@test.ma", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "atlas@test.ma"

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert r.status_code == 200
    assert r.json()["name"] == "Ferme Atlas"


def test_login_wrong_password(client, client_user):
    r = client.post("/api/auth/login", json={"email": "atlas@test.ma", "password": "wrong"})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_inactive_user_rejected(client, db_session, client_user, client_headers):
    client_user.is_active = False
    db_session.commit()

    assert client.get("/api/auth/me", headers=client_headers).status_code == 401


def test_seed_default_admin_runs_once(db_session):
    admin = seed_default_admin(db_session)
    assert admin.role == "admin"
    assert admin.email == get_settings().DEFAULT_ADMIN_EMAIL.lower()
    assert seed_default_admin(db_session) is None

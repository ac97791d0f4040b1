import pytest
from fastapi.testclient import TestClient

from dealdesk.config.env import Settings
from dealdesk.main import create_app

from fakes import FakeStore

PASSWORD = "longenough1"


@pytest.fixture
def settings():
    return Settings(
        env="test",
        jwt_secret="test-secret",
        access_token_minutes=30,
        signin_max_attempts=3,
        signin_window_seconds=60,
        admin_emails=["admin@dealdesk.io"],
        log_level="WARNING",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, email, password=PASSWORD, role=None):
    body = {"email": email, "password": password}
    if role:
        body["role"] = role
    return client.post("/auth/signup", json=body)


def signin_headers(client, email, password=PASSWORD) -> dict:
    resp = client.post("/auth/signin", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    # drop the cookie so each caller is identified by its own header
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def make_user(client):
    def _make(email, role=None):
        resp = signup(client, email, role=role)
        assert resp.status_code == 201, resp.text
        return resp.json(), signin_headers(client, email)

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice@dealdesk.io")


@pytest.fixture
def bob(make_user):
    return make_user("bob@dealdesk.io")


@pytest.fixture
def carol(make_user):
    return make_user("carol@dealdesk.io")


@pytest.fixture
def admin(make_user):
    return make_user("admin@dealdesk.io", role="admin")


@pytest.fixture
def make_listing(client):
    def _make(headers, title="Vintage bike", price=120.0, description="Barely used"):
        resp = client.post(
            "/listings",
            json={"title": title, "price": price, "description": description},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make

"""HTTP tests for the FastAPI app with in-memory collaborators."""

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from conftest import OTHER_ORDER_ID, OWNED_ORDER_ID
from shopchat import replies
from shopchat.config import settings
from shopchat.dependencies import get_chat_service
from shopchat.main import app
from shopchat.orders import ORDER_FORBIDDEN_MESSAGE
from shopchat.ratelimit import InMemoryRateLimiter, get_rate_limiter


@pytest.fixture
def limiter():
    return InMemoryRateLimiter(window_ms=60_000, max_requests=2)


@pytest.fixture
def client(chat_service, limiter):
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_chat_reply_and_rate_headers(client):
    response = client.post("/chat", json={"message": "hola"})

    assert response.status_code == 200
    assert response.json() == {"reply": replies.SMALLTALK}
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "1"
    assert "X-RateLimit-Reset" in response.headers
    assert "Retry-After" not in response.headers


def test_rate_limit_returns_429(client):
    """Past the budget the request is refused before reaching the chat."""

    client.post("/chat", json={"message": "hola"})
    client.post("/chat", json={"message": "hola"})
    response = client.post("/chat", json={"message": "hola"})

    assert response.status_code == 429
    assert response.json() == {"reply": replies.RATE_LIMITED}
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert 0 < int(response.headers["Retry-After"]) <= 60


def test_forwarded_clients_get_separate_windows(client, monkeypatch):
    monkeypatch.setattr("shopchat.main.settings", replace(settings, trust_forwarded_for=True))

    for _ in range(2):
        client.post("/chat", json={"message": "hola"}, headers={"X-Forwarded-For": "10.0.0.1"})
    other = client.post("/chat", json={"message": "hola"}, headers={"X-Forwarded-For": "10.0.0.2, 172.16.0.1"})

    assert other.status_code == 200


def test_missing_message_is_rejected(client):
    assert client.post("/chat", json={"userId": "u-ana"}).status_code == 422


def test_gateway_headers_identify_the_caller(client):
    path = f"estado de la orden {OTHER_ORDER_ID}"

    as_ana = client.post("/chat", json={"message": path}, headers={"X-User-Id": "u-ana"})
    as_admin = client.post(
        "/chat", json={"message": path}, headers={"X-User-Id": "u-staff", "X-User-Roles": "support, admin"}
    )

    assert as_ana.json() == {"reply": ORDER_FORBIDDEN_MESSAGE}
    assert as_admin.json()["reply"].startswith(f"Orden {OTHER_ORDER_ID}")


def test_body_user_id_is_a_fallback(client):
    response = client.post("/chat", json={"message": f"estado de la orden {OWNED_ORDER_ID}", "userId": "u-ana"})

    assert response.json()["reply"].startswith(f"Orden {OWNED_ORDER_ID}")


def test_health_reports_memory_store(client, monkeypatch):
    monkeypatch.setattr("shopchat.main.settings", replace(settings, store_backend="memory"))

    assert client.get("/health").json() == {"store": "memory"}


def test_reindex_requires_elasticsearch(client, monkeypatch):
    monkeypatch.setattr("shopchat.main.settings", replace(settings, store_backend="memory"))

    assert client.post("/reindex").status_code == 400
from fastapi.testclient import TestClient
from orstock.main import app
from orstock.services.stock_service import stock_service


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.headers["Cache-Control"].startswith("no-store")


def test_pages_are_served(client):
    login = client.get("/")
    assert login.status_code == 200
    assert "login-form" in login.text

    assert "/api/stock" in client.get("/stock").text
    assert "/api/time-gate" in client.get("/stock/cabinet/3").text


def test_unhandled_error_returns_500_with_message(client, monkeypatch):
    async def broken_summary(db):
        raise RuntimeError("lockers table unavailable")

    monkeypatch.setattr(stock_service, "summarize", broken_summary)
    # The error handler's response is what a real client sees; don't re-raise into the test
    lenient = TestClient(app, raise_server_exceptions=False)
    r = lenient.get("/api/stock")
    assert r.status_code == 500
    assert r.json() == {"error": "lockers table unavailable"}


def test_unknown_route_uses_error_body(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}

from fastapi.testclient import TestClient

from storefront.main import app


def test_health():
    c = TestClient(app)
    r = c.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]


def test_request_id_is_echoed():
    c = TestClient(app)
    r = c.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_unknown_route_is_404():
    c = TestClient(app)
    assert c.get("/v1/nope").status_code == 404


def test_protected_route_requires_session():
    c = TestClient(app)
    r = c.get("/v1/auth/me")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"

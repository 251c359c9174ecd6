"""HTTP surface: envelopes, admin guard and the end-to-end visit round trip."""

import pytest
from fastapi.testclient import TestClient

from conftest import VISITOR
from gatepass.config import config
from gatepass.main import create_app

VISITOR_BODY = {
    "email": "a@x.com",
    "name": VISITOR["name"],
    "mobileNumber": VISITOR["mobile_number"],
    "purpose": VISITOR["purpose"],
    "visitDateAndTime": VISITOR["visit_at"],
}


@pytest.fixture
def client(db, mailer, renderer, clock, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_REGISTRATION_OPEN", True)
    app = create_app(db=db, mailer=mailer, credential_renderer=renderer, clock=clock)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    creds = {"name": "gatekeeper", "password": "s3cret-pass"}
    assert client.post("/api/auth/register", json=creds).status_code == 201
    resp = client.post("/api/auth/login", json=creds)
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['data']['accessToken']}"}


def register_visitor(client, mailer, **overrides):
    body = dict(VISITOR_BODY, **overrides)
    resp = client.post("/api/visitors/send-code", json=body)
    assert resp.status_code == 200, resp.json()
    otp = mailer.last_code(body["email"])
    resp = client.post("/api/visitors/verify", json=dict(body, otp=otp))
    assert resp.status_code == 201, resp.json()
    return resp.json()["data"]


def test_health(client):
    resp = client.get("/api/health")
    assert resp.json() == {"status": "ok", "dataAvailable": True, "message": None}


def test_full_visit_round_trip(client, mailer, renderer, clock, admin_headers):
    visit = register_visitor(client, mailer)
    assert visit["status"] == "pending"
    assert visit["isVerified"] is True
    assert visit["isVisited"] is False

    pending = client.get("/api/requests", headers=admin_headers).json()["data"]["requests"]
    assert [p["email"] for p in pending] == ["a@x.com"]

    resp = client.post(f"/api/requests/{visit['id']}/approve", headers=admin_headers)
    assert resp.status_code == 200
    token = renderer.rendered[-1]

    resp = client.post("/api/scan", json={"qrString": token}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Entry logged successfully"
    assert body["data"]["event"] == "entry"
    assert body["data"]["user"] == {"name": VISITOR["name"], "email": "a@x.com"}

    clock.advance(minutes=20)
    resp = client.post("/api/scan", json={"qrString": token}, headers=admin_headers)
    assert resp.json()["message"] == "Exit logged successfully"

    resp = client.get(
        "/api/reports/visits",
        params={"startDate": "2024-05-01", "endDate": "2024-05-02", "status": "completed"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["rows"]) == 1
    assert data["rows"][0]["status"] == "Completed"
    assert data["rows"][0]["durationMinutes"] == 20
    assert data["summary"]["completed"] == 1

    lookup = client.get("/api/visits/lookup", params={"email": "a@x.com"}, headers=admin_headers).json()
    assert lookup["data"]["isVisited"] is False
    assert len(lookup["data"]["entries"]) == 1


def test_admin_endpoints_require_token(client):
    for method, path in [
        ("get", "/api/requests"),
        ("post", "/api/scan"),
        ("get", "/api/reports/visits"),
        ("get", "/api/analytics"),
        ("post", "/api/maintenance/purge-expired"),
    ]:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401, path
        assert resp.json()["success"] is False


def test_bad_token_is_rejected(client):
    resp = client.get("/api/requests", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_wrong_password(client, admin_headers):
    resp = client.post("/api/auth/login", json={"name": "gatekeeper", "password": "nope"})
    assert resp.status_code == 401


def test_registration_closed(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_REGISTRATION_OPEN", False)
    resp = client.post("/api/auth/register", json={"name": "x", "password": "y"})
    assert resp.status_code == 401


def test_error_envelope(client):
    resp = client.post("/api/visitors/send-code", json=dict(VISITOR_BODY, mobileNumber="123"))
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["statusCode"] == 400
    assert body["errors"] == []
    assert body["message"]


def test_wrong_otp(client, mailer):
    client.post("/api/visitors/send-code", json=VISITOR_BODY)
    code = mailer.last_code("a@x.com")
    wrong = "000000" if code != "000000" else "999999"
    resp = client.post("/api/visitors/verify", json=dict(VISITOR_BODY, otp=wrong))
    assert resp.status_code == 400


def test_invalid_scan_is_forbidden(client, admin_headers):
    resp = client.post("/api/scan", json={"qrString": "forged"}, headers=admin_headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Invalid or expired QR code"


def test_corrupt_state_hides_details(client, db, mailer, renderer, admin_headers):
    from sqlalchemy import update

    from gatepass.models.tables import visit_records

    visit = register_visitor(client, mailer)
    client.post(f"/api/requests/{visit['id']}/approve", headers=admin_headers)
    with db.get_connection() as conn:
        conn.execute(update(visit_records).values(presence="INSIDE"))

    resp = client.post("/api/scan", json={"qrString": renderer.rendered[-1]}, headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Internal server error"


def test_delivery_failure_on_approve(client, mailer, admin_headers):
    visit = register_visitor(client, mailer)
    mailer.fail = True
    resp = client.post(f"/api/requests/{visit['id']}/approve", headers=admin_headers)
    assert resp.status_code == 502
    mailer.fail = False

    resp = client.post(f"/api/requests/{visit['id']}/resend-credential", headers=admin_headers)
    assert resp.status_code == 200


def test_reject_then_lookup_is_not_found(client, mailer, admin_headers):
    visit = register_visitor(client, mailer)
    resp = client.post(f"/api/requests/{visit['id']}/reject", headers=admin_headers)
    assert resp.status_code == 200

    resp = client.get("/api/visits/lookup", params={"email": "a@x.com"}, headers=admin_headers)
    assert resp.status_code == 404

    resp = client.post(f"/api/requests/{visit['id']}/approve", headers=admin_headers)
    assert resp.status_code == 404


def test_pdf_report(client, mailer, admin_headers):
    register_visitor(client, mailer)
    resp = client.get(
        "/api/reports/visits.pdf",
        params={"startDate": "2024-05-02", "endDate": "2024-05-02"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


def test_report_requires_dates(client, admin_headers):
    resp = client.get("/api/reports/visits", headers=admin_headers)
    assert resp.status_code == 400


def test_analytics_and_purge(client, mailer, admin_headers):
    register_visitor(client, mailer)
    summary = client.get("/api/analytics", headers=admin_headers).json()["data"]["summary"]
    assert summary == {"total_visitors": 1, "pending": 1, "approved": 0, "inside": 0}

    resp = client.post("/api/maintenance/purge-expired", headers=admin_headers)
    assert resp.json()["data"] == {"codes": 0, "credentials": 0}


def test_search_visits(client, mailer, admin_headers):
    register_visitor(client, mailer)
    register_visitor(client, mailer, email="b@x.com", name="Bob Builder")

    resp = client.get("/api/visits/search", params={"query": "bob"}, headers=admin_headers)
    assert [v["email"] for v in resp.json()["data"]] == ["b@x.com"]


def test_overlong_name_is_rejected(client, mailer):
    resp = client.post("/api/visitors/send-code", json=dict(VISITOR_BODY, name="A" * 256))
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "name"
    assert mailer.sent == []


def test_unknown_report_status_is_rejected(client, admin_headers):
    resp = client.get(
        "/api/reports/visits",
        params={"startDate": "2024-05-02", "endDate": "2024-05-02", "status": "visited"},
        headers=admin_headers,
    )
    assert resp.status_code == 400


def test_admin_registration_closed_by_default(monkeypatch):
    from gatepass.config import _env_bool

    monkeypatch.delenv("ADMIN_REGISTRATION_OPEN", raising=False)
    assert _env_bool("ADMIN_REGISTRATION_OPEN") is False

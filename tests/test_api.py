"""
HTTP surface tests.

Guards against:
1. Protected routes answering without a session
2. Service errors leaking as 500s instead of 400/404
3. The public tracking endpoint requiring a login
"""
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.main import app
from app.models.campaign import Campaign, CampaignLog
from app.models.tracking import ClickEvent, PageVisit


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_protected_route_requires_session(db):
    response = TestClient(app).get("/customers")
    assert response.status_code == 401


def test_health_is_public(db):
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "ok"
    assert response.headers["X-Robots-Tag"] == "noindex, nofollow"
    assert response.headers["Cache-Control"] == "private, no-store"


def test_dashboard_gate_requires_basic_credentials(db, monkeypatch):
    gated = SimpleNamespace(dash_user="team", dash_pass="s3cret")
    monkeypatch.setattr("app.middleware.security_middleware.get_settings", lambda: gated)
    anon = TestClient(app)

    assert anon.get("/robots.txt").status_code == 200
    for auth in (None, ("team", "wrong")):
        refused = anon.get("/", auth=auth)
        assert refused.status_code == 401
        assert "WWW-Authenticate" in refused.headers

    # Past the gate the session check still applies
    passed = anon.get("/", auth=("team", "s3cret"))
    assert passed.status_code == 401
    assert "WWW-Authenticate" not in passed.headers
    assert passed.json() == {"detail": "Not authenticated"}


def test_login_sets_cookie_and_me_works(db, user):
    anon = TestClient(app)
    response = anon.post("/auth/login", json={"email": "Owner@Example.com", "password": "correct-horse"})
    assert response.status_code == 200
    assert response.json()["token"]

    me = anon.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "owner@example.com"
    assert "password_hash" not in me.json()["data"]


def test_bad_password_rejected(db, user):
    response = TestClient(app).post("/auth/login", json={"email": "owner@example.com", "password": "nope"})
    assert response.status_code == 401


def test_logout_invalidates_token(client):
    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_change_password_signs_out_everywhere(client):
    response = client.put("/auth/password", json={"current_password": "correct-horse", "new_password": "new-password-1"})
    assert response.status_code == 200
    assert client.get("/auth/me").status_code == 401

    anon = TestClient(app)
    assert anon.post("/auth/login", json={"email": "owner@example.com", "password": "new-password-1"}).status_code == 200


def test_change_password_checks_current(client):
    response = client.put("/auth/password", json={"current_password": "wrong-one", "new_password": "new-password-1"})
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def test_customer_crud(client):
    created = client.post("/customers", json={
        "full_name": "Ana Silva", "email": "ana@example.com", "phone": "+351900000000",
    })
    assert created.status_code == 201
    customer_id = created.json()["data"]["id"]

    updated = client.put(f"/customers/{customer_id}", json={"city": "Lisbon"})
    assert updated.json()["data"]["city"] == "Lisbon"

    listing = client.get("/customers").json()
    assert listing["total"] == 1
    assert listing["eligible"] == 1

    assert client.post(f"/customers/{customer_id}/opt-out").json()["data"]["opt_out"] is True
    assert client.get("/customers").json()["eligible"] == 0

    assert client.delete(f"/customers/{customer_id}").status_code == 200
    assert client.get(f"/customers/{customer_id}").status_code == 404


def test_invalid_customer_is_400(client):
    response = client.post("/customers", json={
        "full_name": "Ana", "email": "ana@example.com", "phone": "1", "campaigns_accepted": 9,
    })
    assert response.status_code == 400


def test_null_opt_out_update_is_400(client, user, make_customer):
    customer = make_customer(user)
    response = client.put(f"/customers/{customer.id}", json={"opt_out": None})
    assert response.status_code == 400
    assert client.get(f"/customers/{customer.id}").json()["data"]["opt_out"] is False


def test_other_users_customer_is_404(client, other_user, make_customer):
    foreign = make_customer(other_user)
    assert client.get(f"/customers/{foreign.id}").status_code == 404


# ---------------------------------------------------------------------------
# Campaigns and messaging
# ---------------------------------------------------------------------------

def test_messaging_without_customers_is_400(client):
    response = client.post("/messaging/whatsapp", json={
        "campaign_name": "Promo", "message_template": "Hi", "send_to_all": True,
    })
    assert response.status_code == 400


def test_campaign_send_logs_failures_when_provider_unconfigured(client, db, user, make_customer):
    make_customer(user)
    campaign = client.post("/campaigns", json={"name": "Launch", "message_template": "Hi {{customer_name}}"})
    campaign_id = campaign.json()["data"]["id"]

    response = client.post(f"/campaigns/{campaign_id}/send")
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["total"], data["sent"], data["failed"]) == (1, 0, 1)

    logs = client.get(f"/campaigns/{campaign_id}/logs").json()["data"]
    assert [entry["status"] for entry in logs] == ["failed"]
    assert db.query(CampaignLog).one().error_message == "WhatsApp provider is not configured"


def test_messaging_with_foreign_campaign_is_404(client, db, other_user, make_customer, user):
    mine = make_customer(user)
    theirs = Campaign(user_id=other_user.id, name="Theirs", message_template="Hi")
    db.add(theirs)
    db.commit()

    response = client.post("/messaging/whatsapp", json={
        "campaign_name": "Promo", "message_template": "Hi",
        "customer_ids": [mine.id], "campaign_id": theirs.id,
    })

    assert response.status_code == 404
    assert db.query(CampaignLog).filter(CampaignLog.campaign_id == theirs.id).count() == 0


def test_generate_campaign_copy(client):
    response = client.post("/campaigns/generate", json={"campaign_type": "survey", "target_audience": "all"})
    assert response.json()["data"]["name"] == "Customer Survey"


# ---------------------------------------------------------------------------
# A/B tests
# ---------------------------------------------------------------------------

def test_ab_test_create_and_start(client, user, make_customer):
    for _ in range(4):
        make_customer(user)
    campaign_id = client.post("/campaigns", json={"name": "C", "message_template": "Hi"}).json()["data"]["id"]

    created = client.post("/ab-tests", json={
        "campaign_id": campaign_id, "name": "Tone", "templates": ["Hi A", "Hi B"],
    })
    assert created.status_code == 201
    test_id = created.json()["data"]["id"]

    started = client.post(f"/ab-tests/{test_id}/start").json()["data"]
    assert started["assignments"] == {"A": 2, "B": 2}
    assert started["test"]["status"] == "running"

    results = client.get(f"/ab-tests/{test_id}/results", params={"variation": "B"}).json()["data"]
    assert len(results) == 2


def test_ab_test_needs_two_templates(client):
    response = client.post("/ab-tests", json={"campaign_id": 1, "name": "Solo", "templates": ["only"]})
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Tracking, analytics, sample data
# ---------------------------------------------------------------------------

def test_track_is_public(db):
    anon = TestClient(app)
    visit = anon.post("/track", json={"event_type": "page_visit", "page_path": "/landing", "utm_source": "wa"})
    assert visit.status_code == 200
    assert visit.json()["success"] is True

    click = anon.post("/track", json={"event_type": "click_event", "page_path": "/landing", "button_id": "buy"})
    assert click.status_code == 200
    assert db.query(PageVisit).count() == 1
    assert db.query(ClickEvent).count() == 1


def test_click_without_button_is_400(db):
    response = TestClient(app).post("/track", json={"event_type": "click_event", "page_path": "/landing"})
    assert response.status_code == 400


def test_unknown_event_type_rejected(db):
    response = TestClient(app).post("/track", json={"event_type": "scroll", "page_path": "/landing"})
    assert response.status_code == 422


def test_seed_then_summary(client):
    seeded = client.post("/sample-data/seed").json()["data"]
    assert seeded["customers_created"] == 25

    again = client.post("/sample-data/seed").json()["data"]
    assert again["customers_created"] == 0

    summary = client.get("/analytics/summary").json()["data"]
    assert summary["total_customers"] == 25
    assert summary["total_campaigns"] == 3


def test_sentiment_endpoint(client):
    data = client.post("/analytics/sentiment", json={"text": "I love this amazing sale"}).json()["data"]
    assert data["sentiment"] == "positive"


def test_status_reports_unconfigured_integrations(client):
    data = client.get("/status").json()["data"]
    assert data["integrations"] == {"whatsapp": False, "email": False, "llm": False}
    assert data["scheduler"]["enabled"] is False

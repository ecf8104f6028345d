import pytest
from fastapi.testclient import TestClient

from leadboard.db.base import Base
from leadboard.db.session import SessionLocal, engine
from leadboard.main import app
from leadboard.models.lead import LeadRecord


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def seed_leads():
    with SessionLocal() as db:
        db.add_all(
            [
                LeadRecord(id="1", name="Asha", city="Pune", status="New", lead_type="Dealer"),
                LeadRecord(id="2", name="Ben", city="Lagos", status="Follow-up", lead_type="Dealer"),
                LeadRecord(id="3", name="Chen", city="Pune", status="Converted"),
                LeadRecord(id="4", name="Dana", city="Oslo", status="Not Interested"),
                LeadRecord(id="5", name="Eli", city="Pune", status="Negotiation"),
            ]
        )
        db.commit()


def test_dashboard_stats_requires_auth():
    client = TestClient(app)
    assert client.get("/dashboard/stats").status_code == 401


def test_dashboard_stats_counts_buckets():
    client = TestClient(app)
    token = register_and_login(client, "cards@example.com", "secret")
    seed_leads()

    resp = client.get("/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 5
    assert data["new"] == 1
    assert data["follow_up"] == 1
    assert data["converted"] == 1
    assert data["not_interested"] == 1
    assert data["by_status"]["Negotiation"] == 1


def test_dashboard_stats_follow_filters():
    client = TestClient(app)
    token = register_and_login(client, "filters@example.com", "secret")
    seed_leads()
    headers = {"Authorization": f"Bearer {token}"}

    data = client.get("/dashboard/stats", params={"search": "pune"}, headers=headers).json()
    assert data["total"] == 3
    assert data["converted"] == 1

    data = client.get("/dashboard/stats", params={"lead_type": "dealer"}, headers=headers).json()
    assert data["total"] == 2
    assert data["follow_up"] == 1


def test_dashboard_stats_empty():
    client = TestClient(app)
    token = register_and_login(client, "empty@example.com", "secret")
    resp = client.get("/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["total"] == 0

"""
Shared fixtures.

DATABASE_URL must point at a throwaway SQLite file before anything under
app/ is imported, since settings and the engine are built at import time.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="campaign-dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_DIR"] = os.path.join(_db_dir, "logs")
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["DASH_USER"] = ""
os.environ["DASH_PASS"] = ""
os.environ["INITIAL_ADMIN_EMAIL"] = ""

from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402

from app.connectors.base import BaseTransport, TransportResult  # noqa: E402
from app.models.base import Base, SessionLocal, engine, init_db  # noqa: E402
from app.models.customer import Customer  # noqa: E402
from app.services import auth_service  # noqa: E402

init_db()


class FakeTransport(BaseTransport):
    """In-memory transport recording every send; recipients in `fail_for` get an error result."""

    def __init__(self, channel: str = "whatsapp", fail_for=(), raise_for=()):
        self.channel = channel
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.sent: List[dict] = []

    @property
    def configured(self) -> bool:
        return True

    async def send(self, to: str, body: str, subject: Optional[str] = None) -> TransportResult:
        if to in self.raise_for:
            raise RuntimeError("connection reset")
        self.sent.append({"to": to, "body": body, "subject": subject})
        if to in self.fail_for:
            return TransportResult.failed("invalid recipient")
        return TransportResult.ok(f"msg-{len(self.sent)}")


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def user(db):
    return auth_service.create_user(db, "owner@example.com", "correct-horse", "Owner")


@pytest.fixture
def other_user(db):
    return auth_service.create_user(db, "someone-else@example.com", "battery-staple", "Other")


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(owner, **overrides) -> Customer:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "full_name": f"Customer {n}",
            "email": f"customer{n}@example.com",
            "phone": f"555000{n:04d}",
            "total_spent": 100.0,
        }
        fields.update(overrides)
        customer = Customer(user_id=owner.id, **fields)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def client(db, user):
    from fastapi.testclient import TestClient
    from app.main import app

    token = auth_service.create_session(db, user.id)
    test_client = TestClient(app)
    test_client.headers["Authorization"] = f"Bearer {token}"
    return test_client


@pytest.fixture
def fake_transport():
    """The FakeTransport class, for building transports per test"""
    return FakeTransport

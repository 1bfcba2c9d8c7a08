import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RESEND_API_KEY"] = ""
os.environ["TIMEZONE"] = "UTC"

import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from venuebook.core.security import create_access_token, hash_password
from venuebook.db.session import Base, engine, SessionLocal
from venuebook.models.user import User
from venuebook.models.user_role import UserRole
from venuebook.models.booking import Booking  # noqa: F401
from venuebook.models.email_log import EmailLog  # noqa: F401
from venuebook.models.audit_log import AuditLog  # noqa: F401
from venuebook.services import email_service
from venuebook.services.access_policy import load_principal
from venuebook.main import app

NOW = datetime(2030, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


class Outbox:
    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to_email, subject, html):
        if self.fail:
            raise RuntimeError("mail relay unavailable")
        self.sent.append({"to": to_email, "subject": subject, "html": html})


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(email_service, "send_email", box)
    return box


@pytest.fixture
def make_user(db):
    def _make(email: str, roles=(), password: str = "secret123"):
        u = User(id=str(uuid.uuid4()), email=email, full_name=email.split("@")[0],
                 password_hash=hash_password(password), is_active=True)
        db.add(u)
        for r in roles:
            db.add(UserRole(id=str(uuid.uuid4()), user_id=u.id, role=r))
        db.commit()
        return load_principal(db, u.id, u.email)
    return _make


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def auth(principal) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal.user_id)}"}


def movie_data(date: str, **over) -> dict:
    data = {
        "name": "Jane Doe",
        "email": "jane@x.com",
        "phone": "9876543210",
        "date": date,
        "time": "18:00",
        "movie": "action",
        "seats": 2,
        "screen": "2",
    }
    data.update(over)
    return data

import re

import pytest

from app import create_app
from config import TestingConfig
from models import db
from models.user import User, UserStatus
from security.password import hash_password
from security.tokens import issue_token
from utils import emailer

PASSWORD = "Str0ng!Pass"
NEW_PASSWORD = "N3w!Passw0rd"

OTP_RE = re.compile(r"verification code is (\d+)")


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(to_email, subject, body, html=None):
        sent.append({"to": to_email, "subject": subject, "body": body})
        return True, None

    monkeypatch.setattr(emailer, "send_email", fake_send)
    return sent


@pytest.fixture
def mail_down(monkeypatch):
    monkeypatch.setattr(emailer, "send_email", lambda *a, **kw: (False, "smtp down"))


@pytest.fixture
def last_code(outbox):
    def _code(to_email):
        for msg in reversed(outbox):
            if msg["to"] == to_email:
                m = OTP_RE.search(msg["body"])
                if m:
                    return m.group(1)
        raise AssertionError(f"no code mailed to {to_email}")
    return _code


@pytest.fixture
def make_user(app):
    def _make(email="alice@example.com", password=PASSWORD, name="Alice",
              status=UserStatus.ACTIVE, is_deleted=False, role="User"):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            status=status,
            is_deleted=is_deleted,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user, **kw):
        return {"Authorization": f"Bearer {issue_token(user.id, user.email, user.role, **kw)}"}
    return _headers

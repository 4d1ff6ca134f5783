from datetime import timedelta

from sqlalchemy.exc import OperationalError

from models import db
from models.email_change_request import EmailChangeRequest
from models.otp_request import SignupRequest
from models.password_change_request import PasswordChangeRequest
from services import login as login_flow
from utils.timeutil import utcnow


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_security_headers(client):
    resp = client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["Cache-Control"] == "no-store"


def test_me_requires_valid_token(client, make_user, auth_headers):
    user = make_user()

    resp = client.get("/auth/me")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHENTICATED"

    resp = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHENTICATED"

    resp = client.get("/auth/me", headers=auth_headers(user, ttl_seconds=-30))
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "TOKEN_EXPIRED"

    resp = client.get("/auth/me", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["id"] == user.id
    assert body["status"] == "active"


def test_token_of_deleted_user_is_refused(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    user.is_deleted = True
    db.session.commit()

    resp = client.post("/account/email/send-old-otp", headers=headers)
    assert resp.status_code == 401


def test_password_strength_endpoint(client):
    resp = client.post("/auth/password-strength", json={"password": "Str0ng!Passphrase"})
    assert resp.status_code == 200
    assert resp.get_json()["valid"] is True

    resp = client.post("/auth/password-strength", json={})
    assert resp.get_json()["valid"] is False


def test_store_failure_is_internal_error(client, monkeypatch):
    def boom(email, password):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(login_flow, "login", boom)
    resp = client.post("/auth/login", json={"email": "a@example.com", "password": "x"})
    assert resp.status_code == 500
    assert resp.get_json() == {
        "success": False,
        "error": "INTERNAL_ERROR",
        "message": "Internal server error",
    }


def test_purge_command(app, make_user):
    user = make_user()
    now = utcnow()
    past = now - timedelta(minutes=1)
    future = now + timedelta(minutes=10)

    db.session.add_all([
        SignupRequest(email="old@example.com", name="Old", password_hash="x", otp_hash="h",
                      attempts_left=5, expires_at=past, resend_after=past),
        SignupRequest(email="new@example.com", name="New", password_hash="x", otp_hash="h",
                      attempts_left=5, expires_at=future, resend_after=now),
        PasswordChangeRequest(user_id=user.id, email=user.email, purpose="change", otp_hash="h",
                              attempts_left=5, expires_at=past, resend_after=past),
        EmailChangeRequest(user_id=user.id, old_email=user.email, old_email_otp_hash="h",
                           status="verifying_old", attempts_left=5, expires_at=future, resend_after=now),
    ])
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["purge-otp-requests"])
    assert result.exit_code == 0
    assert "otp_requests: 1" in result.output
    assert "password_change_requests: 1" in result.output
    assert "email_change_requests: 0" in result.output

    db.session.expire_all()
    assert [r.email for r in SignupRequest.query.all()] == ["new@example.com"]
    assert PasswordChangeRequest.query.count() == 0
    assert EmailChangeRequest.query.count() == 1

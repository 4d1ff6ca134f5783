from datetime import timedelta

from models import db
from models.audit_log import AuditLog
from models.email_change_request import EmailChangeRequest, EmailChangeStatus
from utils.timeutil import utcnow

from conftest import PASSWORD


def _wrong(code):
    return "000000" if code != "000000" else "111111"


def _verified_old(client, user, headers, last_code):
    client.post("/account/email/send-old-otp", headers=headers)
    resp = client.post("/account/email/verify-old-otp", headers=headers,
                       json={"otp": last_code(user.email)})
    assert resp.status_code == 200


def test_full_email_change(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    make_user(email="bob@example.com", name="Bob")
    headers = auth_headers(alice)

    resp = client.post("/account/email/send-old-otp", headers=headers)
    assert resp.status_code == 200
    assert outbox[-1]["to"] == "alice@example.com"
    row = EmailChangeRequest.query.filter_by(user_id=alice.id).one()
    assert row.status == EmailChangeStatus.VERIFYING_OLD

    resp = client.post("/account/email/verify-old-otp", headers=headers,
                       json={"otp": last_code("alice@example.com")})
    assert resp.status_code == 200
    db.session.refresh(row)
    assert row.status == EmailChangeStatus.VERIFYING_NEW
    old_hash = row.old_email_otp_hash

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "bob@example.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "EMAIL_TAKEN"
    db.session.refresh(row)
    assert row.status == EmailChangeStatus.VERIFYING_NEW
    assert row.new_email is None
    assert row.new_email_otp_hash is None
    assert row.old_email_otp_hash == old_hash

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "Alice@Example.com"})
    assert resp.get_json()["error"] == "SAME_EMAIL"

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    assert resp.status_code == 200
    assert "note" not in resp.get_json()
    new_code = last_code("carol@example.com")

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": _wrong(new_code)})
    assert resp.get_json()["error"] == "INVALID_OTP"
    assert resp.get_json()["attempts_left"] == 4

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": new_code})
    assert resp.status_code == 200
    assert resp.get_json() == {
        "success": True,
        "message": "Email updated successfully",
        "email": "carol@example.com",
    }

    db.session.refresh(alice)
    assert alice.email == "carol@example.com"
    assert EmailChangeRequest.query.count() == 0
    assert outbox[-1]["subject"] == "Your email has been updated"
    assert outbox[-1]["to"] == "carol@example.com"
    assert AuditLog.query.filter_by(action="EMAIL_CHANGED").count() == 1

    assert client.post("/auth/login", json={"email": "carol@example.com", "password": PASSWORD}).status_code == 200
    assert client.post("/auth/login", json={"email": "alice@example.com", "password": PASSWORD}).status_code == 400


def test_old_code_is_not_valid_for_new_address(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)
    old_code = last_code("alice@example.com")
    client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})

    if old_code != last_code("carol@example.com"):
        resp = client.post("/account/email/confirm", headers=headers, json={"otp": old_code})
        assert resp.get_json()["error"] == "INVALID_OTP"


def test_stage_order_is_enforced(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    assert resp.get_json()["error"] == "WRONG_STAGE"

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": "123456"})
    assert resp.get_json()["error"] == "INVALID_OR_EXPIRED_REQUEST"

    resp = client.post("/account/email/verify-old-otp", headers=headers, json={"otp": "123456"})
    assert resp.get_json()["error"] == "NO_PENDING_REQUEST"

    client.post("/account/email/send-old-otp", headers=headers)
    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    assert resp.get_json()["error"] == "WRONG_STAGE"
    resp = client.post("/account/email/confirm", headers=headers, json={"otp": last_code(alice.email)})
    assert resp.get_json()["error"] == "INVALID_OR_EXPIRED_REQUEST"

    client.post("/account/email/verify-old-otp", headers=headers, json={"otp": last_code(alice.email)})
    resp = client.post("/account/email/verify-old-otp", headers=headers, json={"otp": last_code(alice.email)})
    assert resp.get_json()["error"] == "WRONG_STAGE"


def test_restart_resets_to_old_stage(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)

    client.post("/account/email/send-old-otp", headers=headers)
    row = EmailChangeRequest.query.filter_by(user_id=alice.id).one()
    assert row.status == EmailChangeStatus.VERIFYING_OLD
    assert row.new_email is None


def test_soft_deleted_owner_is_noted(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    make_user(email="dave@example.com", name="Dave", is_deleted=True)
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "dave@example.com"})
    assert resp.status_code == 200
    assert resp.get_json()["note"] == "DELETED_USER_AVAILABLE"


def test_invalid_new_email(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "nope"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_INPUT"


def test_address_claimed_before_confirm(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)
    client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    make_user(email="carol@example.com", name="Carol")

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": last_code("carol@example.com")})
    assert resp.get_json()["error"] == "EMAIL_TAKEN"
    db.session.refresh(alice)
    assert alice.email == "alice@example.com"


def test_expired_confirm_window(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)
    client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})

    row = EmailChangeRequest.query.filter_by(user_id=alice.id).one()
    row.expires_at = utcnow() - timedelta(seconds=5)
    db.session.commit()

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": last_code("carol@example.com")})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_OR_EXPIRED_REQUEST"


def _row(user):
    return EmailChangeRequest.query.filter_by(user_id=user.id).one()


def test_verify_old_after_expiry(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    client.post("/account/email/send-old-otp", headers=headers)
    row = _row(alice)
    row.expires_at = utcnow() - timedelta(seconds=5)
    db.session.commit()

    resp = client.post("/account/email/verify-old-otp", headers=headers, json={"otp": last_code(alice.email)})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "OTP_EXPIRED"
    db.session.refresh(row)
    assert row.status == EmailChangeStatus.VERIFYING_OLD
    assert AuditLog.query.filter_by(action="EMAIL_CHANGE_OTP_EXPIRED").count() == 1


def test_verify_old_locked_after_attempts_run_out(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    client.post("/account/email/send-old-otp", headers=headers)
    code = last_code(alice.email)

    for _ in range(5):
        client.post("/account/email/verify-old-otp", headers=headers, json={"otp": _wrong(code)})
    assert _row(alice).attempts_left == 0

    resp = client.post("/account/email/verify-old-otp", headers=headers, json={"otp": code})
    assert resp.get_json()["error"] == "OTP_LOCKED"
    assert _row(alice).status == EmailChangeStatus.VERIFYING_OLD


def test_confirm_locked_even_with_right_code(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)
    client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    row = _row(alice)
    row.attempts_left = 0
    db.session.commit()

    resp = client.post("/account/email/confirm", headers=headers, json={"otp": last_code("carol@example.com")})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_OR_EXPIRED_REQUEST"
    db.session.refresh(alice)
    assert alice.email == "alice@example.com"


def test_submit_new_after_window_expired(client, outbox, last_code, make_user, auth_headers):
    alice = make_user()
    headers = auth_headers(alice)
    _verified_old(client, alice, headers, last_code)
    row = _row(alice)
    row.expires_at = utcnow() - timedelta(seconds=5)
    db.session.commit()
    sent = len(outbox)

    resp = client.post("/account/email/send-new-otp", headers=headers, json={"newEmail": "carol@example.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "OTP_EXPIRED"
    db.session.refresh(row)
    assert row.new_email is None
    assert len(outbox) == sent

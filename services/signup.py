"""Signup via email OTP: send code, verify code, create the account."""
from flask import current_app

from models import db
from models.otp_request import SignupRequest
from models.user import User, UserStatus
from security.password import hash_password
from security.password_policy import validate_password
from security.tokens import issue_token
from services.errors import EmailTaken, InvalidInput, NoPendingRequest, WeakPassword
from services.otp_gate import (
    audit_failures,
    check_code,
    deliver_code,
    ensure_verifiable,
    expiry_minutes,
    new_code,
    resend_cooldown_seconds,
)
from services.request_store import RequestStore
from utils.audit import log_event
from utils.timeutil import utcnow
from utils.validation import clean_text, is_valid_email, normalize_email

signup_requests = RequestStore(SignupRequest)


def _live_user(email: str):
    return User.query.filter_by(email=email, is_deleted=False).first()


def _window_response() -> dict:
    return {
        "success": True,
        "resend_after_seconds": resend_cooldown_seconds(),
        "expires_in_minutes": expiry_minutes(),
    }


def start_signup(name, email, password) -> dict:
    name = clean_text(name)
    email = normalize_email(email)
    if not name or not email or not isinstance(password, str) or not password:
        raise InvalidInput("Name, email, and password are required")
    if not is_valid_email(email):
        raise InvalidInput("Invalid email format")

    valid, errors = validate_password(password)
    if not valid:
        raise WeakPassword(details=errors)

    existing = _live_user(email)
    if existing is not None and existing.is_active:
        log_event("SIGNUP_REJECTED", success=False, actor_email=email, details={"reason": "email_taken"})
        raise EmailTaken()

    code, otp_hash, window = new_code()
    signup_requests.upsert(
        {"email": email},
        name=name,
        password_hash=hash_password(password),
        otp_hash=otp_hash,
        **window,
    )

    # the pending row stays put if delivery fails; the client resends
    deliver_code(email, code, user_name=name)
    details = {"existing_account": "inactive"} if existing is not None else None
    log_event("OTP_SENT", actor_email=email, details=details)
    return _window_response()


def resend_signup_otp(email) -> dict:
    email = normalize_email(email)
    if not email:
        raise InvalidInput("Email is required")

    row = signup_requests.get(email=email)
    if row is None:
        raise NoPendingRequest("No signup request found. Please start signup again.", status=404)

    code, otp_hash, window = new_code()
    row = signup_requests.upsert(
        {"email": email},
        name=row.name,
        password_hash=row.password_hash,
        otp_hash=otp_hash,
        **window,
    )

    deliver_code(email, code, user_name=row.name)
    log_event("OTP_RESENT", actor_email=email)
    return _window_response()


def verify_signup_otp(email, code) -> dict:
    email = normalize_email(email)
    code = clean_text(code)
    if not email or not code:
        raise InvalidInput("Email and OTP are required")

    with audit_failures("SIGNUP_REJECTED", actor_email=email):
        row = signup_requests.get(email=email)
        ensure_verifiable(row, utcnow())
        check_code(signup_requests, row, code, row.otp_hash)

        # registered while the code was in flight, or an inactive owner that
        # start let through; either way verify ends in EmailTaken
        if _live_user(email) is not None:
            raise EmailTaken()

    user = User(
        name=row.name,
        email=email,
        password_hash=row.password_hash,
        role=current_app.config.get("DEFAULT_ROLE", "User"),
        status=UserStatus.ACTIVE,
        last_login_at=utcnow(),
    )
    db.session.add(user)
    # commits the new user together with the delete
    signup_requests.delete(row.id)

    token = issue_token(user.id, user.email, user.role)

    log_event("OTP_VERIFIED", actor=user)
    log_event("USER_CREATED", module="users", actor=user, target_id=user.id, target_type="user")
    log_event("USER_LOGIN", actor=user)

    return {
        "success": True,
        "token": token,
        "user": user.public_dict(),
        "redirectTo": current_app.config.get("LOGIN_REDIRECT", "/dashboard"),
    }

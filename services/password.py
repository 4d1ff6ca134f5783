"""
OTP-gated password updates.

Two variants share one table and one state shape:
  - change: the signed-in user, keyed by user id
  - reset:  forgot-password, keyed by the account behind the submitted
            email and completed by that same email

Either way a user holds at most one row per purpose.
"""
from models import db
from models.password_change_request import PasswordChangePurpose, PasswordChangeRequest
from models.user import User
from security.password import hash_password
from security.password_policy import validate_password
from services.errors import AccountInactive, InvalidInput, SubjectNotFound, WeakPassword
from services.otp_gate import (
    audit_failures,
    check_code,
    deliver_code,
    ensure_verifiable,
    new_code,
)
from services.request_store import RequestStore
from utils import emailer
from utils.audit import log_event
from utils.email_templates import PASSWORD_CHANGE_CONFIRMATION
from utils.timeutil import utcnow
from utils.validation import clean_text, normalize_email

password_requests = RequestStore(PasswordChangeRequest)


def _check_new_password(new_password) -> None:
    valid, errors = validate_password(new_password)
    if not valid:
        raise WeakPassword(details=errors)


def _apply_new_password(user: User, row, new_password: str) -> None:
    user.password_hash = hash_password(new_password)
    user.password_changed_at = utcnow()
    db.session.add(user)
    # commits the new hash together with the delete
    password_requests.delete(row.id)


def request_password_change(user: User) -> dict:
    """Change variant; `user` is the authenticated caller."""
    code, otp_hash, window = new_code()
    password_requests.upsert(
        {"user_id": user.id, "purpose": PasswordChangePurpose.CHANGE},
        email=user.email,
        otp_hash=otp_hash,
        **window,
    )
    deliver_code(user.email, code, user_name=user.name, module="profile", actor=user)
    log_event("PASSWORD_OTP_SENT", module="profile", actor=user)
    return {"success": True, "message": "OTP sent to your email"}


def complete_password_change(user: User, code, new_password) -> dict:
    code = clean_text(code)
    if not code:
        raise InvalidInput("OTP is required")

    with audit_failures("PASSWORD_CHANGE_REJECTED", module="profile", prefix="PASSWORD_", actor=user):
        _check_new_password(new_password)
        row = password_requests.get(user_id=user.id, purpose=PasswordChangePurpose.CHANGE)
        ensure_verifiable(row, utcnow())
        check_code(password_requests, row, code, row.otp_hash)

    _apply_new_password(user, row, new_password)
    log_event("PASSWORD_UPDATED", module="profile", actor=user)
    emailer.send_best_effort(user.email, PASSWORD_CHANGE_CONFIRMATION, user_name=user.name)
    return {"success": True, "message": "Password updated successfully"}


def request_password_reset(email) -> dict:
    """Reset variant. Unknown and inactive accounts are turned away before any code exists."""
    email = normalize_email(email)
    if not email:
        raise InvalidInput("Email is required")

    user = User.query.filter_by(email=email, is_deleted=False).first()
    if user is None:
        log_event("PASSWORD_RESET_REJECTED", success=False, actor_email=email,
                  details={"reason": "user_not_found"})
        raise SubjectNotFound()
    if not user.is_active:
        log_event("PASSWORD_RESET_REJECTED", success=False, actor=user,
                  details={"reason": "account_inactive"})
        raise AccountInactive(status=400)

    code, otp_hash, window = new_code()
    password_requests.upsert(
        {"user_id": user.id, "purpose": PasswordChangePurpose.RESET},
        email=email,
        otp_hash=otp_hash,
        **window,
    )
    deliver_code(email, code, user_name=user.name, actor=user)
    log_event("PASSWORD_RESET_OTP_SENT", actor=user)
    return {"success": True, "message": "OTP sent"}


def complete_password_reset(email, code, new_password) -> dict:
    email = normalize_email(email)
    code = clean_text(code)
    if not email or not code or not new_password:
        raise InvalidInput("Email, OTP, and new password required")

    with audit_failures("PASSWORD_RESET_REJECTED", prefix="PASSWORD_RESET_", actor_email=email):
        _check_new_password(new_password)
        row = password_requests.get(email=email, purpose=PasswordChangePurpose.RESET)
        ensure_verifiable(row, utcnow())
        check_code(password_requests, row, code, row.otp_hash)

        user = db.session.get(User, row.user_id)
        if user is None or user.is_deleted:
            raise SubjectNotFound()

    _apply_new_password(user, row, new_password)
    log_event("PASSWORD_RESET", actor=user)
    emailer.send_best_effort(user.email, PASSWORD_CHANGE_CONFIRMATION, user_name=user.name)
    return {"success": True, "message": "Password reset successful"}

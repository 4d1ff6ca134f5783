"""
Three-step email change for a signed-in user.

    start          -> code to the current address, status verifying_old
    verify_old     -> status verifying_new
    submit_new     -> second code to the new address
    confirm_new    -> users.email updated, row deleted

Both mailboxes must be proven before the account identity moves.
"""
from sqlalchemy import func

from models import db
from models.email_change_request import EmailChangeRequest, EmailChangeStatus
from models.user import User
from services.errors import (
    AttemptsExhausted,
    EmailTaken,
    Expired,
    InvalidInput,
    SameEmail,
    WrongStage,
    WrongStageOrExpiredOrLocked,
)
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
from utils.email_templates import EMAIL_CHANGE_CONFIRMATION
from utils.timeutil import utcnow
from utils.validation import clean_text, is_valid_email, normalize_email

email_requests = RequestStore(EmailChangeRequest)

DELETED_USER_AVAILABLE = "DELETED_USER_AVAILABLE"


def _owners(email: str, exclude_user_id: int):
    return (
        User.query
        .filter(func.lower(User.email) == email, User.id != exclude_user_id)
        .all()
    )


def start(user: User) -> dict:
    code, otp_hash, window = new_code()
    email_requests.upsert(
        {"user_id": user.id},
        old_email=user.email,
        new_email=None,
        old_email_otp_hash=otp_hash,
        new_email_otp_hash=None,
        status=EmailChangeStatus.VERIFYING_OLD,
        **window,
    )
    deliver_code(user.email, code, user_name=user.name, module="profile", actor=user)
    log_event("EMAIL_CHANGE_OLD_OTP_SENT", module="profile", actor=user)
    return {"success": True, "message": "OTP sent to current email"}


def verify_old(user: User, code) -> dict:
    code = clean_text(code)
    if not code:
        raise InvalidInput("OTP is required")

    with audit_failures("EMAIL_CHANGE_REJECTED", module="profile", prefix="EMAIL_CHANGE_", actor=user):
        row = email_requests.get(user_id=user.id)
        if row is not None and row.status != EmailChangeStatus.VERIFYING_OLD:
            raise WrongStage("Current email already verified")
        ensure_verifiable(row, utcnow())
        check_code(email_requests, row, code, row.old_email_otp_hash)

    email_requests.update(row, status=EmailChangeStatus.VERIFYING_NEW)
    log_event("EMAIL_CHANGE_OLD_OTP_VERIFIED", module="profile", actor=user)
    return {"success": True, "message": "Old email verified"}


def submit_new_email(user: User, new_email) -> dict:
    new_email = normalize_email(new_email)
    if not is_valid_email(new_email):
        raise InvalidInput("Invalid email address")

    with audit_failures("EMAIL_CHANGE_REJECTED", module="profile", prefix="EMAIL_CHANGE_", actor=user):
        row = email_requests.get(user_id=user.id)
        if row is None or row.status != EmailChangeStatus.VERIFYING_NEW:
            raise WrongStage()
        if row.is_expired(utcnow()):
            raise Expired("Verification window expired. Please start again.")

        owners = _owners(new_email, user.id)
        if any(not owner.is_deleted for owner in owners):
            raise EmailTaken("Email already in use")
        if new_email == normalize_email(user.email):
            raise SameEmail()

    code, otp_hash, window = new_code()
    email_requests.update(row, new_email=new_email, new_email_otp_hash=otp_hash, **window)

    deliver_code(new_email, code, user_name=user.name, module="profile", actor=user)
    log_event("EMAIL_CHANGE_NEW_OTP_SENT", module="profile", actor=user, details={"new_email": new_email})

    result = {"success": True, "message": "OTP sent to new email"}
    if owners:
        # only soft-deleted accounts held this address
        result["note"] = DELETED_USER_AVAILABLE
    return result


def confirm_new(user: User, code) -> dict:
    code = clean_text(code)
    if not code:
        raise InvalidInput("OTP is required")

    with audit_failures("EMAIL_CHANGE_REJECTED", module="profile", prefix="EMAIL_CHANGE_", actor=user):
        row = email_requests.get(user_id=user.id)
        if (
            row is None
            or row.status != EmailChangeStatus.VERIFYING_NEW
            or not row.new_email
            or not row.new_email_otp_hash
        ):
            raise WrongStageOrExpiredOrLocked()
        try:
            ensure_verifiable(row, utcnow())
        except (Expired, AttemptsExhausted) as exc:
            raise WrongStageOrExpiredOrLocked() from exc
        check_code(email_requests, row, code, row.new_email_otp_hash)

        if any(not owner.is_deleted for owner in _owners(row.new_email, user.id)):
            raise EmailTaken("Email already in use")

    old_email = row.old_email
    new_email = row.new_email
    user.email = new_email
    db.session.add(user)
    # commits the new address together with the delete
    email_requests.delete(row.id)

    log_event(
        "EMAIL_CHANGED",
        module="profile",
        actor=user,
        actor_email=new_email,
        details={"old_email": old_email, "new_email": new_email},
    )
    emailer.send_best_effort(new_email, EMAIL_CHANGE_CONFIRMATION, user_name=user.name)
    return {"success": True, "message": "Email updated successfully", "email": new_email}

from contextlib import contextmanager
from datetime import timedelta

from flask import current_app

from security.otp import generate_otp, hash_otp, verify_otp
from services.errors import (
    AttemptsExhausted,
    EmailDeliveryFailed,
    Expired,
    FlowError,
    InvalidOtp,
    NoPendingRequest,
)
from utils import emailer
from utils.audit import log_event
from utils.email_templates import OTP_VERIFICATION
from utils.timeutil import utcnow

_FAILURE_ACTIONS = {
    Expired: "OTP_EXPIRED",
    AttemptsExhausted: "OTP_LOCKED",
    InvalidOtp: "OTP_INVALID",
}


def expiry_minutes() -> int:
    return int(current_app.config.get("OTP_EXPIRY_MINUTES", 10))


def resend_cooldown_seconds() -> int:
    return int(current_app.config.get("OTP_RESEND_COOLDOWN_SECONDS", 60))


def max_attempts() -> int:
    return int(current_app.config.get("OTP_MAX_ATTEMPTS", 5))


def new_code():
    """Fresh (code, code_hash, window) where window holds the counters for a new row."""
    code = generate_otp()
    now = utcnow()
    window = {
        "attempts_left": max_attempts(),
        "expires_at": now + timedelta(minutes=expiry_minutes()),
        "resend_after": now + timedelta(seconds=resend_cooldown_seconds()),
    }
    return code, hash_otp(code), window


def ensure_verifiable(row, now) -> None:
    """Missing row, then expiry, then lockout. Read-only."""
    if row is None:
        raise NoPendingRequest()
    if row.is_expired(now):
        raise Expired()
    if row.attempts_left <= 0:
        raise AttemptsExhausted()


def check_code(store, row, code, otp_hash) -> None:
    """A wrong code always costs one attempt before the failure is reported."""
    if verify_otp(code, otp_hash):
        return
    left = store.decrement_attempts(row.id)
    raise InvalidOtp(attempts_left=left)


def deliver_code(to_email: str, code: str, user_name=None, module="auth", actor=None) -> None:
    ok, err = emailer.send_template(to_email, OTP_VERIFICATION, otp=code, user_name=user_name)
    if ok:
        return
    current_app.logger.error("OTP email to %s failed: %s", to_email, err)
    log_event(
        "SMTP_SEND_FAILED",
        module=module,
        success=False,
        actor=actor,
        actor_email=to_email,
        details={"error": err},
    )
    raise EmailDeliveryFailed()


@contextmanager
def audit_failures(fallback_action: str, module="auth", prefix="", actor=None, actor_email=None):
    """Record every FlowError leaving the block, then let it propagate."""
    try:
        yield
    except FlowError as exc:
        action = _FAILURE_ACTIONS.get(type(exc))
        action = f"{prefix}{action}" if action else fallback_action
        details = {"reason": exc.code}
        details.update({k: v for k, v in exc.extra.items() if k != "details"})
        log_event(
            action,
            module=module,
            success=False,
            actor=actor,
            actor_email=actor_email,
            details=details,
        )
        raise

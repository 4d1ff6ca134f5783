from flask import current_app

from models import db
from models.user import User
from security.password import verify_password
from security.tokens import issue_token
from services.errors import AccountInactive, InvalidCredentials, InvalidInput
from utils.audit import log_event
from utils.timeutil import utcnow
from utils.validation import normalize_email


def login(email, password) -> dict:
    """
    Password login. A missing account and a wrong password produce the same
    InvalidCredentials; only the audit row records which one it was.
    """
    email = normalize_email(email)
    if not email or not isinstance(password, str) or not password:
        raise InvalidInput("Email and password are required")

    user = User.query.filter_by(email=email, is_deleted=False).first()

    if user is not None and not user.is_active:
        log_event("USER_LOGIN_FAILED", success=False, actor=user, actor_email=email,
                  details={"reason": "account_inactive"})
        raise AccountInactive()

    if user is None:
        log_event("USER_LOGIN_FAILED", success=False, actor_email=email,
                  details={"reason": "user_not_found"})
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        log_event("USER_LOGIN_FAILED", success=False, actor=user, actor_email=email,
                  details={"reason": "invalid_password"})
        raise InvalidCredentials()

    user.last_login_at = utcnow()
    db.session.commit()

    token = issue_token(user.id, user.email, user.role)
    log_event("USER_LOGIN", actor=user)

    return {
        "success": True,
        "token": token,
        "user": user.public_dict(),
        "redirectTo": current_app.config.get("LOGIN_REDIRECT", "/dashboard"),
    }

from functools import wraps
from flask import g, jsonify, request

from models import db
from models.user import User
from security.tokens import TokenError, verify_token


def _bearer_token():
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def load_current_user():
    """
    Resolve g.user from the bearer credential. The subject always comes from
    verified claims, never from the request body.
    """
    g.user = None
    g.auth_error = "UNAUTHENTICATED"

    token = _bearer_token()
    if not token:
        return

    try:
        claims = verify_token(token)
    except TokenError as exc:
        g.auth_error = exc.code
        return

    user = db.session.get(User, claims.get("userId"))
    if user is None or user.is_deleted or not user.is_active:
        return

    g.user = user
    g.auth_error = None


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            code = getattr(g, "auth_error", None) or "UNAUTHENTICATED"
            return jsonify(success=False, error=code, message="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper

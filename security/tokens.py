import time

import jwt
from flask import current_app


class TokenError(Exception):
    code = "UNAUTHENTICATED"


class InvalidSignature(TokenError):
    code = "UNAUTHENTICATED"


class TokenExpired(TokenError):
    code = "TOKEN_EXPIRED"


def _secret(secret):
    return secret if secret is not None else current_app.config["JWT_SECRET"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def issue_token(user_id: int, email: str, role: str, ttl_seconds: int | None = None, secret: str | None = None) -> str:
    """
    Signed session credential carrying {userId, email, role, exp}.
    `exp` is Unix seconds; nothing is stored server-side.
    """
    if ttl_seconds is None:
        ttl_seconds = int(current_app.config.get("SESSION_TTL_SECONDS", 7 * 24 * 60 * 60))

    claims = {
        "userId": user_id,
        "email": email,
        "role": role,
        "exp": int(time.time()) + int(ttl_seconds),
    }
    return jwt.encode(claims, _secret(secret), algorithm=_algorithm())


def verify_token(token: str, secret: str | None = None) -> dict:
    """
    Returns the claims of a valid token.
    Raises InvalidSignature for anything malformed or tampered with and
    TokenExpired once `exp` has passed.
    """
    if not token:
        raise InvalidSignature("Missing token")
    try:
        claims = jwt.decode(
            token,
            _secret(secret),
            algorithms=[_algorithm()],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidSignature("Invalid token") from exc

    if "userId" not in claims:
        raise InvalidSignature("Invalid token")
    return claims

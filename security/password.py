import bcrypt
from flask import current_app, has_app_context


def _rounds() -> int:
    if not has_app_context():
        return 12
    return int(current_app.config.get("BCRYPT_ROUNDS", 12))


def hash_password(plain_password: str) -> str:
    """bcrypt with a per-hash salt; the cost factor comes from BCRYPT_ROUNDS."""
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=_rounds()))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False

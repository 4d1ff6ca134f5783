import hashlib
import hmac
import secrets

from flask import current_app


def generate_otp(length: int | None = None) -> str:
    """Uniform numeric code of `length` digits, leading zeros kept."""
    if length is None:
        length = int(current_app.config.get("OTP_LENGTH", 6))
    if length <= 0:
        raise ValueError("OTP length must be positive")
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def hash_otp(code: str, secret: str | None = None) -> str:
    """HMAC-SHA256 of the code keyed with the server OTP secret (hex digest)."""
    if secret is None:
        secret = current_app.config["OTP_SECRET"]
    return hmac.new(
        secret.encode("utf-8"),
        code.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_otp(code: str, otp_hash: str | None, secret: str | None = None) -> bool:
    if not isinstance(code, str) or not otp_hash:
        return False
    return hmac.compare_digest(hash_otp(code.strip(), secret), otp_hash)

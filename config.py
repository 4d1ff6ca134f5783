import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _to_bool(val, default=False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me-0123456789abcdef")
    JWT_SECRET = os.getenv("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    OTP_SECRET = os.getenv("OTP_SECRET", "dev-otp-secret-change-me")

    # SQLite database file stored next to the app as slate.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "slate.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session credentials: 7 days
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", str(7 * 24 * 60 * 60)))

    # Email OTP
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
    OTP_RESEND_COOLDOWN_SECONDS = int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", "60"))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

    # Password policy
    PASSWORD_MIN_LEN = 8
    PASSWORD_MAX_LEN = 128
    PASSWORD_REQUIRE_UPPER = True
    PASSWORD_REQUIRE_LOWER = True
    PASSWORD_REQUIRE_DIGIT = True
    PASSWORD_REQUIRE_SYMBOL = True
    PASSWORD_SYMBOLS = "!@#$%^&*"
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Accounts
    DEFAULT_ROLE = "User"
    LOGIN_REDIRECT = "/dashboard"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = _to_bool(os.getenv("SMTP_USE_TLS"), True)
    # Log outgoing mail instead of sending it (local development only)
    MAIL_SUPPRESS_SEND = _to_bool(os.getenv("MAIL_SUPPRESS_SEND"), False)

    APP_NAME = os.getenv("APP_NAME", "Slate AI")
    SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@slate.ai")
    APP_DASHBOARD_URL = os.getenv("APP_DASHBOARD_URL", "https://app.slate.ai")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-0123456789abcdef0123"
    JWT_SECRET = "test-jwt-secret-0123456789abcdef0123"
    OTP_SECRET = "test-otp-secret-0123456789abcdef0123"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite://")
    BCRYPT_ROUNDS = 4
    MAIL_SUPPRESS_SEND = False
    LOG_LEVEL = "DEBUG"

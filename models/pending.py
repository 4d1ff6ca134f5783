from datetime import datetime

from models.db import db


class PendingOtpMixin:
    """Columns shared by every OTP-gated pending request.

    One live row per subject. `attempts_left` counts down from the configured
    maximum; `resend_after` is the earliest time a fresh code may be mailed.
    """

    attempts_left = db.Column(db.Integer, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    resend_after = db.Column(db.DateTime, nullable=False)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

from utils.timeutil import utcnow
from models.db import db
from models.pending import PendingOtpMixin


class PasswordChangePurpose:
    CHANGE = "change"   # authenticated, keyed by user id
    RESET = "reset"     # forgot password, looked up by email


class PasswordChangeRequest(PendingOtpMixin, db.Model):
    __tablename__ = "password_change_requests"
    __table_args__ = (
        db.UniqueConstraint("user_id", "purpose", name="uq_password_change_requests_user_purpose"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    purpose = db.Column(db.String(16), nullable=False, default=PasswordChangePurpose.CHANGE)

    otp_hash = db.Column(db.String(128), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

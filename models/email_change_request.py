from utils.timeutil import utcnow
from models.db import db
from models.pending import PendingOtpMixin


class EmailChangeStatus:
    VERIFYING_OLD = "verifying_old"
    VERIFYING_NEW = "verifying_new"


class EmailChangeRequest(PendingOtpMixin, db.Model):
    __tablename__ = "email_change_requests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False, index=True)

    old_email = db.Column(db.String(255), nullable=False)
    new_email = db.Column(db.String(255), nullable=True)  # empty until the old mailbox is proven

    # Independent codes; only the one matching `status` is checked
    old_email_otp_hash = db.Column(db.String(128), nullable=False)
    new_email_otp_hash = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=EmailChangeStatus.VERIFYING_OLD)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

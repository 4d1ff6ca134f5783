from utils.timeutil import utcnow
from models.db import db
from models.pending import PendingOtpMixin


class SignupRequest(PendingOtpMixin, db.Model):
    __tablename__ = "otp_requests"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    # computed at signup start, copied onto the User once the code checks out
    password_hash = db.Column(db.String(255), nullable=False)
    otp_hash = db.Column(db.String(128), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

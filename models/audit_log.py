from utils.timeutil import utcnow
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. OTP_SENT, USER_LOGIN
    module = db.Column(db.String(40), nullable=False, default="auth")  # auth, profile, users

    # nullable for unauthenticated events
    actor_id = db.Column(db.Integer, nullable=True, index=True)
    actor_email = db.Column(db.String(255), nullable=True)
    actor_role = db.Column(db.String(50), nullable=True)

    target_id = db.Column(db.String(80), nullable=True)
    target_type = db.Column(db.String(40), nullable=True)

    success = db.Column(db.Boolean, nullable=False, default=True)
    details_json = db.Column(db.Text, nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

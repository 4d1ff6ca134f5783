from utils.timeutil import utcnow
from models.db import db


class UserStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False)
    # Not unique: soft-deleted rows keep their address, uniqueness is enforced
    # among non-deleted users by the flows.
    email = db.Column(db.String(255), nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Owned by the admin screens; the auth flows only read these
    role = db.Column(db.String(50), nullable=False, default="User")
    status = db.Column(db.String(20), nullable=False, default=UserStatus.ACTIVE)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)
    password_changed_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

import json

from flask import current_app, has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog


def _client_meta():
    if not has_request_context():
        return None, None
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")
    return ip, (user_agent[:255] if user_agent else None)


def log_event(action: str, module: str = "auth", success: bool = True, actor=None,
              actor_email=None, target_id=None, target_type=None, details=None):
    """
    Append an audit row. Best effort: a failed insert is rolled back and
    logged, the calling flow carries on.
    """
    ip, user_agent = _client_meta()

    row = AuditLog(
        action=action,
        module=module,
        actor_id=getattr(actor, "id", None),
        actor_email=actor_email or getattr(actor, "email", None),
        actor_role=getattr(actor, "role", None),
        target_id=str(target_id) if target_id is not None else None,
        target_type=target_type,
        success=success,
        details_json=json.dumps(details) if details else None,
        ip=ip,
        user_agent=user_agent,
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("audit insert failed action=%s", action)

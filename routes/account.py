from flask import Blueprint, request, jsonify, g

from services import email_change
from services import password as password_flow
from utils.auth_context import login_required


account_bp = Blueprint("account", __name__, url_prefix="/account")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@account_bp.post("/password/send-otp")
@login_required
def password_send_otp():
    return jsonify(password_flow.request_password_change(g.user)), 200


@account_bp.post("/password/update")
@login_required
def password_update():
    data = _body()
    result = password_flow.complete_password_change(g.user, data.get("otp"), data.get("newPassword"))
    return jsonify(result), 200


@account_bp.post("/email/send-old-otp")
@login_required
def email_send_old_otp():
    return jsonify(email_change.start(g.user)), 200


@account_bp.post("/email/verify-old-otp")
@login_required
def email_verify_old_otp():
    data = _body()
    return jsonify(email_change.verify_old(g.user, data.get("otp"))), 200


@account_bp.post("/email/send-new-otp")
@login_required
def email_send_new_otp():
    data = _body()
    return jsonify(email_change.submit_new_email(g.user, data.get("newEmail"))), 200


@account_bp.post("/email/confirm")
@login_required
def email_confirm():
    data = _body()
    return jsonify(email_change.confirm_new(g.user, data.get("otp"))), 200

from flask import Blueprint, request, jsonify, g

from security.password_policy import password_strength
from services import login as login_flow
from services import password as password_flow
from services import signup as signup_flow
from utils.auth_context import login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@auth_bp.post("/signup")
def signup():
    data = _body()
    result = signup_flow.start_signup(data.get("name"), data.get("email"), data.get("password"))
    return jsonify(result), 200


@auth_bp.post("/signup/verify")
def signup_verify():
    data = _body()
    result = signup_flow.verify_signup_otp(data.get("email"), data.get("otp"))
    return jsonify(result), 200


@auth_bp.post("/signup/resend")
def signup_resend():
    data = _body()
    result = signup_flow.resend_signup_otp(data.get("email"))
    return jsonify(result), 200


@auth_bp.post("/login")
def login():
    data = _body()
    result = login_flow.login(data.get("email"), data.get("password"))
    return jsonify(result), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(success=True, user=g.user.public_dict(), status=g.user.status), 200


@auth_bp.post("/password-strength")
def check_password_strength():
    data = _body()
    return jsonify(password_strength(data.get("password") or "")), 200


@auth_bp.post("/forgot-password/send-otp")
def forgot_password_send_otp():
    data = _body()
    result = password_flow.request_password_reset(data.get("email"))
    return jsonify(result), 200


@auth_bp.post("/forgot-password/reset")
def forgot_password_reset():
    data = _body()
    result = password_flow.complete_password_reset(
        data.get("email"), data.get("otp"), data.get("newPassword")
    )
    return jsonify(result), 200

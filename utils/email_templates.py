from html import escape

OTP_VERIFICATION = "otp_verification"
PASSWORD_CHANGE_CONFIRMATION = "password_change_confirmation"
EMAIL_CHANGE_CONFIRMATION = "email_change_confirmation"

_CARD = (
    '<div style="font-family:system-ui,Segoe UI,Roboto,Arial;max-width:600px;margin:0 auto;padding:24px">'
    "{content}"
    '<p style="color:#64748b;font-size:12px">Need help? Contact '
    '<a href="mailto:{support_email}">{support_email}</a></p>'
    "</div>"
)


def _otp_verification(v):
    subject = f"Your {v['app_name']} verification code"
    text = (
        f"Hi {v['user_name']},\n\n"
        f"Your verification code is {v['otp']}\n"
        f"This code expires in {v['expiry_minutes']} minutes. "
        "If you didn't request this, please ignore this email.\n"
    )
    content = (
        f"<h2>Verify your account</h2>"
        f"<p>Hi {escape(v['user_name'])},</p>"
        f"<p>Use the following one-time code to complete verification:</p>"
        f'<div style="font-size:28px;font-weight:700;letter-spacing:6px">{escape(v["otp"])}</div>'
        f"<p>This code expires in {v['expiry_minutes']} minutes.</p>"
    )
    return subject, text, content


def _password_change_confirmation(v):
    subject = "Your password has been changed"
    text = (
        f"Hi {v['user_name']},\n\n"
        f"Your password for {v['app_name']} was changed successfully. If this wasn't you, "
        "reset your password immediately and contact support.\n"
    )
    content = (
        "<h2>Password changed</h2>"
        f"<p>Hi {escape(v['user_name'])},</p>"
        f"<p>Your password for {escape(v['app_name'])} was changed successfully. "
        "If this wasn't you, reset your password immediately and contact support.</p>"
    )
    return subject, text, content


def _email_change_confirmation(v):
    subject = "Your email has been updated"
    text = (
        f"Hi {v['user_name']},\n\n"
        f"Your login email for {v['app_name']} has been updated successfully.\n"
    )
    content = (
        "<h2>Email updated</h2>"
        f"<p>Hi {escape(v['user_name'])},</p>"
        f"<p>Your login email for {escape(v['app_name'])} has been updated successfully.</p>"
    )
    return subject, text, content


_TEMPLATES = {
    OTP_VERIFICATION: _otp_verification,
    PASSWORD_CHANGE_CONFIRMATION: _password_change_confirmation,
    EMAIL_CHANGE_CONFIRMATION: _email_change_confirmation,
}


def render_email(template: str, **variables):
    """Returns (subject, plain_text, html) for a named template."""
    try:
        builder = _TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown email template: {template}") from None

    v = dict(variables)
    v.setdefault("user_name", "there")
    v["user_name"] = v["user_name"] or "there"
    v.setdefault("app_name", "Slate AI")
    v.setdefault("support_email", "")
    v.setdefault("expiry_minutes", 10)

    subject, text, content = builder(v)
    dashboard_url = v.get("dashboard_url")
    if dashboard_url:
        text += f"\nOpen dashboard: {dashboard_url}\n"
        content += f'<p><a href="{escape(dashboard_url)}">Open Dashboard</a></p>'
    html = _CARD.format(content=content, support_email=escape(v["support_email"] or ""))
    return subject, text, html

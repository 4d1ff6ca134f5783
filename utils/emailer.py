import smtplib
from email.message import EmailMessage

from flask import current_app

from utils.email_templates import render_email


def send_email(to_email: str, subject: str, body: str, html: str | None = None):
    """Returns (ok, error). Never raises for delivery problems."""
    if current_app.config.get("MAIL_SUPPRESS_SEND"):
        current_app.logger.info("mail suppressed to=%s subject=%r\n%s", to_email, subject, body)
        return True, None

    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, "Email not configured"

    msg = EmailMessage()
    msg["From"] = f"{current_app.config.get('APP_NAME', 'Slate AI')} <{from_email}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)


def send_template(to_email: str, template: str, **variables):
    cfg = current_app.config
    variables.setdefault("app_name", cfg.get("APP_NAME"))
    variables.setdefault("support_email", cfg.get("SUPPORT_EMAIL"))
    variables.setdefault("dashboard_url", cfg.get("APP_DASHBOARD_URL"))
    variables.setdefault("expiry_minutes", cfg.get("OTP_EXPIRY_MINUTES", 10))

    subject, body, html = render_email(template, **variables)
    return send_email(to_email, subject, body, html=html)


def send_best_effort(to_email: str, template: str, **variables) -> bool:
    """For confirmations after the state change already committed: log and continue."""
    try:
        ok, err = send_template(to_email, template, **variables)
    except Exception:
        current_app.logger.exception("notification %s to %s raised", template, to_email)
        return False
    if not ok:
        current_app.logger.warning("notification %s to %s not delivered: %s", template, to_email, err)
    return ok

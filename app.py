import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from routes import health_bp, auth_bp, account_bp

from models import db
from services.errors import FlowError
from utils.auth_context import load_current_user


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        if isinstance(test_config, dict):
            app.config.update(test_config)
        else:
            app.config.from_object(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(account_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(FlowError)
    def _flow_error(exc):
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(SQLAlchemyError)
    def _store_error(exc):
        db.session.rollback()
        app.logger.exception("database error")
        return jsonify(success=False, error="INTERNAL_ERROR", message="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
from models.otp_request import SignupRequest
from models.password_change_request import PasswordChangeRequest
from models.email_change_request import EmailChangeRequest
from services.request_store import RequestStore
from utils.timeutil import utcnow

def register_cli(app):
    @app.cli.command("purge-otp-requests")
    def purge_otp_requests():
        """Delete pending signup, password and email-change requests past their expiry."""
        now = utcnow()
        for model in (SignupRequest, PasswordChangeRequest, EmailChangeRequest):
            count = RequestStore(model).purge_expired(now)
            click.echo(f"{model.__tablename__}: {count} expired row(s) removed")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)

# backend/stockledger/__init__.py
import logging

from flask import Flask, current_app, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .services.concurrency import PersistenceFailure


def create_app(config_overrides: dict | None = None) -> Flask:
    """
    Build the application.

    The database handle (db) is bound to this app here; its engine and pool
    live as long as the app, and each request gets its own scoped session
    that Flask-SQLAlchemy removes on teardown.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.inbound import inbound_bp
    from .routes.outbound import outbound_bp
    from .routes.profit import profit_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inbound_bp)
    app.register_blueprint(outbound_bp)
    app.register_blueprint(profit_bp)

    if app.config.get("DEBUG_ROUTES_ENABLED"):
        from .routes.debug import debug_bp
        app.register_blueprint(debug_bp)

    @app.errorhandler(PersistenceFailure)
    def handle_persistence_failure(error: PersistenceFailure):
        current_app.logger.exception("Persistence failure on %s %s", request.method, request.path)
        body = {"error": "Database operation failed"}
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            body["details"] = str(error)
        return body, 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return {"error": "Internal server error"}, 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", []):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

# backend/opsengine/__init__.py
import atexit

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None, *, config_object=Config, identity=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)

    from .logging_config import configure_logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401
    from .models.immutability import register_immutability_listeners
    register_immutability_listeners()

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .engine import build_engine
    engine = build_engine(app, identity=identity)
    engine.start()
    atexit.register(engine.stop)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.inventory import inventory_bp
    from .routes.purchasing import purchasing_bp
    from .routes.attendance import attendance_bp
    from .routes.notifications import notifications_bp
    from .routes.dashboard import dashboard_bp
    from .routes.stream import stream_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(purchasing_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(stream_bp)

    allowed_origins = set(app.config.get("CORS_ORIGINS") or [])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

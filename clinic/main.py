import logging
import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

logger = logging.getLogger(__name__)


def create_app(config_overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Application factory.

    ``config_overrides`` is applied last; tests use it to inject a fixed
    clock (``CLINIC_CLOCK``) or to disable authentication.
    """
    # Only load from .env when DATABASE_URL is not already defined by the environment
    if not os.getenv("DATABASE_URL"):
        load_dotenv()

    app = Flask(__name__)

    testing_env = os.getenv("TESTING", "").lower().strip()
    if testing_env in ("true", "1", "yes"):
        app.config["TESTING"] = True

    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    from clinic.core import config
    from clinic.core.logging_config import setup_logging

    use_json_format = config.get_log_json() or is_production
    setup_logging(
        app=app,
        log_level=config.get_log_level(),
        slow_query_ms=config.get_slow_query_ms(),
        log_to_file=config.get_log_to_file() and not app.config.get("TESTING"),
        use_json_format=use_json_format,
    )
    logger.info(
        "Logging configured",
        extra={"context": {"environment": env, "json_format": use_json_format}},
    )
    config.log_timezone_config()
    config.log_scheduling_config()

    from clinic.core.security import get_jwt_secret_key

    # Raises on a weak or missing secret in production
    get_jwt_secret_key()
    app.config["LOGIN_DISABLED"] = (
        os.getenv("LOGIN_DISABLED", "false").lower() == "true"
    )
    app.config["NEXT_SLOT_TIMEOUT_SECONDS"] = float(
        os.getenv("NEXT_SLOT_TIMEOUT_SECONDS", "5")
    )
    app.config["CLINIC_CLOCK"] = None
    # Test apps are built repeatedly; they opt in with their own registry
    app.config["METRICS_ENABLED"] = config.get_metrics_enabled() and not app.config.get(
        "TESTING"
    )
    app.config["METRICS_REGISTRY"] = None
    if config_overrides:
        app.config.update(config_overrides)

    from clinic.core.observability import init_metrics, init_sentry

    init_sentry(env)
    if app.config["METRICS_ENABLED"]:
        init_metrics(app, env, registry=app.config["METRICS_REGISTRY"])

    if is_production:
        from flask_talisman import Talisman

        # JSON-only API: nothing may be framed, embedded or scripted
        Talisman(
            app,
            content_security_policy={
                "default-src": ["'none'"],
                "frame-ancestors": ["'none'"],
            },
            force_https=True,
            strict_transport_security=True,
            strict_transport_security_max_age=63072000,
            strict_transport_security_include_subdomains=True,
            frame_options="DENY",
            referrer_policy="no-referrer",
            session_cookie_secure=True,
        )
        logger.info(
            "HTTPS enforcement and security headers enabled",
            extra={"context": {"hsts_max_age": 63072000}},
        )

    from clinic.controllers.appointment_controller import appointment_bp
    from clinic.controllers.dependencies import close_request_session
    from clinic.controllers.health_controller import health_bp

    app.register_blueprint(appointment_bp)
    app.register_blueprint(health_bp)
    app.teardown_appcontext(close_request_session)

    @app.errorhandler(404)
    def not_found(error):
        return (
            jsonify(
                {"success": False, "error": "not_found", "message": "Resource not found"}
            ),
            404,
        )

    @app.errorhandler(405)
    def method_not_allowed(error):
        return (
            jsonify(
                {
                    "success": False,
                    "error": "method_not_allowed",
                    "message": "Method not allowed",
                }
            ),
            405,
        )

    from clinic.db.session import create_tables

    create_tables()
    logger.info("Database tables ensured")

    return app

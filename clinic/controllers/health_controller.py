"""
Health controller - health check endpoint for monitoring.
"""

import logging

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clinic import __version__
from clinic.controllers.dependencies import get_request_session

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
def health_check():
    """
    Report service liveness and database reachability.

    Returns:
        200 {"status": "healthy", "database": "ok", "version": ...}
        503 {"status": "degraded", "database": "unavailable", ...}

    Note:
        - No authentication required (monitoring endpoint)
    """
    try:
        get_request_session().execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(
            "Health check: database unreachable",
            extra={"context": {"endpoint": "/health", "error": str(e)}},
        )
        return (
            jsonify(
                {
                    "status": "degraded",
                    "database": "unavailable",
                    "version": __version__,
                }
            ),
            503,
        )

    return jsonify({"status": "healthy", "database": "ok", "version": __version__}), 200

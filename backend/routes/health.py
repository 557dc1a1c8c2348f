"""
Minimal health check endpoint

Reports database connectivity only; no internal state is exposed.
"""

from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from database import get_session
from order_mail.logging_config import get_logger

logger = get_logger(__name__)

# Create health blueprint
health_bp = Blueprint("health", __name__, url_prefix="/api")


def check_db_connection() -> bool:
    """Test database connectivity.

    Returns:
        True if database is accessible
    """
    try:
        with get_session() as session:
            return session.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.warning(f"Health check database probe failed: {e}")
        return False


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint.

    Returns:
        200: Service is healthy
        503: Database unreachable
    """
    database_ok = check_db_connection()
    health = {
        "status": "ok" if database_ok else "degraded",
        "timestamp": datetime.now().isoformat(),
        "checks": {"database": database_ok},
    }
    return jsonify(health), 200 if database_ok else 503

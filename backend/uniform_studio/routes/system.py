# Overview: Health check endpoint.

"""
System health endpoint.

Reports whether the API can reach its database, for load balancers and
local debugging.
"""

import time

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial query.

    Returns dict with status and latency.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    db_health = check_database_health()
    if db_health["status"] != "healthy":
        return jsonify({"status": "unhealthy", "db": db_health}), 500
    return jsonify({"status": "ok", "db": db_health}), 200

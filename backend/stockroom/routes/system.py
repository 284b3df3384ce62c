# backend/stockroom/routes/system.py
"""
System health and version endpoints, plus serving uploaded files.
"""

import os
import time
from flask import Blueprint, current_app, jsonify, send_from_directory, abort
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from ..extensions import db
from ..services.storage_service import BUCKETS

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and latency.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "checks": {"database": database},
    }), 200 if healthy else 503


@system_bp.get("/version")
def version():
    return jsonify({
        "name": "stockroom",
        "version": current_app.config.get("APP_VERSION"),
        "insights_model": current_app.config.get("INSIGHTS_MODEL"),
    })


@system_bp.get("/uploads/<bucket>/<path:filename>")
def serve_upload(bucket: str, filename: str):
    """Public read access to uploaded images (URLs are unguessable)."""
    if bucket not in BUCKETS:
        abort(404)
    root = os.path.join(current_app.config["UPLOAD_FOLDER"], bucket)
    return send_from_directory(root, filename)

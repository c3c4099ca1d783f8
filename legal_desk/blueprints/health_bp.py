"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  process is up (load balancer probe)
    GET /api/v1/health/live   database, form configs and upload folder

Only a database failure makes ``live`` return 503. Missing form configs or
an unwritable upload folder are reported as ``warn`` so operators see them
without the instance being pulled from rotation.
"""

import logging
import os
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from legal_desk.models import db
from legal_desk.models.form_config import FORM_CATALOG, FormConfig

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


def _check_database():
    t0 = time.perf_counter()
    db.session.execute(db.text("SELECT 1"))
    return {"status": "ok", "latency_ms": round((time.perf_counter() - t0) * 1000, 1)}


def _check_form_configs():
    configured = db.session.execute(select(func.count(FormConfig.id))).scalar_one()
    status = "ok" if configured >= len(FORM_CATALOG) else "warn"
    return {"status": status, "configured": configured, "expected": len(FORM_CATALOG)}


def _check_uploads():
    folder = current_app.config.get("UPLOAD_FOLDER", "")
    target = folder if os.path.isdir(folder) else os.path.dirname(folder)
    writable = bool(target) and os.access(target, os.W_OK)
    return {"status": "ok" if writable else "warn", "exists": os.path.isdir(folder)}


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {}
    healthy = True

    try:
        checks["database"] = _check_database()
        checks["form_configs"] = _check_form_configs()
    except SQLAlchemyError as exc:
        db.session.rollback()
        healthy = False
        checks["database"] = {"status": "error", "detail": str(exc)}
        logger.error("Health check: database failed: %s", exc)

    checks["uploads"] = _check_uploads()

    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503

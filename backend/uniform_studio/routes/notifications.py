# Overview: Flask API routes for the caller's notification feed.

from __future__ import annotations

from flask import Blueprint, jsonify, request, g, current_app

from ..extensions import db
from ..services import notification_service
from ..decorators import require_auth
from ..errors import DOMAIN_ERRORS, error_response

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    try:
        return jsonify(notification_service.list_notifications(g.principal.user_id))
    except Exception:
        current_app.logger.exception("Failed to list notifications")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.route("", methods=["POST"])
@require_auth
def create_notification():
    try:
        result = notification_service.create_notification(g.principal.user_id, request.get_json(silent=True))
        return jsonify(result), 201
    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create notification")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.route("", methods=["DELETE"])
@require_auth
def clear_notifications():
    try:
        count = notification_service.clear_all(g.principal.user_id)
        return jsonify({"message": "All notifications cleared", "count": count})
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to clear notifications")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT"])
@require_auth
def mark_read(notification_id: int):
    try:
        return jsonify(notification_service.mark_read(g.principal.user_id, notification_id))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to mark notification read")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.route("/read-all", methods=["PUT"])
@require_auth
def mark_all_read():
    try:
        count = notification_service.mark_all_read(g.principal.user_id)
        return jsonify({"message": "All notifications marked as read", "count": count})
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to mark all notifications read")
        return jsonify({"error": "Internal server error"}), 500

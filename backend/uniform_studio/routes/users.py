# Overview: Flask API routes for user profiles.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import user_service
from ..decorators import require_auth
from ..errors import DOMAIN_ERRORS, error_response


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/me")
@require_auth
def current_user_route():
    try:
        user = user_service.get_user(g.principal.user_id)
        return jsonify(user.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get current user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
        return jsonify(user.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/<int:user_id>")
@require_auth
def update_user_route(user_id: int):
    """
    Update name and/or organization.

    Allowed for the user themself or an Admin; 403 otherwise.
    """
    try:
        user = user_service.update_profile(g.principal, user_id, request.get_json(silent=True))
        return jsonify(user.to_dict()), 200
    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500

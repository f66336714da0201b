# Overview: Flask API routes for registration and login; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models.notifications import TYPE_SUCCESS
from ..services import auth_service, notification_service, token_service
from ..validation import ValidationError, ConflictError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Create an account and return it with a bearer token.

    400 on validation failure or an email that is already registered.
    """
    try:
        user = auth_service.register(request.get_json(silent=True))
        token = token_service.issue_token(user)
        return jsonify({"user": user.to_public_dict(), "token": token}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email and password.

    Unknown email and wrong password both return 401 "Invalid credentials".
    """
    try:
        email, password = auth_service.validate_login(request.get_json(silent=True))

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        notification_service.notify(
            user.id,
            "Login Successful",
            f"Welcome back, {user.name}. Session established.",
            TYPE_SUCCESS,
        )
        token = token_service.issue_token(user)
        return jsonify({"user": user.to_public_dict(), "token": token}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

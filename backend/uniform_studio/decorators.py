# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import token_service, permission_service


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.principal (user_id, email, role) from the verified token.

    SECURITY: Returns the same 401 body whether the header is missing,
    malformed, signed with another key or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = token_service.authenticate_header(request.headers.get("Authorization"))
        if principal is None:
            return jsonify({"error": "Unauthorized"}), 401

        g.principal = principal
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require the authenticated principal's role to hold a capability.

    Must be applied below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Unauthorized"}), 401

            if not permission_service.has_capability(principal.role, capability):
                return jsonify({"error": "Forbidden"}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator

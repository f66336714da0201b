# Overview: Mapping of domain errors to JSON responses and app-wide error handlers.

from flask import jsonify, current_app

from .validation import ValidationError, ConflictError, NotFoundError, PermissionDeniedError


DOMAIN_ERRORS = (ValidationError, ConflictError, PermissionDeniedError, NotFoundError)


def error_response(e: Exception):
    """Map a domain error to its status code. Anything else is re-raised."""
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e), "details": e.details}), 400
    # Duplicate keys are reported as 400, like other rejected input
    if isinstance(e, ConflictError):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, PermissionDeniedError):
        return jsonify({"error": "Forbidden"}), 403
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    raise e


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        current_app.logger.error("Unhandled server error: %s", e)
        return jsonify({"error": "Internal server error"}), 500

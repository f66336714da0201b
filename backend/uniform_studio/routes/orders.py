# Overview: Flask API routes for orders (sheet line items); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import order_service
from ..services.permission_service import ORDER_CREATE, ORDER_DELETE
from ..decorators import require_auth, require_capability
from ..errors import DOMAIN_ERRORS, error_response


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List all orders, newest first.

    Query params:
    - q: search order number, client name, product name
    - queue=delivery: only orders awaiting or past quality inspection
    """
    try:
        orders = order_service.list_orders(
            search=request.args.get("q"),
            queue=request.args.get("queue"),
        )
        return jsonify(orders), 200

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/stats")
@require_auth
def order_stats_route():
    try:
        return jsonify(order_service.dashboard_stats()), 200
    except Exception:
        current_app.logger.exception("Failed to compute order stats")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("")
@require_auth
@require_capability(ORDER_CREATE)
def create_order_route():
    """
    Create a single-item order sheet.

    Available to: Admin, Sales
    """
    try:
        order = order_service.create_order(request.get_json(silent=True), g.principal.user_id)
        return jsonify(order.to_dict()), 201

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
        return jsonify(order.to_dict()), 200

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>")
@require_auth
def update_order_route(order_id: int):
    """
    Partial update.

    Detail fields need Admin or Sales; status and postDelivery are open to
    Admin, Sales and Production (checked per field in order_service).
    """
    try:
        order = order_service.update_order(order_id, request.get_json(silent=True), g.principal)
        return jsonify(order.to_dict()), 200

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/post-delivery")
@require_auth
def log_outcome_route(order_id: int):
    """Log the post-delivery quality outcome; the order becomes Delivered."""
    try:
        order = order_service.log_outcome(order_id, request.get_json(silent=True), g.principal)
        return jsonify(order.to_dict()), 200

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to log post-delivery outcome")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_capability(ORDER_DELETE)
def delete_order_route(order_id: int):
    """
    Delete one order; its sheet is removed too when it was the last item.

    Available to: Admin, Sales
    """
    try:
        order_service.delete_order(order_id)
        return jsonify({"message": "Order deleted successfully"}), 200

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500

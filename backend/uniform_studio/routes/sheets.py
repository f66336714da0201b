# Overview: Flask API routes for multi-item order sheets.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import order_service
from ..services.permission_service import ORDER_CREATE, ORDER_DELETE
from ..decorators import require_auth, require_capability
from ..errors import DOMAIN_ERRORS, error_response


sheets_bp = Blueprint("sheets", __name__, url_prefix="/api/sheets")


@sheets_bp.get("")
@require_auth
def list_sheets_route():
    try:
        return jsonify(order_service.list_sheets(search=request.args.get("q"))), 200
    except Exception:
        current_app.logger.exception("Failed to list order sheets")
        return jsonify({"error": "Internal server error"}), 500


@sheets_bp.post("")
@require_auth
@require_capability(ORDER_CREATE)
def create_sheet_route():
    """
    Create a sheet and all of its items in one transaction.

    Body: header fields (orderNumber, clientName, ...) plus "items": [...]
    Available to: Admin, Sales
    """
    try:
        sheet = order_service.create_sheet(request.get_json(silent=True), g.principal.user_id)
        return jsonify(sheet.to_dict()), 201

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create order sheet")
        return jsonify({"error": "Internal server error"}), 500


@sheets_bp.get("/<int:sheet_id>")
@require_auth
def get_sheet_route(sheet_id: int):
    try:
        return jsonify(order_service.get_sheet(sheet_id).to_dict()), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get order sheet")
        return jsonify({"error": "Internal server error"}), 500


@sheets_bp.post("/<int:sheet_id>/items")
@require_auth
@require_capability(ORDER_CREATE)
def add_item_route(sheet_id: int):
    try:
        order = order_service.add_item(sheet_id, request.get_json(silent=True))
        return jsonify(order.to_dict()), 201

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to add item to order sheet")
        return jsonify({"error": "Internal server error"}), 500


@sheets_bp.delete("/<int:sheet_id>")
@require_auth
@require_capability(ORDER_DELETE)
def delete_sheet_route(sheet_id: int):
    try:
        order_service.delete_sheet(sheet_id)
        return jsonify({"message": "Order sheet deleted successfully"}), 200

    except DOMAIN_ERRORS as e:
        db.session.rollback()
        return error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete order sheet")
        return jsonify({"error": "Internal server error"}), 500

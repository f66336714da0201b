# Overview: Service-layer operations for order sheets, line items and post-delivery outcomes.

"""
Order Record Store

A sheet (OrderSheet) carries the header shared by all of its line items:
order number, type, client, brand, the three dates and the sales person.
Each line item is an Order row. API payloads use the flattened camelCase
shape, so a payload is split into header, item and outcome parts before
validation; anything else is rejected.

RULES:
- order numbers are unique per sheet; creating a sheet (or a one-item order)
  with a number already in use is a conflict
- the author always comes from the authenticated principal
- totalQuantity is derived from sizes and never read from input
- new items always start at the initial production status
- logging an outcome forces the item to Delivered in the same commit
- an outcome is logged once; a second attempt is a conflict
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Order, OrderSheet, PostDeliveryOutcome
from ..models.orders import VALID_ORDER_TYPES, VALID_OUTCOME_STATUSES, OUTCOME_ALTERATION
from ..models.notifications import TYPE_ALERT, TYPE_SUCCESS
from ..time_utils import same_instant, utcnow
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    validate_payload,
    string_list,
    number_list,
    size_breakdown,
    one_of,
)
from . import notification_service, permission_service, workflow


SHEET_POLICY = ModelValidationPolicy(
    writable_fields={
        "orderNumber": "order_number",
        "type": "order_type",
        "clientName": "client_name",
        "brand": "brand",
        "date": "order_date",
        "startDate": "start_date",
        "deliveryDate": "delivery_date",
    },
    required_on_create=frozenset({"orderNumber", "clientName"}),
    allow_blank_fields=frozenset({"brand"}),
    coercers={"type": one_of(VALID_ORDER_TYPES)},
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "productName": "product_name",
        "itemDescription": "item_description",
        "fabric": "fabric",
        "color": "color",
        "sleeve": "sleeve",
        "fabricSupplier": "fabric_supplier",
        "accessories": "accessories",
        "patternFollowed": "pattern_followed",
        "cmPrice": "cm_price",
        "cmUnit": "cm_unit",
        "cmPartner": "cm_partner",
        "embroideryPrint": "embroidery_print",
        "sizes": "sizes",
        "images": "images",
        "logoImage": "logo_image",
        "status": "status",
        "notes": "notes",
    },
    required_on_create=frozenset({"productName"}),
    allow_blank_fields=frozenset({
        "itemDescription", "color", "sleeve", "patternFollowed", "cmPartner",
    }),
    coercers={
        "fabric": string_list,
        "fabricSupplier": string_list,
        "accessories": string_list,
        "cmPrice": number_list,
        "cmUnit": string_list,
        "embroideryPrint": string_list,
        "sizes": size_breakdown,
        "images": string_list,
        "status": one_of(workflow.PRODUCTION_STATUSES),
    },
)

OUTCOME_KEY = "postDelivery"
OUTCOME_FIELDS = {"status", "reason", "solution", "salesComments", "loggedAt"}

# Server-maintained fields clients may echo back; accepted and ignored
READ_ONLY_FIELDS = frozenset({
    "id", "sheetId", "totalQuantity", "progress", "salesPerson", "salesPersonId",
    "createdAt", "updatedAt",
})


def _split_payload(data) -> tuple[dict, dict, dict | None]:
    """Split a flattened order payload into header, item and outcome parts."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    header: dict = {}
    item: dict = {}
    outcome = None
    for key, value in data.items():
        if key in SHEET_POLICY.writable_fields:
            header[key] = value
        elif key in ITEM_POLICY.writable_fields:
            item[key] = value
        elif key == OUTCOME_KEY:
            outcome = value
        elif key in READ_ONLY_FIELDS:
            continue
        else:
            raise ValidationError(f"Field not allowed: {key}")
    return header, item, outcome


def _ensure_order_number_free(order_number: str, exclude_sheet_id: int | None = None) -> None:
    q = db.session.query(OrderSheet.id).filter(OrderSheet.order_number == order_number)
    if exclude_sheet_id is not None:
        q = q.filter(OrderSheet.id != exclude_sheet_id)
    if q.first():
        raise ConflictError("Order number already exists")


def _new_sheet(header: dict, author_id: int) -> OrderSheet:
    patch = validate_payload(model=OrderSheet, payload=header, policy=SHEET_POLICY, partial=False)
    _ensure_order_number_free(patch["order_number"])

    now = utcnow()
    # Creation date is always stamped by the server
    patch.pop("order_date", None)
    return OrderSheet(
        order_date=now,
        start_date=patch.pop("start_date", None) or now,
        delivery_date=patch.pop("delivery_date", None) or now,
        sales_person_id=author_id,
        **patch,
    )


def _new_item(item: dict, position: int) -> Order:
    # New items always enter the workflow at the start; a supplied status is ignored
    item = {k: v for k, v in item.items() if k != "status"}
    patch = validate_payload(model=Order, payload=item, policy=ITEM_POLICY, partial=False)
    return Order(position=position, status=workflow.INITIAL_STATUS, **patch)


def _commit_new_sheet(sheet: OrderSheet) -> None:
    notification_service.build_notification(
        sheet.sales_person_id,
        "New Order Created",
        f"{sheet.order_number} for {sheet.client_name} has been added.",
        TYPE_SUCCESS,
    )
    db.session.add(sheet)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Order number already exists")
    current_app.logger.info(
        "Order sheet created: %s (%s items) by user %s",
        sheet.order_number, len(sheet.items), sheet.sales_person_id,
    )


# =============================================================================
# READS
# =============================================================================

def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def get_sheet(sheet_id: int) -> OrderSheet:
    sheet = db.session.get(OrderSheet, sheet_id)
    if not sheet:
        raise NotFoundError("Order sheet not found")
    return sheet


def list_orders(search: str | None = None, queue: str | None = None) -> list[dict]:
    """
    All line items, newest first.

    search: case-insensitive match on order number, client name or product name
    queue: "delivery" limits to orders in the quality/delivery queue
    """
    q = db.session.query(Order).join(OrderSheet, Order.sheet_id == OrderSheet.id)

    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(OrderSheet.order_number).like(pattern),
            func.lower(OrderSheet.client_name).like(pattern),
            func.lower(Order.product_name).like(pattern),
        ))

    if queue:
        if queue != "delivery":
            raise ValidationError("queue must be 'delivery'")
        q = q.filter(Order.status.in_(workflow.DELIVERY_QUEUE_STATUSES))

    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    return [o.to_dict() for o in q.all()]


def list_sheets(search: str | None = None) -> list[dict]:
    q = db.session.query(OrderSheet)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(OrderSheet.order_number).like(pattern),
            func.lower(OrderSheet.client_name).like(pattern),
            OrderSheet.items.any(func.lower(Order.product_name).like(pattern)),
        ))
    q = q.order_by(OrderSheet.created_at.desc(), OrderSheet.id.desc())
    return [s.to_dict() for s in q.all()]


def dashboard_stats() -> dict:
    """Counts for the dashboard tiles plus a per-stage breakdown."""
    by_status = dict(
        db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
    )
    alerts = (
        db.session.query(func.count(PostDeliveryOutcome.id))
        .filter(PostDeliveryOutcome.status == OUTCOME_ALTERATION)
        .scalar()
    )
    registry = sum(by_status.values())
    completed = by_status.get(workflow.TERMINAL_STATUS, 0)
    received = by_status.get(workflow.INITIAL_STATUS, 0)
    return {
        "registry": registry,
        "inProduction": registry - completed - received,
        "completed": completed,
        "alerts": alerts or 0,
        "byStatus": {status: by_status.get(status, 0) for status in workflow.PRODUCTION_STATUSES},
    }


# =============================================================================
# CREATE
# =============================================================================

def create_order(data, author_id: int) -> Order:
    """Create a one-item sheet from a flattened order payload."""
    header, item, outcome = _split_payload(data)
    if outcome is not None:
        raise ValidationError("postDelivery cannot be set when creating an order")

    sheet = _new_sheet(header, author_id)
    order = _new_item(item, position=0)
    sheet.items.append(order)
    _commit_new_sheet(sheet)
    return order


def create_sheet(data, author_id: int) -> OrderSheet:
    """
    Create a sheet with its items in one transaction.

    Payload: header fields plus ``items``: a list of item payloads. Items with
    a blank productName are dropped; at least one must remain.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    header = dict(data)
    raw_items = header.pop("items", None)
    for key in list(header):
        if key in READ_ONLY_FIELDS:
            header.pop(key)
        elif key not in SHEET_POLICY.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")

    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    kept = [
        raw for raw in raw_items
        if isinstance(raw, dict) and isinstance(raw.get("productName"), str) and raw["productName"].strip()
    ]
    if not kept:
        raise ValidationError("Please add at least one item")

    sheet = _new_sheet(header, author_id)
    for position, raw in enumerate(kept):
        item = {k: v for k, v in raw.items() if k not in READ_ONLY_FIELDS}
        try:
            sheet.items.append(_new_item(item, position))
        except ValidationError as e:
            raise ValidationError(f"items[{position}]: {e}", details=e.details)

    _commit_new_sheet(sheet)
    return sheet


def add_item(sheet_id: int, data) -> Order:
    sheet = get_sheet(sheet_id)
    header, item, outcome = _split_payload(data)
    if header:
        raise ValidationError(f"Field not allowed: {next(iter(header))}")
    if outcome is not None:
        raise ValidationError("postDelivery cannot be set when creating an order")

    position = max((i.position for i in sheet.items), default=-1) + 1
    order = _new_item(item, position)
    sheet.items.append(order)
    db.session.commit()
    return order


# =============================================================================
# UPDATE
# =============================================================================

def _validate_outcome(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("postDelivery must be an object")

    for key in data:
        if key not in OUTCOME_FIELDS:
            raise ValidationError(f"Field not allowed: postDelivery.{key}")

    status = data.get("status")
    if status not in VALID_OUTCOME_STATUSES:
        raise ValidationError(f"postDelivery.status must be one of: {', '.join(VALID_OUTCOME_STATUSES)}")

    cleaned = {"status": status}
    for key, attr in (("reason", "reason"), ("solution", "solution"), ("salesComments", "sales_comments")):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"postDelivery.{key} must be a string")
        cleaned[attr] = value.strip() if value and value.strip() else None

    if status == OUTCOME_ALTERATION and not cleaned["solution"]:
        raise ValidationError(
            "A solution is required when alteration is required",
            details=[{"field": "postDelivery.solution", "message": "is required"}],
        )
    return cleaned


def _attach_outcome(order: Order, cleaned: dict) -> PostDeliveryOutcome:
    if order.post_delivery is not None:
        raise ConflictError("Post-delivery outcome already logged for this order")
    outcome = PostDeliveryOutcome(logged_at=utcnow(), **cleaned)
    order.post_delivery = outcome
    # Inspection is terminal for the workflow
    order.status = workflow.TERMINAL_STATUS
    if cleaned["status"] == OUTCOME_ALTERATION:
        sheet = order.sheet
        notification_service.build_notification(
            sheet.sales_person_id,
            "ALTERATION ALERT",
            f"Batch {sheet.order_number} for {sheet.client_name} needs alteration. "
            f"Details: {cleaned['solution']}",
            TYPE_ALERT,
        )
    return outcome


def _same_value(current, value) -> bool:
    if isinstance(current, datetime) and isinstance(value, datetime):
        return same_instant(current, value)
    return current == value


def _changed_only(target, patch: dict) -> dict:
    return {attr: value for attr, value in patch.items() if not _same_value(getattr(target, attr), value)}


def _matches_outcome(outcome: PostDeliveryOutcome, cleaned: dict) -> bool:
    return all(getattr(outcome, attr) == value for attr, value in cleaned.items())


def update_order(order_id: int, data, principal) -> Order:
    """
    Partial update of one line item.

    Header fields update the owning sheet (shared by its items). Clients may
    send the whole record back with their change: fields equal to the stored
    value are dropped before role checks, and a postDelivery identical to the
    logged outcome is a no-op. Nothing is written until the whole payload
    validates and the caller's role allows every remaining change.
    """
    order = get_order(order_id)
    sheet = order.sheet
    header, item, outcome = _split_payload(data)

    has_status = "status" in item
    status = item.pop("status", None)

    header_patch = validate_payload(model=OrderSheet, payload=header, policy=SHEET_POLICY, partial=True)
    item_patch = validate_payload(model=Order, payload=item, policy=ITEM_POLICY, partial=True)
    cleaned_outcome = _validate_outcome(outcome) if outcome is not None else None
    if has_status:
        workflow.require_transition(order.status, status)

    header_patch = _changed_only(sheet, header_patch)
    item_patch = _changed_only(order, item_patch)
    if has_status and status == order.status:
        has_status = False
    if cleaned_outcome is not None and order.post_delivery is not None:
        if not _matches_outcome(order.post_delivery, cleaned_outcome):
            raise ConflictError("Post-delivery outcome already logged for this order")
        cleaned_outcome = None

    if header_patch or item_patch:
        permission_service.require_capability(principal, permission_service.ORDER_EDIT)
    if has_status:
        permission_service.require_capability(principal, permission_service.ORDER_STATUS)
    if cleaned_outcome is not None:
        permission_service.require_capability(principal, permission_service.ORDER_OUTCOME)

    if "order_number" in header_patch:
        _ensure_order_number_free(header_patch["order_number"], exclude_sheet_id=sheet.id)

    for attr, value in header_patch.items():
        setattr(sheet, attr, value)
    for attr, value in item_patch.items():
        # Assigning sizes recomputes total_quantity on the model
        setattr(order, attr, value)
    if has_status:
        order.status = status
    if cleaned_outcome is not None:
        _attach_outcome(order, cleaned_outcome)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Order number already exists")
    return order


def log_outcome(order_id: int, data, principal) -> Order:
    """Record the post-delivery inspection and mark the order Delivered."""
    permission_service.require_capability(principal, permission_service.ORDER_OUTCOME)
    order = get_order(order_id)
    cleaned = _validate_outcome(data)
    _attach_outcome(order, cleaned)
    db.session.commit()
    current_app.logger.info(
        "Post-delivery outcome logged for order %s: %s", order.id, cleaned["status"]
    )
    return order


# =============================================================================
# DELETE
# =============================================================================

def delete_order(order_id: int) -> None:
    """Delete one line item; a sheet left without items goes with it."""
    order = get_order(order_id)
    sheet = order.sheet
    if len(sheet.items) <= 1:
        db.session.delete(sheet)
    else:
        sheet.items.remove(order)
    db.session.commit()


def delete_sheet(sheet_id: int) -> None:
    sheet = get_sheet(sheet_id)
    db.session.delete(sheet)
    db.session.commit()

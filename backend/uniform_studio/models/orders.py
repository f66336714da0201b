from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..services.workflow import INITIAL_STATUS, progress_percent
from ..time_utils import to_utc_z


ORDER_TYPE_SAMPLE = "Pre Production Sample"
ORDER_TYPE_FINAL = "Final Production"
VALID_ORDER_TYPES = (ORDER_TYPE_SAMPLE, ORDER_TYPE_FINAL)

OUTCOME_SUCCESSFUL = "Successful"
OUTCOME_ALTERATION = "Alteration Required"
VALID_OUTCOME_STATUSES = (OUTCOME_SUCCESSFUL, OUTCOME_ALTERATION)


def sum_quantities(sizes) -> int:
    return sum(int(entry.get("quantity") or 0) for entry in (sizes or []))


class OrderSheet(db.Model):
    """
    A customer order sheet: the shared header for one or more line items.

    The order number is unique per sheet. Every item on the sheet is an
    Order row that points back here; the header (client, brand, dates,
    sales person) is stored once and flattened onto each serialized item.
    """
    __tablename__ = "order_sheets"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_order_sheets_order_number"),
        db.Index("ix_order_sheets_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "OS-2025290")
    order_number = db.Column(db.String(64), nullable=False)
    order_type = db.Column(db.String(32), nullable=False, default=ORDER_TYPE_FINAL)

    client_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=False, default="")

    # Creation, production start, target delivery
    order_date = db.Column(db.DateTime(timezone=True), nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=False)

    sales_person_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    sales_person = db.relationship("User", lazy="joined")
    items = db.relationship(
        "Order",
        back_populates="sheet",
        order_by="Order.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def header_dict(self) -> dict:
        return {
            "orderNumber": self.order_number,
            "type": self.order_type,
            "date": to_utc_z(self.order_date),
            "startDate": to_utc_z(self.start_date),
            "deliveryDate": to_utc_z(self.delivery_date),
            "clientName": self.client_name,
            "brand": self.brand,
            # Public identity only; never the password hash
            "salesPerson": self.sales_person.name if self.sales_person else None,
            "salesPersonId": self.sales_person_id,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            **self.header_dict(),
            "totalQuantity": sum(item.total_quantity for item in self.items),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class Order(db.Model):
    """
    A single manufacturing line item on an order sheet.

    total_quantity is derived: it is recomputed from the size breakdown every
    time ``sizes`` is assigned and is never written directly from input.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_sheet_position", "sheet_id", "position"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sheet_id = db.Column(db.Integer, db.ForeignKey("order_sheets.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    # Product description bundle
    product_name = db.Column(db.String(255), nullable=False)
    item_description = db.Column(db.Text, nullable=False, default="")
    fabric = db.Column(db.JSON, nullable=False, default=list)
    color = db.Column(db.String(120), nullable=False, default="")
    sleeve = db.Column(db.String(120), nullable=False, default="")
    fabric_supplier = db.Column(db.JSON, nullable=False, default=list)
    accessories = db.Column(db.JSON, nullable=False, default=list)
    pattern_followed = db.Column(db.String(255), nullable=False, default="")

    # Pricing bundle
    cm_price = db.Column(db.JSON, nullable=False, default=list)
    cm_unit = db.Column(db.JSON, nullable=False, default=list)
    cm_partner = db.Column(db.String(255), nullable=False, default="")

    embroidery_print = db.Column(db.JSON, nullable=False, default=list)

    # Ordered [{"size": "M", "quantity": 3}, ...]
    sizes = db.Column(db.JSON, nullable=False, default=list)
    total_quantity = db.Column(db.Integer, nullable=False, default=0)

    images = db.Column(db.JSON, nullable=False, default=list)
    logo_image = db.Column(db.Text, nullable=True)

    # Production status (see services/workflow.py)
    status = db.Column(db.String(32), nullable=False, default=INITIAL_STATUS, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    sheet = db.relationship("OrderSheet", back_populates="items", lazy="joined")
    post_delivery = db.relationship(
        "PostDeliveryOutcome",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="joined",
    )

    @validates("sizes")
    def _recompute_total(self, key, sizes):
        self.total_quantity = sum_quantities(sizes)
        return sizes

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sheetId": self.sheet_id,
            **self.sheet.header_dict(),
            "productName": self.product_name,
            "itemDescription": self.item_description,
            "fabric": list(self.fabric or []),
            "color": self.color,
            "sleeve": self.sleeve,
            "fabricSupplier": list(self.fabric_supplier or []),
            "accessories": list(self.accessories or []),
            "patternFollowed": self.pattern_followed,
            "cmPrice": list(self.cm_price or []),
            "cmUnit": list(self.cm_unit or []),
            "cmPartner": self.cm_partner,
            "embroideryPrint": list(self.embroidery_print or []),
            "sizes": [dict(entry) for entry in (self.sizes or [])],
            "totalQuantity": self.total_quantity,
            "images": list(self.images or []),
            "logoImage": self.logo_image,
            "status": self.status,
            "progress": progress_percent(self.status),
            "notes": self.notes,
            "postDelivery": self.post_delivery.to_dict() if self.post_delivery else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class PostDeliveryOutcome(db.Model):
    """
    Quality inspection result recorded once an order has been delivered.

    Owned 1:1 by its order and removed with it.
    """
    __tablename__ = "post_delivery_outcomes"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_post_delivery_outcomes_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)

    status = db.Column(db.String(32), nullable=False)  # Successful, Alteration Required
    reason = db.Column(db.Text, nullable=True)
    solution = db.Column(db.Text, nullable=True)
    sales_comments = db.Column(db.Text, nullable=True)
    logged_at = db.Column(db.DateTime(timezone=True), nullable=False)

    order = db.relationship("Order", back_populates="post_delivery")

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "reason": self.reason,
            "solution": self.solution,
            "salesComments": self.sales_comments,
            "loggedAt": to_utc_z(self.logged_at),
        }

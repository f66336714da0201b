from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


TYPE_INFO = "info"
TYPE_SUCCESS = "success"
TYPE_ALERT = "alert"
TYPE_MESSAGE = "message"
VALID_NOTIFICATION_TYPES = (TYPE_INFO, TYPE_SUCCESS, TYPE_ALERT, TYPE_MESSAGE)


class Notification(db.Model):
    """
    In-app notification owned by exactly one user.

    Immutable apart from ``read``, which only ever moves from False to True.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_read", "user_id", "read"),
        db.Index("ix_notifications_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(16), nullable=False, default=TYPE_INFO)  # info, success, alert, message
    read = db.Column(db.Boolean, nullable=False, default=False)
    sender = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "read": self.read,
            "sender": self.sender,
            "timestamp": to_utc_z(self.created_at),
        }

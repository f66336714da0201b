from __future__ import annotations

from flask import current_app
from sqlalchemy import delete, update

from ..extensions import db
from ..models import Notification, User
from ..models.notifications import TYPE_INFO, VALID_NOTIFICATION_TYPES
from ..validation import ValidationError, NotFoundError


def list_notifications(user_id: int) -> list[dict]:
    q = (
        db.session.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return [n.to_dict() for n in q.all()]


def _clean_text(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    return value.strip()


def build_notification(
    user_id: int,
    title: str,
    message: str,
    type: str = TYPE_INFO,
    sender: str | None = None,
) -> Notification:
    """Add a notification to the current session without committing."""
    if type not in VALID_NOTIFICATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(VALID_NOTIFICATION_TYPES)}")
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        read=False,
        sender=sender,
    )
    db.session.add(notification)
    return notification


def create_notification(owner_id: int, data: dict) -> dict:
    """
    Create a notification from an API payload.

    The owner defaults to the caller; an explicit ``userId`` in the payload
    targets another user (system-originated notifications).
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    title = _clean_text(data, "title")
    message = _clean_text(data, "message")
    ntype = data.get("type") or TYPE_INFO
    sender = data.get("sender")
    if sender is not None and not isinstance(sender, str):
        raise ValidationError("sender must be a string")

    target_id = data.get("userId")
    if target_id is not None:
        if isinstance(target_id, bool) or not isinstance(target_id, (int, str)):
            raise ValidationError("userId must be an integer")
        try:
            target_id = int(target_id)
        except ValueError:
            raise ValidationError("userId must be an integer")
        if not db.session.get(User, target_id):
            raise NotFoundError("User not found")
    else:
        target_id = owner_id

    notification = build_notification(target_id, title, message, ntype, sender)
    db.session.commit()
    return notification.to_dict()


def notify(user_id: int, title: str, message: str, type: str = TYPE_INFO) -> Notification:
    """Write a workflow notification and commit it."""
    notification = build_notification(user_id, title, message, type)
    db.session.commit()
    return notification


def mark_read(user_id: int, notification_id: int) -> dict:
    """
    Flip one notification to read.

    Ownership is part of the UPDATE predicate, so another user's id simply
    matches nothing and reports as not found.
    """
    result = db.session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
    )
    if result.rowcount == 0:
        db.session.rollback()
        raise NotFoundError("Notification not found")
    db.session.commit()
    return {"id": notification_id, "read": True}


def mark_all_read(user_id: int) -> int:
    """Set-scoped bulk read. Returns the number of notifications flipped."""
    result = db.session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    db.session.commit()
    return result.rowcount


def clear_all(user_id: int) -> int:
    result = db.session.execute(
        delete(Notification).where(Notification.user_id == user_id)
    )
    db.session.commit()
    current_app.logger.info("Cleared %s notifications for user %s", result.rowcount, user_id)
    return result.rowcount

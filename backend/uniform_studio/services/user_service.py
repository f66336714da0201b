from __future__ import annotations

from ..extensions import db
from ..models import User, ROLE_ADMIN
from ..validation import ValidationError, NotFoundError, PermissionDeniedError
from .token_service import Principal
from . import notification_service


# Only these profile fields may be edited through the API
WRITABLE_PROFILE_FIELDS = {"name", "organization"}
MAX_NAME_LENGTH = 120
MAX_ORGANIZATION_LENGTH = 255


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def can_edit_profile(principal: Principal, user_id: int) -> bool:
    return principal.user_id == user_id or principal.role == ROLE_ADMIN


def update_profile(principal: Principal, user_id: int, data) -> User:
    """
    Update a user's name and/or organization.

    The user themself or an Admin may edit. A blank or missing name leaves the
    current name; organization may be cleared with null or "".
    """
    if not can_edit_profile(principal, user_id):
        raise PermissionDeniedError("Forbidden")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    for key in data:
        if key not in WRITABLE_PROFILE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")

    user = get_user(user_id)

    if "name" in data:
        name = data["name"]
        if name is not None and not isinstance(name, str):
            raise ValidationError("name must be a string")
        if name and name.strip():
            if len(name.strip()) > MAX_NAME_LENGTH:
                raise ValidationError(f"name exceeds max length {MAX_NAME_LENGTH}")
            user.name = name.strip()

    if "organization" in data:
        organization = data["organization"]
        if organization is not None and not isinstance(organization, str):
            raise ValidationError("organization must be a string")
        organization = organization.strip() if organization else None
        if organization and len(organization) > MAX_ORGANIZATION_LENGTH:
            raise ValidationError(f"organization exceeds max length {MAX_ORGANIZATION_LENGTH}")
        user.organization = organization or None

    notification_service.build_notification(
        user.id,
        "Profile Updated",
        "Your personal details have been saved successfully.",
        "info",
    )
    db.session.commit()
    return user

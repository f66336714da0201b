# Overview: Role capability matrix for order operations.

"""
Role-based capabilities.

Each capability lists the roles allowed to perform it. Routes gate whole
endpoints with decorators.require_capability; order_service checks
field-dependent capabilities (details vs. status vs. outcome) itself.
"""

from __future__ import annotations

from ..models import ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION
from ..validation import PermissionDeniedError


ORDER_CREATE = "ORDER_CREATE"
ORDER_EDIT = "ORDER_EDIT"
ORDER_STATUS = "ORDER_STATUS"
ORDER_OUTCOME = "ORDER_OUTCOME"
ORDER_DELETE = "ORDER_DELETE"

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ORDER_CREATE: frozenset({ROLE_ADMIN, ROLE_SALES}),
    ORDER_EDIT: frozenset({ROLE_ADMIN, ROLE_SALES}),
    ORDER_STATUS: frozenset({ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION}),
    ORDER_OUTCOME: frozenset({ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION}),
    ORDER_DELETE: frozenset({ROLE_ADMIN, ROLE_SALES}),
}


def has_capability(role: str, capability: str) -> bool:
    return role in ROLE_CAPABILITIES.get(capability, frozenset())


def require_capability(principal, capability: str) -> None:
    if not has_capability(principal.role, capability):
        raise PermissionDeniedError(f"Role '{principal.role}' may not perform {capability}")

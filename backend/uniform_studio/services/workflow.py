# Overview: Production status ordering and the transition policy for orders.

"""
Order Production Workflow

STAGES (fixed forward order):
    Order Received -> Inspection -> Cutting -> Stitching -> Embroidery/Printing
    -> Quality Check -> Packing -> Delivered

The stages form a totally ordered label set. Transitions are looked up in
ALLOWED_TRANSITIONS, which currently permits any stage to move to any other
stage (backwards moves and skipped stages included). Tightening the workflow
means changing how that table is built, nothing else.

Logging a post-delivery outcome always forces the order to Delivered,
regardless of its current stage (see order_service.log_outcome).
"""

from __future__ import annotations

from ..validation import ValidationError


PRODUCTION_STATUSES = (
    "Order Received",
    "Inspection",
    "Cutting",
    "Stitching",
    "Embroidery/Printing",
    "Quality Check",
    "Packing",
    "Delivered",
)

INITIAL_STATUS = PRODUCTION_STATUSES[0]
TERMINAL_STATUS = PRODUCTION_STATUSES[-1]

# Orders shown in the delivery / quality queue
DELIVERY_QUEUE_STATUSES = ("Quality Check", "Packing", "Delivered")


class WorkflowError(ValidationError):
    """Raised for unknown statuses or transitions the policy does not allow."""


def _any_to_any() -> dict[str, frozenset[str]]:
    return {status: frozenset(PRODUCTION_STATUSES) for status in PRODUCTION_STATUSES}


ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = _any_to_any()


def is_valid_status(status) -> bool:
    return status in PRODUCTION_STATUSES


def validate_status(status) -> str:
    if not is_valid_status(status):
        raise WorkflowError(
            f"Invalid status '{status}'. Must be one of: {', '.join(PRODUCTION_STATUSES)}"
        )
    return status


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def require_transition(current: str, target: str) -> str:
    """Validate ``target`` and check the policy allows moving there from ``current``."""
    validate_status(target)
    if current == target:
        return target
    if not can_transition(current, target):
        raise WorkflowError(f"Cannot move order from '{current}' to '{target}'")
    return target


def stage_index(status: str) -> int:
    return PRODUCTION_STATUSES.index(validate_status(status))


def progress_percent(status: str) -> int:
    """Completion percentage derived only from the stage's position."""
    if not is_valid_status(status):
        return 0
    return round(PRODUCTION_STATUSES.index(status) / (len(PRODUCTION_STATUSES) - 1) * 100)


def next_status(status: str) -> str | None:
    idx = stage_index(status)
    if idx + 1 >= len(PRODUCTION_STATUSES):
        return None
    return PRODUCTION_STATUSES[idx + 1]


def previous_status(status: str) -> str | None:
    idx = stage_index(status)
    if idx == 0:
        return None
    return PRODUCTION_STATUSES[idx - 1]

"""Production status ordering and transition policy."""

import pytest

from uniform_studio.services import workflow


def test_stage_order():
    assert workflow.PRODUCTION_STATUSES[0] == "Order Received"
    assert workflow.PRODUCTION_STATUSES[-1] == "Delivered"
    assert len(workflow.PRODUCTION_STATUSES) == 8


@pytest.mark.parametrize(
    "status,expected",
    [
        ("Order Received", 0),
        ("Inspection", 14),
        ("Stitching", 43),
        ("Embroidery/Printing", 57),
        ("Quality Check", 71),
        ("Delivered", 100),
        ("Unknown", 0),
    ],
)
def test_progress_percent(status, expected):
    assert workflow.progress_percent(status) == expected


def test_any_stage_may_move_to_any_other():
    for current in workflow.PRODUCTION_STATUSES:
        for target in workflow.PRODUCTION_STATUSES:
            assert workflow.require_transition(current, target) == target


def test_unknown_target_rejected():
    with pytest.raises(workflow.WorkflowError):
        workflow.require_transition("Cutting", "Shipped")


def test_next_and_previous():
    assert workflow.next_status("Order Received") == "Inspection"
    assert workflow.next_status("Delivered") is None
    assert workflow.previous_status("Order Received") is None
    assert workflow.previous_status("Packing") == "Quality Check"


def test_delivery_queue_is_tail_of_workflow():
    assert workflow.DELIVERY_QUEUE_STATUSES == workflow.PRODUCTION_STATUSES[-3:]

"""Payload validation helpers."""

import pytest

from uniform_studio.models import OrderSheet
from uniform_studio.services.order_service import SHEET_POLICY
from uniform_studio.validation import (
    ValidationError,
    coerce_int,
    number_list,
    one_of,
    size_breakdown,
    string_list,
    validate_payload,
)


@pytest.mark.parametrize("value,expected", [(3, 3), ("12", 12), (" 7 ", 7), (4.0, 4)])
def test_coerce_int_accepts(value, expected):
    assert coerce_int("qty", value) == expected


@pytest.mark.parametrize("value", [True, "1e3", "1.5", 2.5, "", "abc", None, [1]])
def test_coerce_int_rejects(value):
    with pytest.raises(ValidationError):
        coerce_int("qty", value)


def test_size_breakdown_keeps_order_and_strips_labels():
    sizes = size_breakdown("sizes", [{"size": " XL ", "quantity": "2"}, {"size": "S", "quantity": None}])
    assert sizes == [{"size": "XL", "quantity": 2}, {"size": "S", "quantity": 0}]


def test_size_breakdown_reports_every_bad_entry():
    with pytest.raises(ValidationError) as exc:
        size_breakdown("sizes", [{"size": "M", "quantity": -1}, "L", {"quantity": 2}])
    fields = [d["field"] for d in exc.value.details]
    assert fields == ["sizes[0].quantity", "sizes[1]", "sizes[2].size"]


def test_size_breakdown_upper_bound():
    with pytest.raises(ValidationError):
        size_breakdown("sizes", [{"size": "M", "quantity": 10_000_000}])


def test_lists():
    assert string_list("fabric", [" Cotton ", "Mesh"]) == ["Cotton", "Mesh"]
    assert number_list("cmPrice", [22, "18.5", ""]) == [22, 18.5, 0]
    with pytest.raises(ValidationError):
        string_list("fabric", "Cotton")
    with pytest.raises(ValidationError):
        number_list("cmPrice", [True])


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "nan", "inf", "-Infinity", " NaN "])
def test_number_list_rejects_non_finite(value):
    with pytest.raises(ValidationError) as exc:
        number_list("cmPrice", [10, value])
    assert str(exc.value) == "cmPrice must contain finite numbers"


def test_one_of():
    check = one_of(("a", "b"))
    assert check("k", "a") == "a"
    with pytest.raises(ValidationError):
        check("k", "c")


class TestValidatePayload:

    def test_create_requires_fields(self, app):
        with pytest.raises(ValidationError) as exc:
            validate_payload(model=OrderSheet, payload={"brand": "X"}, policy=SHEET_POLICY, partial=False)
        assert {d["field"] for d in exc.value.details} == {"orderNumber", "clientName"}

    def test_patch_validates_only_given_keys(self, app):
        patch = validate_payload(
            model=OrderSheet, payload={"clientName": "  Emirates  "}, policy=SHEET_POLICY, partial=True
        )
        assert patch == {"client_name": "Emirates"}

    def test_blank_allowed_only_where_configured(self, app):
        assert validate_payload(model=OrderSheet, payload={"brand": ""}, policy=SHEET_POLICY, partial=True) == {"brand": ""}
        with pytest.raises(ValidationError):
            validate_payload(model=OrderSheet, payload={"clientName": " "}, policy=SHEET_POLICY, partial=True)

    def test_dates_parsed(self, app):
        patch = validate_payload(
            model=OrderSheet, payload={"startDate": "2025-01-16T09:00"}, policy=SHEET_POLICY, partial=True
        )
        assert patch["start_date"].isoformat() == "2025-01-16T09:00:00"
        with pytest.raises(ValidationError):
            validate_payload(model=OrderSheet, payload={"startDate": "soon"}, policy=SHEET_POLICY, partial=True)

    def test_max_length(self, app):
        with pytest.raises(ValidationError):
            validate_payload(
                model=OrderSheet, payload={"orderNumber": "X" * 65}, policy=SHEET_POLICY, partial=True
            )

    def test_null_rejected_for_required_column(self, app):
        with pytest.raises(ValidationError):
            validate_payload(model=OrderSheet, payload={"clientName": None}, policy=SHEET_POLICY, partial=True)

import pytest

from tailorshop.errors import ValidationError
from tailorshop.models import ContactDetails, Fabric, Garment, OrderDraft
from tailorshop.services.validation import Validator

SHIRT = Garment(
    id=1,
    name="Classic Shirt",
    category="Shirts",
    base_price=1500,
    customization_options={"collar": ["spread", "button-down"]},
)
SILK = Fabric(id=2, name="Premium Silk", material="Silk", color="Ivory", price_per_meter=2500, stock=50)


def complete_draft(**overrides):
    data = dict(
        fabric_id=2,
        garment_id=1,
        customizations={"fit": "slim", "collar": "spread", "lining": True},
        measurements={"method": "manual", "chest": 40},
        customer=ContactDetails(name="Asha", phone="9876543210", email="asha@example.com"),
    )
    data.update(overrides)
    return OrderDraft(**data)


@pytest.fixture
def validator():
    return Validator(fabric_meters=2)


def test_complete_draft_is_valid(validator):
    result = validator.validate(complete_draft(), 5, garment=SHIRT, fabric=SILK)
    assert result == {"step": 5, "valid": True, "issues": []}


def test_step_one_needs_both_selections(validator):
    result = validator.validate(OrderDraft(), 1)
    assert result["issues"] == ["missing_fabric", "missing_garment"]


def test_unknown_selection(validator):
    result = validator.validate(complete_draft(fabric_id=99), 1, garment=SHIRT, fabric=None)
    assert result["issues"] == ["unknown_fabric"]


def test_step_two_checks_garment_options(validator):
    draft = complete_draft(customizations={"fit": "baggy", "collar": "mandarin", "pleats": "double"})
    result = validator.validate(draft, 2, garment=SHIRT, fabric=SILK)
    assert result["issues"] == ["invalid_fit:baggy", "invalid_option_value:collar", "unsupported_option:pleats"]


def test_manual_measurements_need_a_value(validator):
    result = validator.validate(complete_draft(measurements={"method": "manual"}), 3)
    assert result["issues"] == ["missing_measurements"]


def test_home_visit_needs_no_measurements_but_an_address(validator):
    draft = complete_draft(measurements={"method": "home_visit"})
    assert validator.validate(draft, 3)["valid"]
    assert validator.validate(draft, 4)["issues"] == ["missing_address"]


def test_bad_measurement_values(validator):
    draft = complete_draft(measurements={"method": "manual", "chest": -2, "waist": "abc", "hips": 38})
    result = validator.validate(draft, 3)
    assert result["issues"] == ["invalid_measurement:chest", "invalid_measurement:waist"]


def test_unknown_measurement_method(validator):
    result = validator.validate(complete_draft(measurements={"method": "guess"}), 3)
    assert result["issues"] == ["invalid_measurement_method:guess"]


def test_contact_details(validator):
    draft = complete_draft(customer=ContactDetails(name=" ", email="not-an-email"))
    result = validator.validate(draft, 4)
    assert result["issues"] == ["invalid_email", "missing_name", "missing_phone"]


def test_review_checks_stock(validator):
    low = Fabric(id=2, name="Premium Silk", material="Silk", color="Ivory", price_per_meter=2500, stock=1)
    result = validator.validate(complete_draft(), 5, garment=SHIRT, fabric=low)
    assert result["issues"] == ["insufficient_stock"]


def test_review_runs_every_step(validator):
    result = validator.validate(OrderDraft(), 5)
    assert "missing_fabric" in result["issues"]
    assert "missing_measurements" in result["issues"]
    assert "missing_email" in result["issues"]
    assert result["issues"] == sorted(result["issues"])


def test_step_out_of_range(validator):
    with pytest.raises(ValueError):
        validator.validate(OrderDraft(), 6)


def test_require_raises_with_issues(validator):
    with pytest.raises(ValidationError) as exc:
        validator.require(OrderDraft(), 1)
    assert exc.value.issues == ["missing_fabric", "missing_garment"]


def test_non_string_fit_is_an_issue(validator):
    draft = complete_draft(customizations={"fit": ["slim"]})
    result = validator.validate(draft, 2, garment=SHIRT, fabric=SILK)
    assert result["issues"] == ["invalid_fit"]


def test_non_string_measurement_method_is_an_issue(validator):
    result = validator.validate(complete_draft(measurements={"method": ["manual"]}), 3)
    assert result["issues"] == ["invalid_measurement_method"]

import pytest
from sqlalchemy.exc import OperationalError

from tailorshop import crud
from tailorshop.errors import FetchError, ValidationError
from tailorshop.models import FabricCreate, FabricUpdate
from tailorshop.models.common import utcnow


def test_created_rows_carry_utc_timestamps(session):
    assert utcnow().tzinfo is not None
    out = crud.create_fabric(
        session, FabricCreate(name="Tussar Silk", material="Silk", color="Gold", price_per_meter=2800, stock=12)
    )
    assert out["id"] is not None
    assert [f["name"] for f in crud.list_fabrics(session)] == ["Tussar Silk"]

    updated = crud.update_fabric(session, out["id"], FabricUpdate(stock=4))
    assert updated["stock"] == 4


def test_null_in_update_payload_is_rejected():
    with pytest.raises(ValueError):
        FabricUpdate(price_per_meter=None)
    assert FabricUpdate(description=None).model_dump(exclude_unset=True) == {"description": None}


def test_constraint_violation_is_a_validation_error(session, fabric):
    patch = FabricUpdate.model_construct(price_per_meter=None)
    with pytest.raises(ValidationError) as exc:
        crud.update_fabric(session, fabric.id, patch)
    assert exc.value.issues == ["constraint_violation"]


def test_reference_check_failure_is_a_fetch_error(session, fabric, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT orders.id", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "exec", broken)
    with pytest.raises(FetchError) as exc:
        crud.delete_fabric(session, fabric.id)
    assert exc.value.message == "database is locked"

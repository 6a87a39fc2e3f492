import pytest
from fastapi.testclient import TestClient

from tailorshop.config import Settings
from tailorshop.db.session import BackendClient
from tailorshop.main import create_app
from tailorshop.models import ContactDetails, Fabric, Garment, OrderDraft

API_KEY = "test-key"
ADMIN_EMAIL = "admin@royaltailors.com"
ADMIN_PASSWORD = "needle-and-thread"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        api_key=API_KEY,
        jwt_secret="test-secret",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def backend(settings):
    client = BackendClient(settings.database_url)
    client.create_schema()
    yield client
    client.dispose()


@pytest.fixture
def session(backend):
    with backend.session() as s:
        yield s


def add_fabric(session, **overrides):
    data = dict(name="Premium Silk", material="Silk", color="Ivory", price_per_meter=2500, stock=50, featured=True)
    data.update(overrides)
    fabric = Fabric(**data)
    session.add(fabric)
    session.commit()
    return fabric


def add_garment(session, **overrides):
    data = dict(
        name="Classic Shirt",
        category="Shirts",
        base_price=1500,
        customization_options={"collar": ["spread", "button-down"], "cuffs": ["single", "french"]},
    )
    data.update(overrides)
    garment = Garment(**data)
    session.add(garment)
    session.commit()
    return garment


def make_draft(fabric=None, garment=None, **overrides) -> OrderDraft:
    data = dict(
        fabric_id=fabric.id if fabric is not None else None,
        garment_id=garment.id if garment is not None else None,
        customizations={"fit": "regular", "collar": "spread"},
        measurements={"method": "manual", "chest": 40, "waist": 34},
        customer=ContactDetails(name="Asha Rao", phone="9876543210", email="asha@example.com"),
    )
    data.update(overrides)
    return OrderDraft(**data)


def draft_payload(fabric_id, garment_id, **overrides):
    data = {
        "fabric_id": fabric_id,
        "garment_id": garment_id,
        "customizations": {"fit": "slim", "collar": "spread"},
        "measurements": {"method": "manual", "chest": 40},
        "customer": {"name": "Ravi Kumar", "phone": "9123456780", "email": "ravi@example.com"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def fabric(session):
    return add_fabric(session)


@pytest.fixture
def garment(session):
    return add_garment(session)


@pytest.fixture
def api(settings, backend):
    app = create_app(settings=settings, client=backend)
    with TestClient(app, headers={"apikey": API_KEY}) as c:
        yield c


@pytest.fixture
def admin_headers(api):
    res = api.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"apikey": API_KEY, "Authorization": "Bearer " + res.json()["access_token"]}

import pytest

from tailorshop.errors import NotFoundError, ValidationError
from tailorshop.services import catalog

FABRICS = [
    {"id": 1, "name": "Premium Silk", "material": "Silk", "color": "Ivory", "price_per_meter": 2500, "featured": True},
    {"id": 2, "name": "Egyptian Cotton", "material": "Cotton", "color": "White", "price_per_meter": 1200, "featured": False},
    {"id": 3, "name": "Raw Silk", "material": "Silk", "color": "Maroon", "price_per_meter": 3200, "featured": False},
]

GARMENTS = [
    {"id": 1, "name": "Classic Shirt", "category": "Shirts", "base_price": 1500, "description": "Everyday shirt"},
    {"id": 2, "name": "Oxford Shirt", "category": "Shirts", "base_price": 1800, "description": None},
    {"id": 3, "name": "Bandhgala", "category": "Ethnic Wear", "base_price": 4500, "description": "Jodhpuri jacket"},
]


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, (None, None)),
        ("all", (None, None)),
        ("1000-3000", (1000, 3000)),
        ("3000-", (3000, None)),
        ("3000", (3000, None)),
    ],
)
def test_parse_price_range(value, expected):
    assert catalog.parse_price_range(value) == expected


@pytest.mark.parametrize("value", ["cheap", "3000-1000"])
def test_parse_price_range_rejects_garbage(value):
    with pytest.raises(ValidationError):
        catalog.parse_price_range(value)


def test_filter_fabrics():
    assert [f["id"] for f in catalog.filter_fabrics(FABRICS, material="Silk")] == [1, 3]
    assert [f["id"] for f in catalog.filter_fabrics(FABRICS, search="cotton")] == [2]
    assert [f["id"] for f in catalog.filter_fabrics(FABRICS, price_range="1000-3000")] == [1, 2]
    assert [f["id"] for f in catalog.filter_fabrics(FABRICS, featured=True)] == [1]
    assert [f["id"] for f in catalog.filter_fabrics(FABRICS, material="all", color="Maroon")] == [3]


def test_filter_garments():
    assert [g["id"] for g in catalog.filter_garments(GARMENTS, category="Shirts")] == [1, 2]
    assert [g["id"] for g in catalog.filter_garments(GARMENTS, search="jacket")] == [3]


def test_filter_orders_and_customers():
    orders = [
        {"tracking_id": "RT111111", "status": "ready", "customer": {"name": "Asha"}, "garment": {"name": "Shirt"}},
        {"tracking_id": "RT222222", "status": "cutting", "customer": {"name": "Ravi"}, "garment": None},
    ]
    assert len(catalog.filter_orders(orders, search="rt2")) == 1
    assert len(catalog.filter_orders(orders, status="ready")) == 1
    assert len(catalog.filter_orders(orders, status="all")) == 2

    customers = [{"name": "Asha", "email": "asha@example.com", "phone": "98765"}]
    assert catalog.filter_customers(customers, "987") == customers
    assert catalog.filter_customers(customers, "nobody") == []


def test_facets_keep_first_seen_order():
    assert catalog.facets(FABRICS, "material") == ["Silk", "Cotton"]


def test_collections_group_by_category():
    groups = catalog.group_collections(GARMENTS)
    assert [g["id"] for g in groups] == ["shirts", "ethnic-wear"]
    shirts = groups[0]
    assert shirts["name"] == "Shirts Collection"
    assert shirts["count"] == 2
    assert shirts["price_range"] == {"min": 1500, "max": 1800}


def test_find_collection():
    assert catalog.find_collection(GARMENTS, "ethnic-wear")["count"] == 1
    with pytest.raises(NotFoundError):
        catalog.find_collection(GARMENTS, "suits")

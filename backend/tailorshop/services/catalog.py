from typing import Any, Dict, List, Optional, Tuple

from tailorshop.errors import NotFoundError, ValidationError

Item = Dict[str, Any]


def _contains(term: str, *values: Optional[str]) -> bool:
    term = term.lower()
    return any(term in (v or "").lower() for v in values)


def parse_price_range(value: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Parse ``"min-max"``, ``"min-"`` or ``"min"``; ``"all"``/empty means no bound."""
    if not value or value == "all":
        return None, None
    low, _, high = value.partition("-")
    try:
        lo = float(low) if low.strip() else None
        hi = float(high) if high.strip() else None
    except ValueError:
        raise ValidationError(f"Invalid price range: {value}", ["invalid_price_range"])
    if lo is not None and hi is not None and hi < lo:
        raise ValidationError(f"Invalid price range: {value}", ["invalid_price_range"])
    return lo, hi


def filter_fabrics(
    fabrics: List[Item],
    search: Optional[str] = None,
    material: Optional[str] = None,
    color: Optional[str] = None,
    price_range: Optional[str] = None,
    featured: Optional[bool] = None,
) -> List[Item]:
    lo, hi = parse_price_range(price_range)
    out = []
    for f in fabrics:
        if search and not _contains(search, f.get("name"), f.get("material"), f.get("color")):
            continue
        if material and material != "all" and f.get("material") != material:
            continue
        if color and color != "all" and f.get("color") != color:
            continue
        if lo is not None and f["price_per_meter"] < lo:
            continue
        if hi is not None and f["price_per_meter"] > hi:
            continue
        if featured is not None and bool(f.get("featured")) != featured:
            continue
        out.append(f)
    return out


def filter_garments(garments: List[Item], search: Optional[str] = None, category: Optional[str] = None) -> List[Item]:
    out = []
    for g in garments:
        if search and not _contains(search, g.get("name"), g.get("category"), g.get("description")):
            continue
        if category and category != "all" and g.get("category") != category:
            continue
        out.append(g)
    return out


def filter_customers(customers: List[Item], search: Optional[str] = None) -> List[Item]:
    if not search:
        return list(customers)
    return [
        c for c in customers
        if _contains(search, c.get("name"), c.get("email")) or search in (c.get("phone") or "")
    ]


def filter_orders(orders: List[Item], search: Optional[str] = None, status: Optional[str] = None) -> List[Item]:
    out = []
    for o in orders:
        if search and not _contains(
            search,
            o.get("tracking_id"),
            (o.get("customer") or {}).get("name"),
            (o.get("garment") or {}).get("name"),
        ):
            continue
        if status and status != "all" and o.get("status") != status:
            continue
        out.append(o)
    return out


def facets(items: List[Item], key: str) -> List[str]:
    """Distinct non-empty values of `key`, in first-seen order."""
    seen: List[str] = []
    for item in items:
        value = item.get(key)
        if value and value not in seen:
            seen.append(value)
    return seen


def collection_slug(category: str) -> str:
    return "-".join(category.lower().split())


def group_collections(garments: List[Item]) -> List[Item]:
    """Garments grouped by category, each group presented as a collection."""
    groups: Dict[str, Item] = {}
    for g in garments:
        category = g.get("category") or "Other"
        slug = collection_slug(category)
        group = groups.setdefault(slug, {"id": slug, "name": f"{category} Collection", "category": category, "items": []})
        group["items"].append(g)
    out = []
    for group in groups.values():
        prices = [g["base_price"] for g in group["items"]]
        group["price_range"] = {"min": min(prices), "max": max(prices)}
        group["count"] = len(group["items"])
        out.append(group)
    return out


def find_collection(garments: List[Item], collection_id: str) -> Item:
    for group in group_collections(garments):
        if group["id"] == collection_id:
            return group
    raise NotFoundError("collection", collection_id)

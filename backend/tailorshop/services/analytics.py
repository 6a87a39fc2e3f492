from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from tailorshop.models.common import utctoday
from tailorshop.services.status import FINISHED_STATUSES, ORDER_STATUSES, status_index, status_label

Item = Dict[str, Any]


def _day(value) -> Optional[date]:
    if isinstance(value, str) and value:
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        # naive values are already UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _month_key(d: date) -> Tuple[int, int]:
    return d.year, d.month


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def growth(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


def status_counts(orders: List[Item]) -> Dict[str, int]:
    """Orders per lifecycle status; an unknown status counts as the first step."""
    counts = {s: 0 for s in ORDER_STATUSES}
    for o in orders:
        counts[ORDER_STATUSES[status_index(o.get("status"))]] += 1
    return counts


def dashboard_stats(orders: List[Item], customers: List[Item], today: Optional[date] = None) -> Dict[str, Any]:
    today = today or utctoday()
    return {
        "today_orders": sum(1 for o in orders if _day(o.get("created_at")) == today),
        "in_progress": sum(1 for o in orders if o.get("status") not in FINISHED_STATUSES),
        "ready_for_pickup": sum(1 for o in orders if o.get("status") == "ready"),
        "urgent_orders": sum(1 for o in orders if o.get("urgent") and o.get("status") not in FINISHED_STATUSES),
        "total_orders": len(orders),
        "total_revenue": sum(o.get("price") or 0 for o in orders),
        "recent_orders": orders[:5],
        "recent_customers": customers[:5],
    }


def _top(orders: List[Item], key: str, limit: int) -> List[Item]:
    totals: Dict[str, Item] = {}
    for o in orders:
        name = (o.get(key) or {}).get("name") or "Unknown"
        row = totals.setdefault(name, {"name": name, "orders": 0, "revenue": 0})
        row["orders"] += 1
        row["revenue"] += o.get("price") or 0
    return sorted(totals.values(), key=lambda r: (-r["revenue"], -r["orders"], r["name"]))[:limit]


def analytics(orders: List[Item], customers: List[Item], today: Optional[date] = None, months: int = 6, top: int = 5) -> Dict[str, Any]:
    today = today or utctoday()
    this_month = _month_key(today)
    last_month = _shift_month(*this_month, -1)

    by_month: "OrderedDict[Tuple[int, int], Item]" = OrderedDict()
    for delta in range(months - 1, -1, -1):
        y, m = _shift_month(*this_month, -delta)
        by_month[(y, m)] = {
            "month": f"{y:04d}-{m:02d}",
            "label": date(y, m, 1).strftime("%b"),
            "revenue": 0,
            "orders": 0,
        }
    for o in orders:
        d = _day(o.get("created_at"))
        if d is None:
            continue
        bucket = by_month.get(_month_key(d))
        if bucket is not None:
            bucket["revenue"] += o.get("price") or 0
            bucket["orders"] += 1

    def month_orders(key):
        return [o for o in orders if _day(o.get("created_at")) and _month_key(_day(o["created_at"])) == key]

    def month_customers(key):
        return [c for c in customers if _day(c.get("created_at")) and _month_key(_day(c["created_at"])) == key]

    cur_orders, prev_orders = month_orders(this_month), month_orders(last_month)
    cur_rev = sum(o.get("price") or 0 for o in cur_orders)
    prev_rev = sum(o.get("price") or 0 for o in prev_orders)
    cur_avg = cur_rev / len(cur_orders) if cur_orders else 0
    prev_avg = prev_rev / len(prev_orders) if prev_orders else 0
    total_rev = sum(o.get("price") or 0 for o in orders)
    new_customers = month_customers(this_month)

    return {
        "revenue": {"total": total_rev, "this_month": cur_rev, "growth": growth(cur_rev, prev_rev)},
        "orders": {"total": len(orders), "this_month": len(cur_orders), "growth": growth(len(cur_orders), len(prev_orders))},
        "customers": {
            "total": len(customers),
            "new_this_month": len(new_customers),
            "growth": growth(len(new_customers), len(month_customers(last_month))),
            "with_measurements": sum(1 for c in customers if c.get("measurements")),
        },
        "avg_order_value": {
            "value": round(total_rev / len(orders), 2) if orders else 0,
            "growth": growth(cur_avg, prev_avg),
        },
        "revenue_by_month": list(by_month.values()),
        "top_garments": _top(orders, "garment", top),
        "top_fabrics": _top(orders, "fabric", top),
        "status_distribution": [
            {"status": s, "label": status_label(s), "count": n} for s, n in status_counts(orders).items()
        ],
    }

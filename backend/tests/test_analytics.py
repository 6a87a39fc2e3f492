from datetime import date, datetime, timedelta, timezone

from tailorshop.services.analytics import analytics, dashboard_stats, growth, status_counts

TODAY = date(2024, 3, 15)


def _order(status, price, created, urgent=False, garment="Classic Shirt"):
    return {
        "status": status,
        "price": price,
        "urgent": urgent,
        "created_at": created,
        "garment": {"name": garment},
        "fabric": {"name": "Premium Silk"},
    }


ORDERS = [
    _order("confirmed", 6500, datetime(2024, 3, 15, 10, 0), urgent=True),
    _order("ready", 7000, datetime(2024, 3, 2, 9, 30)),
    _order("completed", 4000, datetime(2024, 2, 20, 12, 0), garment="Bandhgala"),
]
CUSTOMERS = [
    {"name": "Asha", "created_at": datetime(2024, 3, 15), "measurements": {"chest": 40}},
    {"name": "Ravi", "created_at": datetime(2024, 2, 1), "measurements": {}},
]


def test_growth():
    assert growth(150, 100) == 50.0
    assert growth(5, 0) == 100.0
    assert growth(0, 0) == 0.0


def test_dashboard_stats():
    stats = dashboard_stats(ORDERS, CUSTOMERS, today=TODAY)
    assert stats["today_orders"] == 1
    assert stats["in_progress"] == 1
    assert stats["ready_for_pickup"] == 1
    assert stats["urgent_orders"] == 1
    assert stats["total_orders"] == 3
    assert stats["total_revenue"] == 17500


def test_analytics_summary():
    out = analytics(ORDERS, CUSTOMERS, today=TODAY)
    assert out["revenue"] == {"total": 17500, "this_month": 13500, "growth": 237.5}
    assert out["orders"]["this_month"] == 2
    assert out["customers"]["new_this_month"] == 1
    assert out["customers"]["with_measurements"] == 1
    assert [m["month"] for m in out["revenue_by_month"]] == [
        "2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03",
    ]
    assert out["revenue_by_month"][-1]["revenue"] == 13500
    assert out["top_garments"][0] == {"name": "Classic Shirt", "orders": 2, "revenue": 13500}
    counts = {row["status"]: row["count"] for row in out["status_distribution"]}
    assert counts["ready"] == 1
    assert counts["cutting"] == 0


def test_unknown_status_counts_as_confirmed():
    counts = status_counts([{"status": "misplaced"}, {"status": None}, {"status": "ready"}])
    assert counts["confirmed"] == 2
    assert counts["ready"] == 1
    assert "misplaced" not in counts
    out = analytics([_order("misplaced", 100, datetime(2024, 3, 1))], [], today=TODAY)
    confirmed = [row for row in out["status_distribution"] if row["status"] == "confirmed"]
    assert confirmed[0]["count"] == 1


def test_aware_timestamps_fall_on_their_utc_day():
    early_morning_ist = datetime(2024, 3, 16, 1, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    stats = dashboard_stats([_order("confirmed", 100, early_morning_ist)], [], today=TODAY)
    assert stats["today_orders"] == 1

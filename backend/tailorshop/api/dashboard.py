import logging
from html import escape
from typing import Any, Dict, List

from fastapi import APIRouter, Request
from starlette.responses import HTMLResponse

from tailorshop.api.deps import get_sync
from tailorshop.services.analytics import dashboard_stats, status_counts
from tailorshop.services.status import STATUS_LABELS, status_label

logger = logging.getLogger(__name__)
router = APIRouter()

_STYLE = """
    body { font-family: Inter, system-ui, -apple-system, 'Segoe UI', Roboto, 'Helvetica Neue', Arial; background:#f3f4f6; padding:24px; }
    .container { max-width:1100px; margin:0 auto; }
    .cards { display:flex; gap:16px; margin-bottom:20px; }
    .card { background:white;padding:20px;border-radius:8px; box-shadow:0 1px 3px rgba(0,0,0,0.06); flex:1 }
    .title { color:#6b7280; font-size:13px }
    .value { font-size:28px; font-weight:700; margin-top:6px }
    table { width:100%; border-collapse:collapse; margin-top:12px; background:white; border-radius:8px; overflow:hidden }
    th, td { padding:12px; text-align:left; border-bottom:1px solid #eef2f7 }
    thead { background:#f9fafb }
"""


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def _order_rows(orders: List[Dict[str, Any]]) -> str:
    rows = []
    for o in orders:
        customer = (o.get("customer") or {}).get("name") or "—"
        garment = (o.get("garment") or {}).get("name") or "—"
        rows.append(
            "<tr><td>{}</td><td>{}</td><td>{}</td><td>{}</td><td>₹{:,.0f}</td><td>{}</td></tr>".format(
                escape(o.get("tracking_id") or ""),
                escape(customer),
                escape(garment),
                escape(status_label(o.get("status"))),
                o.get("price") or 0,
                "yes" if o.get("urgent") else "",
            )
        )
    return "".join(rows)


def _render_summary_html(stats: Dict[str, Any]) -> str:
    cards = [
        ("Today's Orders", stats["today_orders"]),
        ("In Progress", stats["in_progress"]),
        ("Ready for Pickup", stats["ready_for_pickup"]),
        ("Urgent", stats["urgent_orders"]),
        ("Revenue", "₹{:,.0f}".format(stats["total_revenue"])),
    ]
    cards_html = "".join(
        f'<div class="card"><div class="title">{escape(t)}</div><div class="value">{escape(str(v))}</div></div>' for t, v in cards
    )
    return f"""
<!doctype html>
<html>
<head><meta charset="utf-8" /><title>Dashboard</title><style>{_STYLE}</style></head>
<body>
  <div class="container">
    <h1>Dashboard</h1>
    <div class="cards">{cards_html}</div>
    <h2>Recent Orders</h2>
    <table>
      <thead><tr><th>Tracking ID</th><th>Customer</th><th>Garment</th><th>Status</th><th>Price</th><th>Urgent</th></tr></thead>
      <tbody>{_order_rows(stats["recent_orders"])}</tbody>
    </table>
  </div>
</body>
</html>
"""


@router.get("/summary")
def summary(request: Request):
    orders = get_sync(request, "orders").require_items()
    customers = get_sync(request, "customers").require_items()
    stats = dashboard_stats(orders, customers)
    logger.debug("Dashboard summary orders=%s revenue=%s", stats["total_orders"], stats["total_revenue"])
    if _wants_html(request):
        return HTMLResponse(content=_render_summary_html(stats))
    return stats


@router.get("/orders")
def orders(request: Request):
    rows = get_sync(request, "orders").require_items()
    if _wants_html(request):
        html = f"""
<!doctype html>
<html><head><meta charset='utf-8' /><title>Orders</title><style>{_STYLE}</style></head>
<body><div class='container'><h1>Orders</h1><table><thead><tr><th>Tracking ID</th><th>Customer</th><th>Garment</th><th>Status</th><th>Price</th><th>Urgent</th></tr></thead><tbody>{_order_rows(rows)}</tbody></table></div></body></html>
"""
        return HTMLResponse(content=html)
    return rows


@router.get("/stats")
def stats(request: Request):
    rows = get_sync(request, "orders").require_items()
    by_status = status_counts(rows)

    if _wants_html(request):
        items = "".join(f"<li><strong>{escape(STATUS_LABELS[k])}</strong>: {v}</li>" for k, v in by_status.items())
        html = f"""
<!doctype html>
<html><head><meta charset='utf-8' /><title>Stats</title><style>{_STYLE}</style></head>
<body><div class='container'><h1>Stats</h1><ul>{items}</ul></div></body></html>
"""
        return HTMLResponse(content=html)

    return {"by_status": by_status}

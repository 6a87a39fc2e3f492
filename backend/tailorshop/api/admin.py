import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from tailorshop import crud
from tailorshop.api.deps import get_engine, get_settings, get_sync
from tailorshop.config import Settings
from tailorshop.db.session import get_session
from tailorshop.errors import NotFoundError
from tailorshop.models import (
    CustomerUpdate,
    FabricCreate,
    FabricUpdate,
    GarmentCreate,
    GarmentUpdate,
    OrderStatusUpdate,
)
from tailorshop.services import analytics as analytics_service
from tailorshop.services import catalog
from tailorshop.services.orders import update_status
from tailorshop.services.pricing import PriceEngine
from tailorshop.services.status import ORDER_STATUSES, STATUS_LABELS

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- orders ----------

@router.get("/orders")
def list_orders(request: Request, search: Optional[str] = None, status: Optional[str] = None):
    orders = get_sync(request, "orders").require_items()
    items = catalog.filter_orders(orders, search, status)
    return {"items": items, "count": len(items), "statuses": ORDER_STATUSES}


@router.get("/orders/{order_id}")
def get_order(order_id: int, session: Session = Depends(get_session), engine: PriceEngine = Depends(get_engine)):
    order = crud.get_order(session, order_id)
    out = crud.order_to_dict(order)
    out["breakdown"] = engine.for_order(order)
    return out


@router.patch("/orders/{order_id}/status")
def set_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    return update_status(session, order_id, payload.status, forward_only=settings.forward_only_status)


# ---------- customers ----------

@router.get("/customers")
def list_customers(request: Request, search: Optional[str] = None):
    customers = get_sync(request, "customers").require_items()
    items = catalog.filter_customers(customers, search)
    return {"items": items, "count": len(items)}


@router.get("/customers/{customer_id}")
def get_customer(customer_id: int, session: Session = Depends(get_session)):
    return crud.get_customer(session, customer_id).model_dump()


@router.patch("/customers/{customer_id}")
def update_customer(customer_id: int, patch: CustomerUpdate, session: Session = Depends(get_session)):
    return crud.update_customer(session, customer_id, patch)


# ---------- fabrics ----------

@router.get("/fabrics")
def list_fabrics(
    request: Request,
    search: Optional[str] = None,
    material: Optional[str] = None,
    price_range: Optional[str] = None,
):
    fabrics = get_sync(request, "fabrics").require_items()
    items = catalog.filter_fabrics(fabrics, search, material, price_range=price_range)
    return {"items": items, "count": len(items), "materials": catalog.facets(fabrics, "material")}


@router.post("/fabrics", status_code=201)
def create_fabric(data: FabricCreate, session: Session = Depends(get_session)):
    return JSONResponse(jsonable_encoder(crud.create_fabric(session, data)), status_code=201)


@router.patch("/fabrics/{fabric_id}")
def update_fabric(fabric_id: int, patch: FabricUpdate, session: Session = Depends(get_session)):
    return crud.update_fabric(session, fabric_id, patch)


@router.delete("/fabrics/{fabric_id}", status_code=204)
def delete_fabric(fabric_id: int, session: Session = Depends(get_session)):
    crud.delete_fabric(session, fabric_id)
    return Response(status_code=204)


# ---------- garments ----------

@router.get("/garments")
def list_garments(request: Request, search: Optional[str] = None, category: Optional[str] = None):
    garments = get_sync(request, "garments").require_items()
    items = catalog.filter_garments(garments, search, category)
    return {"items": items, "count": len(items), "categories": catalog.facets(garments, "category")}


@router.post("/garments", status_code=201)
def create_garment(data: GarmentCreate, session: Session = Depends(get_session)):
    return JSONResponse(jsonable_encoder(crud.create_garment(session, data)), status_code=201)


@router.patch("/garments/{garment_id}")
def update_garment(garment_id: int, patch: GarmentUpdate, session: Session = Depends(get_session)):
    return crud.update_garment(session, garment_id, patch)


@router.delete("/garments/{garment_id}", status_code=204)
def delete_garment(garment_id: int, session: Session = Depends(get_session)):
    crud.delete_garment(session, garment_id)
    return Response(status_code=204)


# ---------- analytics / settings ----------

@router.get("/analytics")
def analytics(request: Request):
    orders = get_sync(request, "orders").require_items()
    customers = get_sync(request, "customers").require_items()
    return analytics_service.analytics(orders, customers)


@router.get("/settings")
def settings_view(settings: Settings = Depends(get_settings)):
    return {
        "pricing": settings.pricing.model_dump(),
        "system": {
            "tracking_prefix": settings.tracking_prefix,
            "standard_days": settings.standard_days,
            "urgent_days": settings.urgent_days,
            "forward_only_status": settings.forward_only_status,
        },
        "statuses": [{"status": s, "label": STATUS_LABELS[s]} for s in ORDER_STATUSES],
    }


@router.post("/refresh/{collection}")
def refresh(collection: str, request: Request):
    """Refetch a synced collection on demand (the retry action after an error)."""
    syncs = request.app.state.syncs
    if collection not in syncs:
        raise NotFoundError("collection", collection)
    error = syncs[collection].refresh()
    logger.info("Manual refresh collection=%s error=%s", collection, error)
    snap = syncs[collection].snapshot()
    return {"collection": collection, "count": len(snap["items"]), "error": snap["error"]}

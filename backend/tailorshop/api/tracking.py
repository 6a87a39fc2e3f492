from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from tailorshop import crud
from tailorshop.api.deps import get_engine
from tailorshop.db.session import get_session
from tailorshop.errors import ValidationError
from tailorshop.services.orders import confirmation_view, tracking_view
from tailorshop.services.pricing import PriceEngine

router = APIRouter()


@router.get("/order-confirmation/{tracking_id}")
def order_confirmation(tracking_id: str, session: Session = Depends(get_session), engine: PriceEngine = Depends(get_engine)):
    return confirmation_view(crud.get_order_by_tracking_id(session, tracking_id), engine)


@router.get("/track")
def track_query(
    tracking_id: Optional[str] = None,
    session: Session = Depends(get_session),
    engine: PriceEngine = Depends(get_engine),
):
    if not (tracking_id or "").strip():
        raise ValidationError("Please enter a tracking ID", ["missing_tracking_id"])
    return tracking_view(crud.get_order_by_tracking_id(session, tracking_id), engine)


@router.get("/track/{tracking_id}")
def track(tracking_id: str, session: Session = Depends(get_session), engine: PriceEngine = Depends(get_engine)):
    return tracking_view(crud.get_order_by_tracking_id(session, tracking_id), engine)

from typing import Tuple

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from tailorshop import crud
from tailorshop.api.deps import get_settings
from tailorshop.config import Settings
from tailorshop.db.session import get_session
from tailorshop.errors import NotFoundError
from tailorshop.models import OrderDraft
from tailorshop.services.orders import confirmation_view, place_order
from tailorshop.services.pricing import PriceEngine
from tailorshop.services.validation import LAST_STEP, STEP_SELECTION, Validator
from tailorshop.services.wizard import STEP_TITLES, OrderWizard

router = APIRouter()


def _load(getter, session: Session, key):
    if key is None:
        return None
    try:
        return getter(session, key)
    except NotFoundError:
        # reported by the validator as unknown_*
        return None


def _selection(session: Session, draft: OrderDraft) -> Tuple[object, object]:
    return _load(crud.get_garment, session, draft.garment_id), _load(crud.get_fabric, session, draft.fabric_id)


def _wizard(session: Session, draft: OrderDraft, settings: Settings, step: int = STEP_SELECTION) -> OrderWizard:
    garment, fabric = _selection(session, draft)
    engine = PriceEngine(settings.pricing)
    return OrderWizard(
        draft, garment=garment, fabric=fabric, engine=engine,
        validator=Validator(settings.pricing.fabric_meters), step=step,
    )


@router.get("/steps")
def steps():
    return [{"number": n, "title": t} for n, t in STEP_TITLES.items()]


@router.post("/quote")
def quote(draft: OrderDraft, session: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    wizard = _wizard(session, draft, settings)
    return {"pricing": wizard.quote(), "complete": wizard.garment is not None and wizard.fabric is not None}


@router.post("/validate")
def validate(
    draft: OrderDraft,
    step: int = Query(LAST_STEP, ge=STEP_SELECTION, le=LAST_STEP),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    wizard = _wizard(session, draft, settings, step=step)
    result = wizard.check()
    result["title"] = wizard.title
    return result


@router.post("/orders", status_code=201)
def create_order(draft: OrderDraft, session: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    order = place_order(session, draft, settings)
    view = confirmation_view(order, PriceEngine(settings.pricing))
    return JSONResponse(jsonable_encoder({"tracking_id": order.tracking_id, "order": view}), status_code=201)

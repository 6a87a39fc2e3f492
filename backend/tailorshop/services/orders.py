import logging
import secrets
import string
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from tailorshop import crud
from tailorshop.config import Settings
from tailorshop.errors import FetchError, ValidationError
from tailorshop.models import Customer, Fabric, Garment, Order, OrderDraft
from tailorshop.models.common import utcnow, utctoday
from tailorshop.services.pricing import PriceEngine
from tailorshop.services.status import (
    FINISHED_STATUSES,
    INITIAL_STATUS,
    progress_steps,
    status_index,
    status_label,
    transition,
)
from tailorshop.services.validation import LAST_STEP, Validator

logger = logging.getLogger(__name__)

TRACKING_DIGITS = 6
MAX_TRACKING_ATTEMPTS = 10


def new_tracking_id(session: Session, prefix: str = "RT") -> str:
    for _ in range(MAX_TRACKING_ATTEMPTS):
        candidate = prefix.upper() + "".join(secrets.choice(string.digits) for _ in range(TRACKING_DIGITS))
        if not crud.tracking_id_exists(session, candidate):
            return candidate
    raise FetchError("Could not allocate a unique tracking id")


def estimated_completion(urgent: bool, settings: Settings):
    return utctoday() + timedelta(days=settings.urgent_days if urgent else settings.standard_days)


def place_order(session: Session, draft: OrderDraft, settings: Settings) -> Order:
    """Create customer, order and stock movement in a single transaction.

    Nothing is committed unless all three writes succeed; an order that would
    take the fabric below zero stock is rejected before any write.
    """
    engine = PriceEngine(settings.pricing)
    validator = Validator(settings.pricing.fabric_meters)
    meters = settings.pricing.fabric_meters

    with crud.backend_call(session, "load_order_selection"):
        garment = session.get(Garment, draft.garment_id) if draft.garment_id is not None else None
        fabric = session.get(Fabric, draft.fabric_id, with_for_update=True) if draft.fabric_id is not None else None

    try:
        validator.require(draft, LAST_STEP, garment=garment, fabric=fabric)
        total = engine.compute_total(
            garment, fabric, lining=draft.lining, measurement_method=draft.measurement_method, urgent=draft.urgent
        )

        contact = draft.customer
        customer = Customer(
            name=contact.name.strip(),
            phone=contact.phone.strip(),
            email=contact.email.strip(),
            alternate_phone=contact.alternate_phone,
            address=contact.address,
            measurements=dict(draft.measurements),
        )
        session.add(customer)
        session.flush()

        special = draft.special_instructions or draft.customizations.get("special_instructions")
        order = Order(
            tracking_id=new_tracking_id(session, settings.tracking_prefix),
            customer_id=customer.id,
            fabric_id=fabric.id,
            garment_id=garment.id,
            customizations=dict(draft.customizations),
            measurements=dict(draft.measurements),
            garment_price=garment.base_price,
            fabric_price_per_meter=fabric.price_per_meter,
            fabric_meters=meters,
            price=total,
            status=INITIAL_STATUS,
            urgent=draft.urgent,
            special_instructions=special,
            estimated_completion=estimated_completion(draft.urgent, settings),
        )
        session.add(order)

        if fabric.stock - meters < 0:
            raise ValidationError("Not enough fabric in stock", ["insufficient_stock"])
        fabric.stock = fabric.stock - meters
        fabric.updated_at = utcnow()
        session.add(fabric)

        session.commit()
    except (ValidationError, FetchError):
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Order creation rolled back: %s", e)
        raise FetchError(crud.backend_message(e)) from e

    session.refresh(order)
    logger.info(
        "Created order id=%s tracking_id=%s price=%s fabric_id=%s stock_left=%s",
        order.id, order.tracking_id, order.price, fabric.id, fabric.stock,
    )
    return order


def update_status(session: Session, order_id: int, status: str, forward_only: bool = False) -> Dict[str, Any]:
    order = crud.get_order(session, order_id)
    new_status = transition(order.status, status, forward_only=forward_only)
    with crud.backend_call(session, "update_status"):
        order.status = new_status
        order.actual_completion = utctoday() if new_status == "completed" else None
        order.updated_at = utcnow()
        session.add(order)
        session.commit()
        session.refresh(order)
    logger.info("Order status updated order_id=%s status=%s", order_id, new_status)
    return crud.order_to_dict(order)


def _chosen_customizations(customizations: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (customizations or {}).items() if v not in (None, "", False)}


def tracking_view(order: Order, engine: Optional[PriceEngine] = None) -> Dict[str, Any]:
    """Customer-facing projection of an order's progress."""
    engine = engine or PriceEngine()
    current = status_index(order.status)
    return {
        "tracking_id": order.tracking_id,
        "status": order.status,
        "status_label": status_label(order.status),
        "current_step": current,
        "steps": progress_steps(order.status),
        "is_ready": order.status in FINISHED_STATUSES,
        "garment": order.garment.name if order.garment else None,
        "fabric": order.fabric.name if order.fabric else None,
        "customer_name": order.customer.name if order.customer else None,
        "price": order.price,
        "breakdown": engine.for_order(order),
        "urgent": order.urgent,
        "order_date": order.created_at.date() if order.created_at else None,
        "estimated_completion": order.estimated_completion,
        "actual_completion": order.actual_completion,
    }


def confirmation_view(order: Order, engine: Optional[PriceEngine] = None) -> Dict[str, Any]:
    view = tracking_view(order, engine)
    customer = order.customer
    view.update(
        {
            "customizations": _chosen_customizations(order.customizations),
            "measurement_method": (order.measurements or {}).get("method") or "manual",
            "special_instructions": order.special_instructions,
            "customer": {
                "name": customer.name,
                "phone": customer.phone,
                "email": customer.email,
            }
            if customer
            else None,
        }
    )
    return view

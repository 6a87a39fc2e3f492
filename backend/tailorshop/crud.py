# tailorshop/crud.py
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from tailorshop.errors import FetchError, NotFoundError, ValidationError
from tailorshop.models import (
    Customer,
    CustomerUpdate,
    Fabric,
    FabricCreate,
    FabricUpdate,
    Garment,
    GarmentCreate,
    GarmentUpdate,
    Order,
)
from tailorshop.models.common import utcnow

logger = logging.getLogger(__name__)


def backend_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig or exc).strip() or exc.__class__.__name__


@contextmanager
def backend_call(session: Session, action: str):
    """Turn backend failures into FetchError, rolling back the session.

    Constraint violations (bad input) become ValidationError instead.
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning("Constraint violated action=%s: %s", action, e)
        session.rollback()
        raise ValidationError(backend_message(e), ["constraint_violation"]) from e
    except SQLAlchemyError as e:
        logger.warning("Backend call failed action=%s: %s", action, e)
        session.rollback()
        raise FetchError(backend_message(e)) from e


# ---------- customers ----------

def list_customers(session: Session) -> List[Dict[str, Any]]:
    with backend_call(session, "list_customers"):
        rows = session.exec(select(Customer).order_by(col(Customer.created_at).desc(), col(Customer.id).desc())).all()
        return [c.model_dump() for c in rows]


def get_customer(session: Session, customer_id: int) -> Customer:
    with backend_call(session, "get_customer"):
        customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("customer", customer_id)
    return customer


def update_customer(session: Session, customer_id: int, patch: CustomerUpdate) -> Dict[str, Any]:
    customer = get_customer(session, customer_id)
    with backend_call(session, "update_customer"):
        for key, value in patch.model_dump(exclude_unset=True).items():
            setattr(customer, key, value)
        customer.updated_at = utcnow()
        session.add(customer)
        session.commit()
        session.refresh(customer)
    logger.info("Customer updated id=%s", customer_id)
    return customer.model_dump()


# ---------- fabrics ----------

def list_fabrics(session: Session) -> List[Dict[str, Any]]:
    q = select(Fabric).order_by(col(Fabric.featured).desc(), col(Fabric.created_at).desc(), col(Fabric.id).desc())
    with backend_call(session, "list_fabrics"):
        return [f.model_dump() for f in session.exec(q).all()]


def get_fabric(session: Session, fabric_id: int) -> Fabric:
    with backend_call(session, "get_fabric"):
        fabric = session.get(Fabric, fabric_id)
    if fabric is None:
        raise NotFoundError("fabric", fabric_id)
    return fabric


def create_fabric(session: Session, data: FabricCreate) -> Dict[str, Any]:
    fabric = Fabric(**data.model_dump())
    with backend_call(session, "create_fabric"):
        session.add(fabric)
        session.commit()
        session.refresh(fabric)
    logger.info("Fabric created id=%s name=%s", fabric.id, fabric.name)
    return fabric.model_dump()


def update_fabric(session: Session, fabric_id: int, patch: FabricUpdate) -> Dict[str, Any]:
    fabric = get_fabric(session, fabric_id)
    with backend_call(session, "update_fabric"):
        for key, value in patch.model_dump(exclude_unset=True).items():
            setattr(fabric, key, value)
        fabric.updated_at = utcnow()
        session.add(fabric)
        session.commit()
        session.refresh(fabric)
    logger.info("Fabric updated id=%s", fabric_id)
    return fabric.model_dump()


def delete_fabric(session: Session, fabric_id: int) -> None:
    fabric = get_fabric(session, fabric_id)
    _delete(session, fabric, "fabric")


# ---------- garments ----------

def list_garments(session: Session) -> List[Dict[str, Any]]:
    q = select(Garment).order_by(col(Garment.created_at).desc(), col(Garment.id).desc())
    with backend_call(session, "list_garments"):
        return [g.model_dump() for g in session.exec(q).all()]


def get_garment(session: Session, garment_id: int) -> Garment:
    with backend_call(session, "get_garment"):
        garment = session.get(Garment, garment_id)
    if garment is None:
        raise NotFoundError("garment", garment_id)
    return garment


def create_garment(session: Session, data: GarmentCreate) -> Dict[str, Any]:
    garment = Garment(**data.model_dump())
    with backend_call(session, "create_garment"):
        session.add(garment)
        session.commit()
        session.refresh(garment)
    logger.info("Garment created id=%s name=%s", garment.id, garment.name)
    return garment.model_dump()


def update_garment(session: Session, garment_id: int, patch: GarmentUpdate) -> Dict[str, Any]:
    garment = get_garment(session, garment_id)
    with backend_call(session, "update_garment"):
        for key, value in patch.model_dump(exclude_unset=True).items():
            setattr(garment, key, value)
        garment.updated_at = utcnow()
        session.add(garment)
        session.commit()
        session.refresh(garment)
    logger.info("Garment updated id=%s", garment_id)
    return garment.model_dump()


def delete_garment(session: Session, garment_id: int) -> None:
    garment = get_garment(session, garment_id)
    _delete(session, garment, "garment")


def _delete(session: Session, obj, entity: str) -> None:
    with backend_call(session, f"{entity}_references"):
        referenced = session.exec(
            select(Order.id).where(getattr(Order, f"{entity}_id") == obj.id).limit(1)
        ).first()
    if referenced is not None:
        raise ValidationError(f"{entity} is referenced by existing orders", [f"{entity}_in_use"])
    try:
        session.delete(obj)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ValidationError(f"{entity} is referenced by existing orders", [f"{entity}_in_use"]) from e
    except SQLAlchemyError as e:
        session.rollback()
        raise FetchError(backend_message(e)) from e
    logger.info("Deleted %s id=%s", entity, obj.id)


# ---------- orders ----------

def order_to_dict(order: Order) -> Dict[str, Any]:
    out = order.model_dump()
    out["customer"] = order.customer.model_dump() if order.customer else None
    out["fabric"] = order.fabric.model_dump() if order.fabric else None
    out["garment"] = order.garment.model_dump() if order.garment else None
    return out


def list_orders(session: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    q = select(Order).order_by(col(Order.created_at).desc(), col(Order.id).desc())
    if limit:
        q = q.limit(limit)
    with backend_call(session, "list_orders"):
        return [order_to_dict(o) for o in session.exec(q).all()]


def get_order(session: Session, order_id: int) -> Order:
    with backend_call(session, "get_order"):
        order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("order", order_id)
    return order


def get_order_by_tracking_id(session: Session, tracking_id: str) -> Order:
    key = (tracking_id or "").strip().upper()
    with backend_call(session, "get_order_by_tracking_id"):
        order = session.exec(select(Order).where(Order.tracking_id == key)).first()
    if order is None:
        raise NotFoundError("order", key)
    return order


def tracking_id_exists(session: Session, tracking_id: str) -> bool:
    with backend_call(session, "tracking_id_exists"):
        return session.exec(select(Order.id).where(Order.tracking_id == tracking_id)).first() is not None

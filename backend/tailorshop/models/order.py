from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel

from tailorshop.models.catalog import Fabric, Garment
from tailorshop.models.common import utcnow
from tailorshop.models.customer import Customer


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    tracking_id: str = Field(index=True, unique=True)
    customer_id: int = Field(foreign_key="customers.id")
    fabric_id: int = Field(foreign_key="fabrics.id")
    garment_id: int = Field(foreign_key="garments.id")
    customizations: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    measurements: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    # price snapshot taken when the order was placed
    garment_price: float
    fabric_price_per_meter: float
    fabric_meters: int
    price: float
    status: str = "confirmed"
    urgent: bool = False
    special_instructions: Optional[str] = None
    estimated_completion: Optional[date] = None
    actual_completion: Optional[date] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    customer: Optional[Customer] = Relationship()
    fabric: Optional[Fabric] = Relationship()
    garment: Optional[Garment] = Relationship()


class ContactDetails(SQLModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class OrderDraft(SQLModel):
    """Everything the customize wizard has collected so far.

    Any field may still be empty while the customer is on an earlier step.
    """

    fabric_id: Optional[int] = None
    garment_id: Optional[int] = None
    customizations: Dict[str, Any] = Field(default_factory=dict)
    measurements: Dict[str, Any] = Field(default_factory=lambda: {"method": "manual"})
    customer: ContactDetails = Field(default_factory=ContactDetails)
    urgent: bool = False
    special_instructions: Optional[str] = None

    @property
    def measurement_method(self) -> str:
        return (self.measurements or {}).get("method") or "manual"

    @property
    def lining(self) -> bool:
        return bool((self.customizations or {}).get("lining"))


class OrderStatusUpdate(SQLModel):
    status: str

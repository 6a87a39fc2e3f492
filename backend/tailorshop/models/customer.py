from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from tailorshop.models.common import utcnow


class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone: str = Field(index=True)
    email: str = Field(index=True)
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    measurements: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CustomerCreate(SQLModel):
    name: str
    phone: str
    email: str
    alternate_phone: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdate(SQLModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    measurements: Optional[Dict[str, Any]] = None

    @field_validator("name", "phone", "email")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

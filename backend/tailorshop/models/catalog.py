from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from tailorshop.models.common import utcnow


class Fabric(SQLModel, table=True):
    __tablename__ = "fabrics"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    material: str = Field(index=True)
    color: str
    price_per_meter: float
    # meters on hand
    stock: int = 0
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    featured: bool = False
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FabricCreate(SQLModel):
    name: str
    material: str
    color: str
    price_per_meter: float = Field(gt=0)
    stock: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    featured: bool = False
    description: Optional[str] = None


class FabricUpdate(SQLModel):
    name: Optional[str] = None
    material: Optional[str] = None
    color: Optional[str] = None
    price_per_meter: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    featured: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("name", "material", "color", "price_per_meter", "stock", "images", "featured")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class Garment(SQLModel, table=True):
    __tablename__ = "garments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    category: str = Field(index=True)
    base_price: float
    description: Optional[str] = None
    image: Optional[str] = None
    # option name -> allowed values, in display order
    customization_options: Dict[str, List[str]] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class GarmentCreate(SQLModel):
    name: str
    category: str
    base_price: float = Field(gt=0)
    description: Optional[str] = None
    image: Optional[str] = None
    customization_options: Dict[str, List[str]] = Field(default_factory=dict)


class GarmentUpdate(SQLModel):
    name: Optional[str] = None
    category: Optional[str] = None
    base_price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    image: Optional[str] = None
    customization_options: Optional[Dict[str, List[str]]] = None

    @field_validator("name", "category", "base_price", "customization_options")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

from tailorshop.models.catalog import Fabric, FabricCreate, FabricUpdate, Garment, GarmentCreate, GarmentUpdate
from tailorshop.models.customer import Customer, CustomerCreate, CustomerUpdate
from tailorshop.models.order import ContactDetails, Order, OrderDraft, OrderStatusUpdate

__all__ = [
    "ContactDetails",
    "Customer",
    "CustomerCreate",
    "CustomerUpdate",
    "Fabric",
    "FabricCreate",
    "FabricUpdate",
    "Garment",
    "GarmentCreate",
    "GarmentUpdate",
    "Order",
    "OrderDraft",
    "OrderStatusUpdate",
]

"""
Pydantic schemas for Order operations

Responses use camelCase keys on the wire (createdBy, totalValue, totalPages).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.models.order import Order, OrderState, OrderStatus, ServiceStatus
from app.services.order_workflow import total_value


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ServiceCreate(BaseModel):
    """A service requested in a new order"""
    name: str = Field(..., description="Service name, e.g. Hemograma")
    value: float = Field(..., description="Service price, must not be negative")
    status: ServiceStatus = Field(ServiceStatus.PENDING, description="Initial service status")


class OrderCreate(BaseModel):
    """Schema for creating a new order"""
    lab: str = Field(..., description="Laboratory name")
    patient: str = Field(..., description="Patient name")
    customer: str = Field(..., description="Customer name")
    services: List[ServiceCreate] = Field(..., description="Requested services (at least one)")


class ServiceResponse(CamelModel):
    name: str
    value: float
    status: ServiceStatus


class OrderResponse(CamelModel):
    """Schema for order responses"""
    id: str
    lab: str
    patient: str
    customer: str
    services: List[ServiceResponse]
    state: OrderState
    status: OrderStatus
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime]
    total_value: float

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            lab=order.lab,
            patient=order.patient,
            customer=order.customer,
            services=[ServiceResponse.model_validate(s) for s in order.services],
            state=order.state,
            status=order.status,
            created_by=order.created_by,
            created_at=order.created_at,
            updated_at=order.updated_at,
            total_value=total_value(order.services),
        )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderData(CamelModel):
    order: OrderResponse


class OrderListData(CamelModel):
    orders: List[OrderResponse]
    pagination: Pagination


class OrderEnvelope(BaseModel):
    """Envelope for single-order responses"""
    success: bool = True
    message: str
    data: OrderData


class OrderListEnvelope(BaseModel):
    """Envelope for paginated order listings"""
    success: bool = True
    message: str
    data: OrderListData

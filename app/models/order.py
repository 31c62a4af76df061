"""
Order model for database operations
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderState(str, enum.Enum):
    """Workflow stage of an order"""
    CREATED = "CREATED"
    ANALYSIS = "ANALYSIS"
    COMPLETED = "COMPLETED"


class OrderStatus(str, enum.Enum):
    """Soft-delete marker, orthogonal to the workflow state"""
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


class ServiceStatus(str, enum.Enum):
    PENDING = "PENDING"
    DONE = "DONE"


class Order(Base):
    """Laboratory test order owned by the user who created it"""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lab = Column(String(255), nullable=False)
    patient = Column(String(255), nullable=False)
    customer = Column(String(255), nullable=False)
    state = Column(String(20), default=OrderState.CREATED.value, nullable=False, index=True)
    status = Column(String(20), default=OrderStatus.ACTIVE.value, nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    services = relationship(
        "ServiceItem",
        order_by="ServiceItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, lab='{self.lab}', state='{self.state}', status='{self.status}')>"


class ServiceItem(Base):
    """A requested lab service; lives only inside its order"""
    __tablename__ = "order_services"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    value = Column(Float, nullable=False)
    status = Column(String(20), default=ServiceStatus.PENDING.value, nullable=False)

    def __repr__(self):
        return f"<ServiceItem(order_id={self.order_id}, name='{self.name}', value={self.value})>"

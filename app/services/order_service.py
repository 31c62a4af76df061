"""
Order service: creation, owner-scoped listing and state advancement
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.order import Order, OrderState, OrderStatus, ServiceItem
from app.services import order_workflow
from app.utils.error_handler import NotFound

logger = logging.getLogger(__name__)


@dataclass
class OrderPage:
    orders: List[Order]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return order_workflow.total_pages(self.total, self.limit)


class OrderService:
    """Every read and write is scoped to the owner and to ACTIVE orders"""

    def __init__(self, db: Session):
        self.db = db

    def _owned_active(self, owner_id: str):
        return self.db.query(Order).filter(
            Order.created_by == owner_id,
            Order.status == OrderStatus.ACTIVE.value,
        )

    async def create_order(self, owner_id: str, lab: str, patient: str, customer: str, services) -> Order:
        """Validate and persist a new order in the CREATED state"""
        new_order = order_workflow.validate_new_order(lab, patient, customer, services)

        order = Order(
            lab=new_order.lab,
            patient=new_order.patient,
            customer=new_order.customer,
            state=OrderState.CREATED.value,
            status=OrderStatus.ACTIVE.value,
            created_by=owner_id,
            services=[
                ServiceItem(position=i, name=s.name, value=s.value, status=s.status.value)
                for i, s in enumerate(new_order.services)
            ],
        )
        try:
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)

        logger.info(f"Created order {order.id} for user {owner_id}")
        return order

    async def list_orders(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 10,
        state: Optional[OrderState] = None,
    ) -> OrderPage:
        """Most recent first; count and page are two separate reads"""
        query = self._owned_active(owner_id)
        if state is not None:
            query = query.filter(Order.state == OrderState(state).value)

        total = query.count()

        offset = order_workflow.page_offset(page, limit)
        orders = query.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()

        return OrderPage(orders=orders, page=page, limit=limit, total=total)

    async def get_order(self, order_id: str, owner_id: str) -> Order:
        """Fetch an order the owner can see.

        Missing, foreign, soft-deleted and malformed ids all raise the same
        NotFound so callers learn nothing about orders they do not own.
        """
        try:
            uuid.UUID(str(order_id))
        except ValueError:
            raise NotFound("Order not found")

        order = self._owned_active(owner_id).filter(Order.id == str(order_id)).first()
        if order is None:
            raise NotFound("Order not found")
        return order

    async def advance_order(self, order_id: str, owner_id: str) -> Order:
        """Move an order one step forward along CREATED -> ANALYSIS -> COMPLETED"""
        order = await self.get_order(order_id, owner_id)

        target = order_workflow.next_state(order.state)
        order_workflow.ensure_positive_total(order.services)

        previous = order.state
        order.state = target.value
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)

        logger.info(f"Order {order.id} advanced {previous} -> {target.value}")
        return order

"""
Order management endpoints

Every route here sits behind the bearer-token gate and only ever sees the
caller's own ACTIVE orders.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.auth.auth_handler import CurrentUser, get_current_user
from app.database import get_db
from app.models.order import OrderState
from app.schemas.order import (
    OrderCreate, OrderResponse, OrderData, OrderListData, Pagination,
    OrderEnvelope, OrderListEnvelope,
)
from app.services.order_service import OrderService
from app.services.order_workflow import MAX_QUERY_INT
from app.utils.error_handler import AppError, InternalError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=OrderEnvelope, status_code=201)
@limiter.limit("30/minute")
async def create_order(
    request: Request,
    order: OrderCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new order in the CREATED state"""
    try:
        created = await OrderService(db).create_order(
            owner_id=current_user.user_id,
            lab=order.lab,
            patient=order.patient,
            customer=order.customer,
            services=order.services,
        )

        return OrderEnvelope(
            message="Order created successfully",
            data=OrderData(order=OrderResponse.from_order(created)),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to create order: {e}")
        raise InternalError("Failed to create order", e)


@router.get("", response_model=OrderListEnvelope)
@limiter.limit("30/minute")
async def get_orders(
    request: Request,
    page: int = Query(1, ge=1, le=MAX_QUERY_INT, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, le=MAX_QUERY_INT, description="Items per page"),
    state: Optional[OrderState] = Query(None, description="Filter by workflow state"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the caller's orders, most recent first"""
    try:
        result = await OrderService(db).list_orders(current_user.user_id, page, limit, state)

        return OrderListEnvelope(
            message="Orders retrieved successfully",
            data=OrderListData(
                orders=[OrderResponse.from_order(o) for o in result.orders],
                pagination=Pagination(
                    page=result.page,
                    limit=result.limit,
                    total=result.total,
                    total_pages=result.total_pages,
                ),
            ),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to get orders: {e}")
        raise InternalError("Failed to retrieve orders", e)


@router.patch("/{order_id}/advance", response_model=OrderEnvelope)
@limiter.limit("30/minute")
async def advance_order(
    request: Request,
    order_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Advance an order to its next workflow state"""
    try:
        order = await OrderService(db).advance_order(order_id, current_user.user_id)

        return OrderEnvelope(
            message=f"Order advanced to {order.state}",
            data=OrderData(order=OrderResponse.from_order(order)),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to advance order {order_id}: {e}")
        raise InternalError("Failed to advance order", e)

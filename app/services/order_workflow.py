"""
Order workflow rules: the state transition table, order validation and the
derived values computed when an order is read
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from app.models.order import OrderState, ServiceStatus
from app.utils.error_handler import InvalidTransition, ValidationError

# Strict forward-only flow; COMPLETED is terminal
NEXT_STATE: Dict[OrderState, Optional[OrderState]] = {
    OrderState.CREATED: OrderState.ANALYSIS,
    OrderState.ANALYSIS: OrderState.COMPLETED,
    OrderState.COMPLETED: None,
}


@dataclass
class NewService:
    name: str
    value: float
    status: ServiceStatus = ServiceStatus.PENDING


@dataclass
class NewOrder:
    """Validated, trimmed input ready to be persisted"""
    lab: str
    patient: str
    customer: str
    services: List[NewService] = field(default_factory=list)


def next_state(current) -> OrderState:
    """Return the state an order moves to, or raise InvalidTransition if terminal"""
    current = OrderState(current)
    target = NEXT_STATE[current]
    if target is None:
        raise InvalidTransition(f"Order is already in its final state ({current.value})")
    return target


def total_value(services: Iterable) -> float:
    return sum(s.value for s in services)


def ensure_positive_total(services: Iterable) -> None:
    if total_value(services) <= 0:
        raise ValidationError("Order total value must be greater than zero")


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_new_order(lab: str, patient: str, customer: str, services: Iterable) -> NewOrder:
    """Check every creation rule and return the trimmed order.

    All field problems are reported together in one message. The positive
    total check only runs once the individual services are valid.
    """
    errors = []
    order = NewOrder(lab=_clean(lab), patient=_clean(patient), customer=_clean(customer))

    for label, value in (("lab", order.lab), ("patient", order.patient), ("customer", order.customer)):
        if not value:
            errors.append(f"{label} is required")

    services = list(services or [])
    if not services:
        errors.append("order must contain at least one service")

    for index, service in enumerate(services):
        name = _clean(service.name)
        if not name:
            errors.append(f"services.{index}.name is required")
        if not math.isfinite(service.value):
            errors.append(f"services.{index}.value must be a finite number")
        elif service.value < 0:
            errors.append(f"services.{index}.value cannot be negative")
        order.services.append(
            NewService(name=name, value=service.value, status=ServiceStatus(service.status))
        )

    if errors:
        raise ValidationError(f"Order validation failed: {', '.join(errors)}")

    ensure_positive_total(order.services)
    return order


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


# Largest value the store accepts for LIMIT/OFFSET (signed 64-bit)
MAX_QUERY_INT = 2 ** 63 - 1


def page_offset(page: int, limit: int) -> int:
    """Row offset for a 1-based page; raises ValidationError if the store cannot represent it"""
    offset = (page - 1) * limit
    if offset > MAX_QUERY_INT:
        raise ValidationError("Requested page is out of range")
    return offset

"""
Order Status Lifecycle

Two policies, selected by ORDER_STATUS_POLICY:
    - permissive: any status may follow any other (Delivered -> Pending is
      allowed). This matches how the admin console has always behaved.
    - strict: only the transitions in TRANSITIONS; Delivered and Cancelled
      are terminal.
"""

from typing import Optional

from bhavan.core.config import StatusPolicy, get_settings
from bhavan.models import OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

STATUS_COLORS: dict[str, str] = {
    OrderStatus.PENDING.value: "yellow",
    OrderStatus.CONFIRMED.value: "blue",
    OrderStatus.PREPARING.value: "purple",
    OrderStatus.OUT_FOR_DELIVERY.value: "orange",
    OrderStatus.DELIVERED.value: "green",
    OrderStatus.CANCELLED.value: "red",
}


def status_color(status) -> str:
    """Badge colour for a status; unknown values are gray."""
    return STATUS_COLORS.get(getattr(status, "value", status), "gray")


def allowed_next(
    current: OrderStatus,
    policy: Optional[StatusPolicy] = None,
) -> frozenset[OrderStatus]:
    policy = policy or get_settings().order_status_policy
    if policy == StatusPolicy.PERMISSIVE:
        return frozenset(OrderStatus)
    return TRANSITIONS[current]


def can_transition(
    current: OrderStatus,
    new: OrderStatus,
    policy: Optional[StatusPolicy] = None,
) -> bool:
    """Re-applying the current status is always accepted."""
    if current == new:
        return True
    return new in allowed_next(current, policy)

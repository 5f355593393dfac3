"""
Order Service

Checkout persistence, order reads for customers and the admin console, and
status changes.

An order and all of its line items are written in one transaction: if any
item fails to persist, the order is rolled back with it.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bhavan.core.config import StatusPolicy
from bhavan.core.exceptions import Conflict, NotFound, ValidationFailed
from bhavan.models import MenuItem, Order, OrderItem, OrderStatus
from bhavan.schemas import CheckoutLine, CheckoutRequest, OrderItemResponse, OrderResponse
from bhavan.services.order_status import can_transition, status_color
from bhavan.services.receipts import compose_address, short_order_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLine:
    """Checkout line priced from the current catalog."""
    menu_item_id: str
    item_name: str
    portion_name: Optional[str]
    quantity: int
    price: Decimal


# =============================================================================
# CHECKOUT
# =============================================================================

async def resolve_line(db: AsyncSession, line: CheckoutLine) -> ResolvedLine:
    """
    Price one checkout line from the catalog.

    Portion price wins when a portion is given. An item with portions can't
    be ordered without one.
    """
    result = await db.execute(
        select(MenuItem)
        .options(selectinload(MenuItem.portions))
        .where(MenuItem.id == line.menu_item_id)
    )
    item = result.scalar_one_or_none()

    if item is None:
        raise ValidationFailed("Item is no longer on the menu", code="unknown_item")
    if not item.is_available:
        raise ValidationFailed(f"{item.name} is currently unavailable", code="item_unavailable")

    if line.portion_id:
        portion = next((p for p in item.portions if p.id == line.portion_id), None)
        if portion is None:
            raise ValidationFailed(f"Unknown portion for {item.name}", code="unknown_portion")
        if not portion.is_available:
            raise ValidationFailed(
                f"{item.name} ({portion.name}) is currently unavailable",
                code="item_unavailable",
            )
        return ResolvedLine(item.id, item.name, portion.name, line.quantity, Decimal(portion.price))

    if item.portions:
        raise ValidationFailed(f"Please choose a portion for {item.name}", code="portion_required")

    return ResolvedLine(item.id, item.name, None, line.quantity, Decimal(item.price))


def _build_items(order: Order, lines: list[ResolvedLine]) -> list[OrderItem]:
    return [
        OrderItem(
            order_id=order.id,
            menu_item_id=line.menu_item_id,
            item_name=line.item_name,
            portion_name=line.portion_name,
            quantity=line.quantity,
            price=line.price,
        )
        for line in lines
    ]


async def place_order(db: AsyncSession, user_id: str, request: CheckoutRequest) -> Order:
    """
    Persist an order for ``user_id``.

    Callers run the checkout validator first. Returns the committed order
    with its items loaded.
    """
    lines = [await resolve_line(db, line) for line in request.items]
    total = sum((line.price * line.quantity for line in lines), Decimal("0"))

    address_parts = [
        request.flat_no.strip(),
        request.apartment_street.strip(),
        request.sector.strip(),
        request.area.strip(),
    ]

    order = Order(
        user_id=user_id,
        customer_name=request.customer_name.strip(),
        customer_phone=request.customer_phone.strip(),
        customer_address=compose_address(*address_parts),
        flat_no=address_parts[0],
        apartment_street=address_parts[1],
        sector=address_parts[2],
        area=address_parts[3],
        latitude=request.latitude,
        longitude=request.longitude,
        total_amount=total,
        status=OrderStatus.PENDING,
    )

    try:
        db.add(order)
        await db.flush()
        db.add_all(_build_items(order, lines))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(f"❌ Checkout failed for user {user_id}, order rolled back")
        raise

    logger.info(
        f"🧾 Order {short_order_id(order.id)} placed by {order.customer_name}: "
        f"{len(lines)} line(s), total {total:.2f}"
    )
    return await get_order(db, order.id)


# =============================================================================
# READS
# =============================================================================

def _with_items():
    return select(Order).options(selectinload(Order.items)).execution_options(populate_existing=True)


async def get_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(_with_items().where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")
    return order


async def list_customer_orders(db: AsyncSession, user_id: str) -> list[Order]:
    """The caller's own orders, newest first."""
    result = await db.execute(
        _with_items().where(Order.user_id == user_id).order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all_orders(db: AsyncSession, status: Optional[OrderStatus] = None) -> list[Order]:
    """Every order for the admin console, newest first."""
    query = _with_items().order_by(Order.created_at.desc())
    if status is not None:
        query = query.where(Order.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


# =============================================================================
# STATUS
# =============================================================================

async def set_status(
    db: AsyncSession,
    order_id: str,
    new_status: OrderStatus,
    policy: Optional[StatusPolicy] = None,
) -> Order:
    order = await get_order(db, order_id)
    current = order.status

    if not can_transition(current, new_status, policy):
        raise Conflict(
            f"Cannot change status from {current.value} to {new_status.value}",
            code="invalid_transition",
        )

    order.status = new_status
    await db.commit()
    logger.info(f"📦 Order {short_order_id(order.id)}: {current.value} -> {new_status.value}")
    return order


def order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        short_id=short_order_id(order.id),
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_address=order.customer_address,
        flat_no=order.flat_no,
        apartment_street=order.apartment_street,
        sector=order.sector,
        area=order.area,
        latitude=order.latitude,
        longitude=order.longitude,
        total_amount=order.total_amount,
        status=order.status,
        status_color=status_color(order.status),
        created_at=order.created_at,
        items=[
            OrderItemResponse(
                item_name=item.item_name,
                portion_name=item.portion_name,
                quantity=item.quantity,
                price=item.price,
                line_total=item.line_total,
            )
            for item in order.items
        ],
    )

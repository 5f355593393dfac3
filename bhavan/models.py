"""
SQLAlchemy Database Models

Catalog (categories, menu items, portions, banners), customer profiles,
admin role grants, and orders with their snapshot line items.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Float,
    DateTime,
    Text,
    Enum,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from bhavan.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class BannerSection(str, enum.Enum):
    """Daily-special sections shown above the menu."""
    LUNCH = "Lunch Menu"
    DINNER = "Dinner Menu"


class AppRole(str, enum.Enum):
    ADMIN = "admin"


# =============================================================================
# CATALOG
# =============================================================================

class Category(Base):
    """Menu category. Soft-disabled through ``is_active``."""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<Category {self.name}>"


class MenuItem(Base):
    """
    Sellable dish.

    An item without portions is sold at ``price``; once it has portions it
    is sold only per portion and ``price`` becomes inert.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    # No cascade: deleting a category leaves its items behind
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_vegetarian = Column(Boolean, default=False, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    portions = relationship(
        "Portion",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Portion.display_order",
    )

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.price}>"


class Portion(Base):
    """Priced size of a menu item, e.g. Half / Full."""
    __tablename__ = "portions"

    id = Column(String(36), primary_key=True, default=_uuid)
    menu_item_id = Column(
        String(36),
        ForeignKey("menu_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    menu_item = relationship("MenuItem", back_populates="portions")

    def __repr__(self):
        return f"<Portion {self.name} - {self.price}>"


class Banner(Base):
    """Daily-special announcement. Not a sellable item."""
    __tablename__ = "banners"

    id = Column(String(36), primary_key=True, default=_uuid)
    section = Column(
        Enum(BannerSection, values_callable=lambda e: [m.value for m in e]),
        default=BannerSection.LUNCH,
        nullable=False,
    )
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    is_vegetarian = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<Banner {self.section.value}: {self.title}>"


# =============================================================================
# USERS
# =============================================================================

class Profile(Base):
    """Customer profile. ``id`` is the identity provider's user id."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    full_name = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<Profile {self.email}>"


class UserRole(Base):
    """Admin role grant."""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(
        Enum(AppRole, values_callable=lambda e: [m.value for m in e]),
        default=AppRole.ADMIN,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<UserRole {self.user_id} - {self.role.value}>"


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """
    Submitted order with delivery details.

    ``total_amount`` equals the sum of quantity x price over ``items`` at
    creation time.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)

    # Customer
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False)

    # Delivery address
    customer_address = Column(Text, nullable=False)
    flat_no = Column(String(50), nullable=True)
    apartment_street = Column(String(150), nullable=True)
    sector = Column(String(100), nullable=True)
    area = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order {self.id[:8]} - {self.customer_name} - {self.status.value}>"


class OrderItem(Base):
    """Line item. Name, price and portion are snapshots taken at checkout."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(
        String(36),
        ForeignKey("menu_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    item_name = Column(String(150), nullable=False)
    portion_name = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")

    @property
    def line_total(self):
        return self.price * self.quantity

    def __repr__(self):
        return f"<OrderItem {self.item_name} x{self.quantity}>"

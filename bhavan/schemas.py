"""
Pydantic Schemas for Request/Response Validation

Catalog CRUD payloads, checkout, order tracking, the admin-role function
and session/profile views.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional, List, Dict

from pydantic import BaseModel, Field, PlainSerializer, StringConstraints, field_validator

from bhavan.models import BannerSection, OrderStatus


# Money is kept exact in Python and emitted as a JSON number
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]
Price = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# =============================================================================
# CATALOG REQUEST SCHEMAS
# =============================================================================

class CategoryCreate(BaseModel):
    """Create or replace a category."""
    name: NonBlank = Field(..., max_length=100, examples=["Dosas"])
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    display_order: int = Field(default=0, ge=0)


class MenuItemCreate(BaseModel):
    """Create or replace a menu item."""
    name: NonBlank = Field(..., max_length=100, examples=["Masala Dosa"])
    description: Optional[str] = Field(None, max_length=500)
    price: Price = Field(..., examples=[80])
    image_url: Optional[str] = Field(None, max_length=500)
    category_id: Optional[str] = None
    is_vegetarian: bool = False
    is_available: bool = True
    display_order: int = Field(default=0, ge=0)

    @field_validator("category_id", "image_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v


class PortionCreate(BaseModel):
    """Create or replace a portion."""
    menu_item_id: str = Field(..., min_length=1)
    name: NonBlank = Field(..., max_length=50, examples=["Half", "Full"])
    price: Price = Field(..., examples=[120])
    display_order: int = Field(default=0, ge=0)
    is_available: bool = True


class BannerCreate(BaseModel):
    """Create or replace a daily-special banner."""
    section: BannerSection = BannerSection.LUNCH
    title: NonBlank = Field(..., max_length=150, examples=["Bisi Bele Bath"])
    description: Optional[str] = Field(None, max_length=500)
    is_vegetarian: bool = True
    is_active: bool = True
    display_order: int = Field(default=0, ge=0)


# =============================================================================
# CATALOG RESPONSE SCHEMAS
# =============================================================================

class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    is_active: bool
    display_order: int

    class Config:
        from_attributes = True


class PortionResponse(BaseModel):
    id: str
    menu_item_id: str
    name: str
    price: Money
    display_order: int
    is_available: bool
    menu_item_name: Optional[str] = None

    class Config:
        from_attributes = True


class MenuItemResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    price: Money
    image_url: Optional[str]
    category_id: Optional[str]
    is_vegetarian: bool
    is_available: bool
    display_order: int

    class Config:
        from_attributes = True


class MenuItemWithPortions(MenuItemResponse):
    portions: List[PortionResponse] = []


class BannerResponse(BaseModel):
    id: str
    section: BannerSection
    title: str
    description: Optional[str]
    is_vegetarian: bool
    is_active: bool
    display_order: int

    class Config:
        from_attributes = True


class MenuCategoryGroup(BaseModel):
    category: CategoryResponse
    items: List[MenuItemWithPortions]


class MenuResponse(BaseModel):
    """Public menu: items grouped by active category plus today's specials."""
    categories: List[MenuCategoryGroup]
    banners: Dict[str, List[BannerResponse]]


# =============================================================================
# CHECKOUT SCHEMAS
# =============================================================================

class CheckoutLine(BaseModel):
    """One cart line as submitted at checkout."""
    menu_item_id: str
    portion_id: Optional[str] = None
    quantity: int = Field(..., ge=1, le=99, examples=[2])


class CheckoutRequest(BaseModel):
    """
    Checkout form.

    Fields default to empty so the ordered business validation, not schema
    validation, decides which rejection the customer sees.
    """
    customer_name: str = ""
    customer_phone: str = ""
    flat_no: str = ""
    apartment_street: str = ""
    sector: str = ""
    area: str = ""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    items: List[CheckoutLine] = []


class LocationRequest(BaseModel):
    flat_no: str = ""
    apartment_street: str = ""
    sector: str = ""
    area: str = ""


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    item_name: str
    portion_name: Optional[str]
    quantity: int
    price: Money
    line_total: Money

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order with its line items."""
    id: str
    short_id: str
    customer_name: str
    customer_phone: str
    customer_address: str
    flat_no: Optional[str]
    apartment_street: Optional[str]
    sector: Optional[str]
    area: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    total_amount: Money
    status: OrderStatus
    status_color: str
    created_at: datetime
    items: List[OrderItemResponse]


class OrderCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    success: bool
    message: str
    order: OrderResponse


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderResponse]


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


# =============================================================================
# USER SCHEMAS
# =============================================================================

class ProfileResponse(BaseModel):
    id: str
    email: Optional[str]
    full_name: Optional[str]
    phone: Optional[str]
    address: Optional[str]

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)


class SessionResponse(BaseModel):
    """Who the bearer credential belongs to."""
    authenticated: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False


class AdminProfile(BaseModel):
    id: str
    email: Optional[str]
    full_name: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# =============================================================================
# MISC
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    code: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    auth_service: str
    geo_service: str
    notification_service: str
    printer_service: str
    timestamp: datetime

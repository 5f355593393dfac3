"""
Receipt Rendering

Builds the two renderings of a new-order receipt from an immutable order
snapshot:
    - plain text, saved as ``Order_<SHORTID>_<yyyyMMdd_HHmmss>.txt``
    - print-formatted HTML tuned for an 80mm thermal roll

Pipeline handlers re-fetch the order and build their own snapshot, so the
renderers never touch the database.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

from bhavan.core.config import Settings, get_settings

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
RECEIPT_WIDTH = 43
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class ReceiptLine:
    """Snapshot of one order item."""
    item_name: str
    quantity: int
    price: Decimal
    portion_name: Optional[str] = None

    @property
    def label(self) -> str:
        if self.portion_name:
            return f"{self.item_name} ({self.portion_name})"
        return self.item_name

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class ReceiptOrder:
    """Snapshot of an order and its items, detached from any session."""
    id: str
    customer_name: str
    customer_phone: str
    customer_address: str
    flat_no: Optional[str]
    apartment_street: Optional[str]
    sector: Optional[str]
    area: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    total_amount: Decimal
    status: str
    created_at: datetime
    items: tuple[ReceiptLine, ...]

    @classmethod
    def from_model(cls, order) -> "ReceiptOrder":
        """Build a snapshot from an ``Order`` with its items loaded."""
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            flat_no=order.flat_no,
            apartment_street=order.apartment_street,
            sector=order.sector,
            area=order.area,
            latitude=order.latitude,
            longitude=order.longitude,
            total_amount=Decimal(order.total_amount),
            status=getattr(order.status, "value", order.status),
            created_at=order.created_at,
            items=tuple(
                ReceiptLine(
                    item_name=item.item_name,
                    quantity=item.quantity,
                    price=Decimal(item.price),
                    portion_name=item.portion_name,
                )
                for item in order.items
            ),
        )

    @property
    def short_id(self) -> str:
        return short_order_id(self.id)

    @property
    def full_address(self) -> str:
        return compose_address(
            self.flat_no,
            self.apartment_street,
            self.sector,
            self.area,
            fallback=self.customer_address,
        )

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def short_order_id(order_id: str) -> str:
    """First 8 characters of the order id, upper-cased."""
    return order_id[:8].upper()


def compose_address(
    flat_no: Optional[str],
    apartment_street: Optional[str],
    sector: Optional[str],
    area: Optional[str],
    fallback: str = "",
) -> str:
    """Join the four address parts, or use ``fallback`` if any is missing."""
    parts = [flat_no, apartment_street, sector, area]
    if all(p and p.strip() for p in parts):
        return ", ".join(p.strip() for p in parts)
    return fallback


def format_money(amount: Decimal, symbol: str) -> str:
    return f"{symbol}{Decimal(amount):.2f}"


def localize(moment: datetime, tz_name: str) -> datetime:
    """Convert to the receipt timezone. Naive values are treated as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name))


def format_timestamp(moment: datetime, tz_name: str) -> str:
    return localize(moment, tz_name).strftime(TIMESTAMP_FORMAT)


def maps_link(latitude: float, longitude: float) -> str:
    return f"https://www.google.com/maps?q={latitude},{longitude}"


def receipt_filename(order: ReceiptOrder, settings: Optional[Settings] = None) -> str:
    """``Order_<SHORTID>_<yyyyMMdd_HHmmss>.txt`` in the receipt timezone."""
    settings = settings or get_settings()
    stamp = localize(order.created_at, settings.receipt_timezone)
    return f"Order_{order.short_id}_{stamp.strftime(FILENAME_TIMESTAMP_FORMAT)}.txt"


# =============================================================================
# RENDERERS
# =============================================================================

def render_text_receipt(order: ReceiptOrder, settings: Optional[Settings] = None) -> str:
    """Plain-text receipt saved alongside every new order."""
    settings = settings or get_settings()
    symbol = settings.currency_symbol
    heavy = "=" * RECEIPT_WIDTH
    light = "-" * RECEIPT_WIDTH

    lines = [
        heavy,
        settings.restaurant_name.upper().center(RECEIPT_WIDTH).rstrip(),
        settings.restaurant_tagline.center(RECEIPT_WIDTH).rstrip(),
        heavy,
        "NEW ORDER RECEIVED".center(RECEIPT_WIDTH).rstrip(),
        heavy,
        "",
        f"Order #{order.short_id}",
        f"Order ID: {order.id}",
        f"Date/Time: {format_timestamp(order.created_at, settings.receipt_timezone)}",
        "",
        light,
        "CUSTOMER DETAILS",
        light,
        f"Name: {order.customer_name}",
        f"Phone: {order.customer_phone}",
        "",
        "Delivery Address:",
        order.full_address,
    ]

    if order.has_location:
        lines += [
            "",
            f"Location: {order.latitude}, {order.longitude}",
            f"Google Maps: {maps_link(order.latitude, order.longitude)}",
        ]

    lines += ["", light, "ORDER ITEMS", light]
    for index, item in enumerate(order.items):
        if index:
            lines.append("")
        lines.append(item.label)
        lines.append(
            f"  x{item.quantity} @ {format_money(item.price, symbol)}"
            f" = {format_money(item.line_total, symbol)}"
        )

    lines += [
        "",
        light,
        f"TOTAL AMOUNT: {format_money(order.total_amount, symbol)}",
        f"STATUS: {order.status.upper()}",
        heavy,
    ]
    return "\n".join(lines) + "\n"


def render_print_receipt(order: ReceiptOrder, settings: Optional[Settings] = None) -> str:
    """80mm print-formatted HTML document."""
    settings = settings or get_settings()
    template = _env.get_template("receipt.html")
    return template.render(
        order=order,
        restaurant_name=settings.restaurant_name.upper(),
        restaurant_tagline=settings.restaurant_tagline,
        created_at=format_timestamp(order.created_at, settings.receipt_timezone),
        money=lambda amount: format_money(amount, settings.currency_symbol),
    )

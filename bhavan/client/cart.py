"""
Shopping Cart

Client-side cart persisted under the ``cart`` key of local storage. Every
mutation is written through immediately.

Lines merge on (menu_item_id, portion_id): adding the same item and portion
again raises the quantity instead of adding a line.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

from bhavan.client.storage import LocalStorage

CART_KEY = "cart"


@dataclass
class CartLine:
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int
    portion_id: Optional[str] = None
    portion_name: Optional[str] = None

    @property
    def key(self) -> tuple[str, Optional[str]]:
        return (self.menu_item_id, self.portion_id)

    @property
    def label(self) -> str:
        return f"{self.name} ({self.portion_name})" if self.portion_name else self.name

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartLine":
        return cls(
            menu_item_id=data["menu_item_id"],
            name=data["name"],
            price=Decimal(str(data["price"])),
            quantity=int(data["quantity"]),
            portion_id=data.get("portion_id"),
            portion_name=data.get("portion_name"),
        )


class Cart:
    """
    Cart backed by local storage.

    Items and portions are the mappings returned by ``GET /api/menu``
    (``id``, ``name``, ``price``). The unit price is snapshotted when the
    line is first added.
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self.lines: list[CartLine] = [
            CartLine.from_dict(raw) for raw in storage.get(CART_KEY, []) or []
        ]

    def _save(self) -> None:
        self.storage.set(CART_KEY, [line.to_dict() for line in self.lines])

    def _find(self, menu_item_id: str, portion_id: Optional[str]) -> Optional[CartLine]:
        return next((line for line in self.lines if line.key == (menu_item_id, portion_id)), None)

    def add(
        self,
        item: Mapping[str, Any],
        quantity: int = 1,
        portion: Optional[Mapping[str, Any]] = None,
    ) -> CartLine:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")

        portion_id = portion["id"] if portion else None
        line = self._find(item["id"], portion_id)
        if line is not None:
            line.quantity += quantity
        else:
            line = CartLine(
                menu_item_id=item["id"],
                name=item["name"],
                price=Decimal(str(portion["price"] if portion else item["price"])),
                quantity=quantity,
                portion_id=portion_id,
                portion_name=portion["name"] if portion else None,
            )
            self.lines.append(line)
        self._save()
        return line

    def set_quantity(self, menu_item_id: str, portion_id: Optional[str], quantity: int) -> None:
        """Zero or less removes the line."""
        line = self._find(menu_item_id, portion_id)
        if line is None:
            return
        if quantity <= 0:
            self.lines.remove(line)
        else:
            line.quantity = quantity
        self._save()

    def remove(self, menu_item_id: str, portion_id: Optional[str] = None) -> None:
        self.set_quantity(menu_item_id, portion_id, 0)

    def clear(self) -> None:
        self.lines = []
        self._save()

    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def checkout_lines(self) -> list[dict[str, Any]]:
        """Lines in the shape ``POST /api/orders`` expects."""
        return [
            {
                "menu_item_id": line.menu_item_id,
                "portion_id": line.portion_id,
                "quantity": line.quantity,
            }
            for line in self.lines
        ]

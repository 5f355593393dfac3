from decimal import Decimal

import pytest

from bhavan.client.cart import CART_KEY, Cart
from bhavan.client.storage import LocalStorage

DOSA = {"id": "item-dosa", "name": "Dosa", "price": 80}
BIRYANI = {"id": "item-biryani", "name": "Chicken Biryani", "price": 0}
HALF = {"id": "portion-half", "name": "Half", "price": "140.00"}
FULL = {"id": "portion-full", "name": "Full", "price": "240.00"}


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "local_storage.json"))


def test_add_merges_same_item_and_portion(storage):
    cart = Cart(storage)
    cart.add(DOSA)
    cart.add(DOSA, quantity=2)
    cart.add(BIRYANI, portion=HALF)
    cart.add(BIRYANI, portion=FULL)
    cart.add(BIRYANI, portion=HALF)

    assert len(cart.lines) == 3
    assert cart.count() == 6
    assert cart.total() == Decimal("80") * 3 + Decimal("140") * 2 + Decimal("240")


def test_portion_price_and_label_are_snapshotted(storage):
    cart = Cart(storage)
    line = cart.add(BIRYANI, portion=FULL)

    assert line.price == Decimal("240.00")
    assert line.label == "Chicken Biryani (Full)"


def test_set_quantity_zero_or_less_removes_line(storage):
    cart = Cart(storage)
    cart.add(DOSA, quantity=3)
    cart.add(BIRYANI, portion=HALF)

    cart.set_quantity("item-dosa", None, 5)
    assert cart.total() == Decimal("540")

    cart.set_quantity("item-dosa", None, 0)
    cart.set_quantity("item-biryani", "portion-half", -1)
    assert cart.lines == []
    assert cart.total() == Decimal("0")


def test_set_quantity_for_missing_line_is_ignored(storage):
    cart = Cart(storage)
    cart.add(DOSA)
    cart.set_quantity("nope", None, 4)
    assert cart.count() == 1


def test_add_rejects_non_positive_quantity(storage):
    with pytest.raises(ValueError):
        Cart(storage).add(DOSA, quantity=0)


def test_persists_across_instances(storage):
    cart = Cart(storage)
    cart.add(DOSA, quantity=2)
    cart.add(BIRYANI, portion=HALF)

    reloaded = Cart(storage)
    assert [(line.menu_item_id, line.portion_id, line.quantity) for line in reloaded.lines] == [
        ("item-dosa", None, 2),
        ("item-biryani", "portion-half", 1),
    ]
    assert reloaded.total() == Decimal("300")
    assert storage.get(CART_KEY)[0]["price"] == "80"


def test_clear_empties_storage(storage):
    cart = Cart(storage)
    cart.add(DOSA)
    cart.clear()

    assert storage.get(CART_KEY) == []
    assert Cart(storage).lines == []


def test_unreadable_storage_starts_empty(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("{not json", encoding="utf-8")

    assert Cart(LocalStorage(str(path))).lines == []


def test_checkout_lines_shape(storage):
    cart = Cart(storage)
    cart.add(BIRYANI, quantity=2, portion=HALF)

    assert cart.checkout_lines() == [
        {"menu_item_id": "item-biryani", "portion_id": "portion-half", "quantity": 2},
    ]

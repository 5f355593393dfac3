import pytest

from bhavan.core.config import StatusPolicy
from bhavan.core.exceptions import Conflict
from bhavan.models import OrderStatus
from bhavan.schemas import CheckoutRequest
from bhavan.services import orders as order_service
from bhavan.services.order_status import can_transition, status_color
from tests.helpers import checkout_payload


async def place(db, make_item):
    dosa, _ = await make_item("Dosa", "80")
    request = CheckoutRequest(**checkout_payload([{"menu_item_id": dosa.id, "quantity": 1}]))
    return await order_service.place_order(db, "0c1d2e3f-4a5b-4c6d-8e7f-9a0b1c2d3e4f", request)


def test_permissive_allows_any_move():
    assert can_transition(OrderStatus.DELIVERED, OrderStatus.PENDING, StatusPolicy.PERMISSIVE)
    assert can_transition(OrderStatus.CANCELLED, OrderStatus.PREPARING, StatusPolicy.PERMISSIVE)


def test_strict_follows_the_kitchen_flow():
    strict = StatusPolicy.STRICT
    assert can_transition(OrderStatus.PENDING, OrderStatus.CONFIRMED, strict)
    assert can_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, strict)
    assert can_transition(OrderStatus.PREPARING, OrderStatus.CANCELLED, strict)
    assert not can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED, strict)
    assert not can_transition(OrderStatus.DELIVERED, OrderStatus.PENDING, strict)
    assert not can_transition(OrderStatus.CANCELLED, OrderStatus.CONFIRMED, strict)
    assert can_transition(OrderStatus.DELIVERED, OrderStatus.DELIVERED, strict)


@pytest.mark.parametrize("status, color", [
    ("Pending", "yellow"),
    (OrderStatus.CONFIRMED, "blue"),
    ("Preparing", "purple"),
    ("Out for Delivery", "orange"),
    ("Delivered", "green"),
    ("Cancelled", "red"),
    ("Lost", "gray"),
])
def test_status_colors(status, color):
    assert status_color(status) == color


async def test_delivered_back_to_pending_is_accepted_by_default(client, admin, db, make_item):
    order = await place(db, make_item)
    url = f"/api/admin/orders/{order.id}/status"

    delivered = await client.patch(url, json={"status": "Delivered"}, headers=admin["headers"])
    reopened = await client.patch(url, json={"status": "Pending"}, headers=admin["headers"])

    assert delivered.json()["status"] == "Delivered"
    assert delivered.json()["status_color"] == "green"
    assert reopened.status_code == 200
    assert reopened.json()["status"] == "Pending"


async def test_strict_policy_rejects_reopening(db, make_item):
    order = await place(db, make_item)
    await order_service.set_status(db, order.id, OrderStatus.DELIVERED, StatusPolicy.PERMISSIVE)

    with pytest.raises(Conflict, match="Cannot change status from Delivered to Pending"):
        await order_service.set_status(db, order.id, OrderStatus.PENDING, StatusPolicy.STRICT)


async def test_unknown_status_value_is_rejected(client, admin, db, make_item):
    order = await place(db, make_item)
    response = await client.patch(
        f"/api/admin/orders/{order.id}/status", json={"status": "Eaten"}, headers=admin["headers"]
    )
    assert response.status_code == 422


async def test_missing_order_is_not_found(client, admin):
    response = await client.patch(
        "/api/admin/orders/does-not-exist/status", json={"status": "Confirmed"}, headers=admin["headers"]
    )
    assert response.status_code == 404


async def test_admin_console_lists_and_filters(client, admin, db, make_item):
    first = await place(db, make_item)
    second = await place(db, make_item)
    await order_service.set_status(db, first.id, OrderStatus.CONFIRMED)

    everything = await client.get("/api/admin/orders", headers=admin["headers"])
    confirmed = await client.get("/api/admin/orders", params={"status": "Confirmed"}, headers=admin["headers"])

    assert [o["id"] for o in everything.json()["orders"]] == [second.id, first.id]
    assert [o["id"] for o in confirmed.json()["orders"]] == [first.id]


async def test_receipt_downloads(client, admin, db, make_item):
    order = await place(db, make_item)

    text = await client.get(f"/api/admin/orders/{order.id}/receipt.txt", headers=admin["headers"])
    html = await client.get(f"/api/admin/orders/{order.id}/receipt.html", headers=admin["headers"])

    assert text.status_code == 200
    assert f'filename="Order_{order.id[:8].upper()}_' in text.headers["content-disposition"]
    assert "Dosa" in text.text and "x1" in text.text
    assert html.headers["content-type"].startswith("text/html")
    assert "80mm" in html.text

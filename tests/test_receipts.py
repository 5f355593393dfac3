from decimal import Decimal

import pytest

from bhavan.core.config import Settings
from bhavan.services.receipts import (
    ReceiptLine,
    compose_address,
    receipt_filename,
    render_print_receipt,
    render_text_receipt,
)
from tests.helpers import make_receipt_order


@pytest.fixture
def settings():
    return Settings(receipt_timezone="Asia/Kolkata", currency_symbol="₹")


def test_text_receipt_contents(settings):
    text = render_text_receipt(make_receipt_order(), settings)

    for expected in ("250.50", "Dosa", "x2", "Chutney", "3FA85F64", "STATUS: PENDING"):
        assert expected in text
    assert "Date/Time: 05/03/2024 13:45:30" in text
    assert "  x1 @ ₹90.50 = ₹90.50" in text
    assert "Google Maps: https://www.google.com/maps?q=12.9121,77.6446" in text


def test_text_receipt_without_coordinates_has_no_location(settings):
    text = render_text_receipt(make_receipt_order(latitude=None, longitude=None), settings)
    assert "Location:" not in text
    assert "Google Maps" not in text


def test_portion_is_shown_in_parentheses(settings):
    order = make_receipt_order(items=(ReceiptLine("Chicken Biryani", 1, Decimal("240"), portion_name="Full"),))
    assert "Chicken Biryani (Full)" in render_text_receipt(order, settings)


def test_filename_uses_short_id_and_local_time(settings):
    assert receipt_filename(make_receipt_order(), settings) == "Order_3FA85F64_20240305_134530.txt"


def test_address_falls_back_when_any_part_missing():
    assert compose_address("12B", "Lakeview", "Sector 2", "HSR") == "12B, Lakeview, Sector 2, HSR"
    assert compose_address("12B", None, "Sector 2", "HSR", fallback="old address") == "old address"
    assert make_receipt_order(sector="").full_address == "12B, Lakeview, Sector 2, HSR"


def test_print_receipt_is_80mm_html(settings):
    html = render_print_receipt(make_receipt_order(), settings)

    assert "size: 80mm auto" in html
    assert "Order #3FA85F64" in html
    assert "₹250.50" in html
    assert "x2" in html
    assert "BENGALURU BHAVAN" in html

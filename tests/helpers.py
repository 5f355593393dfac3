from datetime import datetime, timezone
from decimal import Decimal

from bhavan.services.auth import make_dev_token
from bhavan.services.receipts import ReceiptLine, ReceiptOrder


def auth_headers(user_id: str, email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_dev_token(user_id, email)}"}


def checkout_payload(items, /, **overrides) -> dict:
    payload = {
        "customer_name": "Asha Rao",
        "customer_phone": "9876543210",
        "flat_no": "12B",
        "apartment_street": "Lakeview Apartments",
        "sector": "HSR Layout Sector 2",
        "area": "Bengaluru",
        "latitude": 12.9121,
        "longitude": 77.6446,
        "items": items,
    }
    payload.update(overrides)
    return payload


RECEIPT_ORDER_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


def make_receipt_order(**overrides) -> ReceiptOrder:
    fields = dict(
        id=RECEIPT_ORDER_ID,
        customer_name="Asha Rao",
        customer_phone="9876543210",
        customer_address="12B, Lakeview, Sector 2, HSR",
        flat_no="12B",
        apartment_street="Lakeview",
        sector="Sector 2",
        area="HSR",
        latitude=12.9121,
        longitude=77.6446,
        total_amount=Decimal("250.50"),
        status="Pending",
        created_at=datetime(2024, 3, 5, 8, 15, 30, tzinfo=timezone.utc),
        items=(
            ReceiptLine("Dosa", 2, Decimal("80")),
            ReceiptLine("Chutney", 1, Decimal("90.5")),
        ),
    )
    fields.update(overrides)
    return ReceiptOrder(**fields)

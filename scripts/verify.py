"""
Order Integrity Verification

Checks every stored order after a simulation run:
    - total_amount equals the sum of its line items
    - every order has at least one item
    - a text receipt exists in the receipts directory
Run from project root: python scripts/verify.py
"""

import os
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from bhavan.core.config import get_settings
from bhavan.database import sync_session_maker
from bhavan.models import Order
from bhavan.services.receipts import short_order_id


def verify_orders() -> bool:
    """Verify stored orders and their receipts."""
    settings = get_settings()
    receipts_dir = Path(settings.receipts_directory)

    print("=" * 60)
    print("🔍 ORDER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📂 Receipts: {receipts_dir}")
    print("=" * 60)

    with sync_session_maker() as session:
        orders = session.execute(
            select(Order).options(selectinload(Order.items)).order_by(Order.created_at)
        ).scalars().all()

    if not orders:
        print("\n❌ No orders found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    receipts = {p.name for p in receipts_dir.glob("Order_*.txt")} if receipts_dir.exists() else set()

    bad_totals = []
    empty = []
    missing_receipts = []
    for order in orders:
        if not order.items:
            empty.append(order)
        line_sum = sum((Decimal(i.price) * i.quantity for i in order.items), Decimal("0"))
        if line_sum != Decimal(order.total_amount):
            bad_totals.append((order, line_sum))
        prefix = f"Order_{short_order_id(order.id)}_"
        if not any(name.startswith(prefix) for name in receipts):
            missing_receipts.append(order)

    print(f"\n📊 STATISTICS:")
    print(f"   Total Orders: {len(orders)}")
    print(f"   Receipt Files: {len(receipts)}")

    print("")
    print(f"{'✅' if not bad_totals else '⚠️'} Total mismatches: {len(bad_totals)}")
    for order, line_sum in bad_totals[:5]:
        print(f"   #{short_order_id(order.id)}: stored {order.total_amount}, items {line_sum}")
    print(f"{'✅' if not empty else '⚠️'} Orders without items: {len(empty)}")
    print(f"{'✅' if not missing_receipts else '⚠️'} Orders without receipt: {len(missing_receipts)}")

    revenue = sum((Decimal(o.total_amount) for o in orders), Decimal("0"))
    print(f"\n💰 REVENUE:")
    print(f"   Total: {settings.currency_symbol}{revenue:.2f}")
    print(f"   Average: {settings.currency_symbol}{revenue / len(orders):.2f}")

    print(f"\n📋 RECENT ORDERS:")
    print("-" * 60)
    for order in orders[-5:]:
        print(f"   #{short_order_id(order.id)}  {order.customer_name:<20} {order.total_amount:>10}  {order.status.value}")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return not (bad_totals or empty or missing_receipts)


if __name__ == "__main__":
    sys.exit(0 if verify_orders() else 1)

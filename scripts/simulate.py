"""
Order Rush Simulation

Fires many concurrent checkouts at the API to exercise the order pipeline
(alerts, text receipts, printing) under load. Needs the development auth
service, since every simulated customer signs in with a dev token.
Run from project root: python scripts/simulate.py --orders 50
"""

import asyncio
import sys
import os
import random
import time
import uuid
import argparse
from datetime import datetime
from typing import Any

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from bhavan.services.auth import make_dev_token

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

# Sample data for random orders
FIRST_NAMES = ["Asha", "Ravi", "Meera", "Kiran", "Divya", "Arjun", "Lakshmi", "Vikram", "Priya", "Suresh"]
LAST_NAMES = ["Rao", "Gowda", "Iyer", "Shetty", "Nair", "Reddy", "Hegde", "Kumar", "Bhat", "Murthy"]
APARTMENTS = ["Lakeview Apartments", "Prestige Shantiniketan", "Sobha Dew Flower", "Brigade Gateway", "Purva Riviera"]
SECTORS = ["HSR Layout Sector 2", "Koramangala 5th Block", "Indiranagar 2nd Stage", "Jayanagar 4th Block"]
AREAS = ["Bengaluru", "Bengaluru South", "Bengaluru East"]


def generate_random_customer() -> dict[str, Any]:
    """Generate random customer details with coordinates near the restaurant."""
    return {
        "customer_name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "customer_phone": f"9{random.randint(100000000, 999999999)}",
        "flat_no": f"{random.randint(1, 20)}{random.choice('ABCD')}",
        "apartment_street": random.choice(APARTMENTS),
        "sector": random.choice(SECTORS),
        "area": random.choice(AREAS),
        "latitude": round(12.9716 + random.uniform(-0.05, 0.05), 6),
        "longitude": round(77.5946 + random.uniform(-0.05, 0.05), 6),
    }


def sellable_lines(menu: dict) -> list[dict]:
    """Every (item, portion) pair a customer could put in the cart."""
    lines = []
    for group in menu["categories"]:
        for item in group["items"]:
            if item["portions"]:
                lines += [{"menu_item_id": item["id"], "portion_id": p["id"]} for p in item["portions"]]
            else:
                lines.append({"menu_item_id": item["id"], "portion_id": None})
    return lines


def generate_random_items(choices: list[dict]) -> list[dict]:
    """Generate random order lines."""
    picked = random.sample(choices, k=min(len(choices), random.randint(1, 4)))
    return [{**line, "quantity": random.randint(1, 3)} for line in picked]


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    choices: list[dict],
) -> dict[str, Any]:
    """Sign in as a fresh customer and check out."""
    token = make_dev_token(str(uuid.uuid4()), f"customer{order_num}@example.com")
    payload = {**generate_random_customer(), "items": generate_random_items(choices)}
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0
        )
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 200:
        order = response.json()["order"]
        return {
            "order_num": order_num,
            "success": True,
            "order_id": order["id"],
            "total": order["total_amount"],
            "time": elapsed,
        }
    return {
        "order_num": order_num,
        "success": False,
        "error": response.text[:100],
        "time": elapsed,
    }


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """Fire ``num_orders`` concurrent checkouts and report the outcome."""
    print("=" * 70)
    print("🔥 ORDER RUSH SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        menu = (await client.get(f"{API_BASE_URL}/api/menu")).json()
        choices = sellable_lines(menu)
        if not choices:
            print("\n❌ The menu is empty. Run: python scripts/seed.py")
            return {"total": num_orders, "successful": 0, "failed": num_orders, "results": []}

        start_time = time.time()
        print("\n🚀 Firing orders...\n")
        results = await asyncio.gather(*[send_order(client, i + 1, choices) for i in range(num_orders)])

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{total_revenue:.2f}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check Celery terminal - announce / receipt / print tasks should complete")
    print("2. Run: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Rush Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--api-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.api_url
    asyncio.run(run_simulation(args.orders))

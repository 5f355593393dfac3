"""
Customer Command Line

    bhavan-cli signin --token dev-<uuid>:me@example.com
    bhavan-cli menu --search dosa
    bhavan-cli cart add <item_id> --portion <portion_id> --qty 2
    bhavan-cli locate --flat 12B --street "Lakeview Apts" --sector "Sector 2" --area "HSR Layout"
    bhavan-cli checkout --name Asha --phone 9876543210 --flat 12B ...
    bhavan-cli orders
    bhavan-cli admin status <order_id> Confirmed

The cart, session and last captured location live in the local storage
file (BHAVAN_STORAGE_PATH).
"""

import argparse
import asyncio
import sys
from typing import Any, Optional

import httpx

from bhavan.client.api import ApiError, BhavanClient
from bhavan.client.cart import Cart
from bhavan.client.config import get_client_settings
from bhavan.client.session import SessionState
from bhavan.client.storage import LocalStorage

LOCATION_KEY = "location"


def money(value: Any) -> str:
    return f"₹{float(value):.2f}"


def print_cart(cart: Cart) -> None:
    if not cart.lines:
        print("🛒 Your cart is empty")
        return
    print(f"🛒 Cart ({cart.count()} item(s))")
    for line in cart.lines:
        print(f"   {line.label:<32} x{line.quantity:<3} {money(line.line_total):>10}")
    print(f"   {'TOTAL':<37} {money(cart.total()):>10}")


def print_order(order: dict) -> None:
    print(f"#{order['short_id']}  {order['status']:<17} {money(order['total_amount']):>10}  {order['created_at']}")
    for item in order["items"]:
        label = f"{item['item_name']} ({item['portion_name']})" if item["portion_name"] else item["item_name"]
        print(f"      {label} x{item['quantity']}")


def find_menu_item(menu: dict, item_id: str) -> Optional[dict]:
    for group in menu["categories"]:
        for item in group["items"]:
            if item["id"] == item_id:
                return item
    return None


# =============================================================================
# COMMANDS
# =============================================================================

async def cmd_signin(args, api: BhavanClient, storage: LocalStorage) -> None:
    api.session.sign_in(args.token)
    info = await api.refresh_session()
    if not info["authenticated"]:
        api.session.sign_out()
        raise ApiError("Token was not accepted", status_code=401)
    print(f"✅ Signed in as {info['email'] or info['user_id']}{' (admin)' if info['is_admin'] else ''}")


async def cmd_signout(args, api: BhavanClient, storage: LocalStorage) -> None:
    api.session.sign_out()
    print("👋 Signed out")


async def cmd_menu(args, api: BhavanClient, storage: LocalStorage) -> None:
    menu = await api.get_menu(search=args.search, category_id=args.category)

    for section, banners in menu["banners"].items():
        if banners:
            print(f"⭐ {section}")
            for banner in banners:
                print(f"   {banner['title']}{' 🌱' if banner['is_vegetarian'] else ''}")

    for group in menu["categories"]:
        print(f"\n{group['category']['name']}  [{group['category']['id']}]")
        for item in group["items"]:
            veg = "🌱" if item["is_vegetarian"] else "🍗"
            if item["portions"]:
                print(f"   {veg} {item['name']}  [{item['id']}]")
                for portion in item["portions"]:
                    print(f"        {portion['name']:<12} {money(portion['price']):>10}  [{portion['id']}]")
            else:
                print(f"   {veg} {item['name']:<28} {money(item['price']):>10}  [{item['id']}]")


async def cmd_cart(args, api: BhavanClient, storage: LocalStorage) -> None:
    cart = Cart(storage)

    if args.cart_command == "add":
        item = find_menu_item(await api.get_menu(), args.item_id)
        if item is None:
            raise ApiError("Item is not on the menu")
        portion = None
        if args.portion:
            portion = next((p for p in item["portions"] if p["id"] == args.portion), None)
            if portion is None:
                raise ApiError(f"Unknown portion for {item['name']}")
        elif item["portions"]:
            raise ApiError(f"Please choose a portion for {item['name']}")
        line = cart.add(item, quantity=args.qty, portion=portion)
        print(f"✅ Added to cart: {line.label}")
    elif args.cart_command == "set":
        cart.set_quantity(args.item_id, args.portion, args.qty)
    elif args.cart_command == "remove":
        cart.remove(args.item_id, args.portion)
    elif args.cart_command == "clear":
        cart.clear()

    print_cart(cart)


async def cmd_locate(args, api: BhavanClient, storage: LocalStorage) -> None:
    location = await api.locate(args.flat, args.street, args.sector, args.area)
    storage.set(LOCATION_KEY, location)
    print(f"📍 Location captured: {location['latitude']}, {location['longitude']}")


async def cmd_checkout(args, api: BhavanClient, storage: LocalStorage) -> None:
    cart = Cart(storage)
    details = {
        "customer_name": args.name or "",
        "customer_phone": args.phone or "",
        "flat_no": args.flat or "",
        "apartment_street": args.street or "",
        "sector": args.sector or "",
        "area": args.area or "",
    }

    latitude, longitude = args.lat, args.lng
    if latitude is None or longitude is None:
        saved = storage.get(LOCATION_KEY) or {}
        latitude, longitude = saved.get("latitude"), saved.get("longitude")

    result = await api.checkout(cart, details, latitude, longitude)
    storage.delete(LOCATION_KEY)
    print(f"🎉 {result['message']}")
    print_order(result["order"])


async def cmd_orders(args, api: BhavanClient, storage: LocalStorage) -> None:
    orders = await api.my_orders()
    if not orders:
        print("No orders yet")
    for order in orders:
        print_order(order)


async def cmd_admin(args, api: BhavanClient, storage: LocalStorage) -> None:
    if args.admin_command == "orders":
        for order in await api.all_orders(args.status):
            print(f"{order['customer_name']:<20}", end=" ")
            print_order(order)
    elif args.admin_command == "status":
        order = await api.set_status(args.order_id, args.status)
        print(f"✅ Order #{order['short_id']} is now {order['status']}")
    elif args.admin_command == "receipt":
        text = await api.download_receipt(args.order_id)
        if args.out:
            with open(args.out, "w", encoding="utf-8") as fh:
                fh.write(text)
            print(f"🧾 Receipt saved to {args.out}")
        else:
            print(text)
    elif args.admin_command == "add":
        result = await api.add_admin(args.email)
        print(f"✅ {result['message']} ({result['userId']})")
    elif args.admin_command == "list":
        for admin in await api.list_admins():
            print(f"   {admin['email'] or '-':<32} {admin['full_name'] or '':<20} [{admin['id']}]")
    elif args.admin_command == "remove":
        await api.remove_admin(args.user_id)
        print("✅ Admin removed")


COMMANDS = {
    "signin": cmd_signin,
    "signout": cmd_signout,
    "menu": cmd_menu,
    "cart": cmd_cart,
    "locate": cmd_locate,
    "checkout": cmd_checkout,
    "orders": cmd_orders,
    "admin": cmd_admin,
}


# =============================================================================
# ARGUMENTS
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bhavan-cli", description="Bengaluru Bhavan ordering client")
    parser.add_argument("--api-url", help="Override BHAVAN_API_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    signin = sub.add_parser("signin", help="Store a bearer token")
    signin.add_argument("--token", required=True)
    sub.add_parser("signout", help="Forget the stored token")

    menu = sub.add_parser("menu", help="Show the menu")
    menu.add_argument("--search")
    menu.add_argument("--category", help="Category id")

    cart = sub.add_parser("cart", help="Manage the local cart")
    cart_sub = cart.add_subparsers(dest="cart_command", required=True)
    cart_sub.add_parser("show")
    cart_sub.add_parser("clear")
    add = cart_sub.add_parser("add")
    add.add_argument("item_id")
    add.add_argument("--portion")
    add.add_argument("--qty", type=int, default=1)
    set_qty = cart_sub.add_parser("set")
    set_qty.add_argument("item_id")
    set_qty.add_argument("qty", type=int)
    set_qty.add_argument("--portion")
    remove = cart_sub.add_parser("remove")
    remove.add_argument("item_id")
    remove.add_argument("--portion")

    locate = sub.add_parser("locate", help="Capture delivery coordinates")
    for name in ("flat", "street", "sector", "area"):
        locate.add_argument(f"--{name}", default="")

    checkout = sub.add_parser("checkout", help="Place the order")
    for name in ("name", "phone", "flat", "street", "sector", "area"):
        checkout.add_argument(f"--{name}")
    checkout.add_argument("--lat", type=float)
    checkout.add_argument("--lng", type=float)

    sub.add_parser("orders", help="Your orders")

    admin = sub.add_parser("admin", help="Admin console")
    admin_sub = admin.add_subparsers(dest="admin_command", required=True)
    admin_orders = admin_sub.add_parser("orders")
    admin_orders.add_argument("--status")
    status = admin_sub.add_parser("status")
    status.add_argument("order_id")
    status.add_argument("status")
    receipt = admin_sub.add_parser("receipt")
    receipt.add_argument("order_id")
    receipt.add_argument("--out")
    grant = admin_sub.add_parser("add")
    grant.add_argument("email")
    admin_sub.add_parser("list")
    revoke = admin_sub.add_parser("remove")
    revoke.add_argument("user_id")

    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_client_settings()
    storage = LocalStorage(settings.storage_path)
    session = SessionState(storage)

    async with BhavanClient(
        args.api_url or settings.api_url,
        session,
        timeout=settings.request_timeout_seconds,
    ) as api:
        try:
            await COMMANDS[args.command](args, api, storage)
        except ApiError as e:
            prefix = f"{e.title}: " if e.title else ""
            print(f"❌ {prefix}{e.message}", file=sys.stderr)
            return 1
        except httpx.HTTPError as e:
            print(f"❌ Could not reach the ordering service: {e}", file=sys.stderr)
            return 1
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

"""
Sample Catalog Seeder

Loads a small South Indian menu, today's specials and (optionally) a first
admin so a fresh database is usable straight away.
Run from project root: python scripts/seed.py --admin-email owner@example.com
"""

import asyncio
import sys
import os
import argparse
import uuid
from decimal import Decimal
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from sqlalchemy import delete, select

from bhavan.database import async_session_maker, init_db
from bhavan.models import (
    AppRole,
    Banner,
    BannerSection,
    Category,
    MenuItem,
    Portion,
    Profile,
    UserRole,
)
from bhavan.services.auth import make_dev_token

# name, description, [(item, description, price, veg, [(portion, price)])]
CATALOG = [
    ("Dosas", "Crisp fermented rice crepes", [
        ("Plain Dosa", "Served with chutney and sambar", "60", True, []),
        ("Masala Dosa", "Potato palya filling", "80", True, []),
        ("Mysore Masala Dosa", "Red chutney spread, potato palya", "95", True, []),
    ]),
    ("Idli & Vada", "Steamed and fried breakfast classics", [
        ("Idli", "Two steamed rice cakes", "40", True, []),
        ("Medu Vada", "Crisp lentil doughnut", "45", True, []),
    ]),
    ("Rice", "Lunch favourites", [
        ("Bisi Bele Bath", "Spiced lentil rice with ghee", "0", True, [("Half", "70"), ("Full", "120")]),
        ("Chicken Biryani", "Donne style, served with raita", "0", False, [("Half", "140"), ("Full", "240")]),
        ("Curd Rice", "Tempered with mustard and curry leaves", "60", True, []),
    ]),
    ("Beverages", None, [
        ("Filter Coffee", "Served in a davara tumbler", "30", True, []),
        ("Badam Milk", "Warm saffron almond milk", "50", True, []),
    ]),
]

BANNERS = [
    (BannerSection.LUNCH, "South Indian Thali", "Rice, sambar, rasam, two palyas, curd and sweet", True),
    (BannerSection.DINNER, "Ghee Roast Special", "Mangalorean chicken ghee roast with neer dosa", False),
]


async def seed(reset: bool, admin_email: Optional[str] = None) -> None:
    await init_db()

    async with async_session_maker() as db:
        existing = (await db.execute(select(Category.id))).first()
        if existing and not reset:
            print("ℹ️  Catalog already present - use --reset to reload it")
        else:
            if reset:
                for model in (Portion, MenuItem, Category, Banner):
                    await db.execute(delete(model))

            for c_order, (name, description, items) in enumerate(CATALOG):
                category = Category(name=name, description=description, display_order=c_order)
                db.add(category)
                await db.flush()

                for i_order, (item_name, item_desc, price, veg, portions) in enumerate(items):
                    item = MenuItem(
                        name=item_name,
                        description=item_desc,
                        price=Decimal(price),
                        category_id=category.id,
                        is_vegetarian=veg,
                        display_order=i_order,
                    )
                    db.add(item)
                    await db.flush()
                    for p_order, (portion_name, portion_price) in enumerate(portions):
                        db.add(Portion(
                            menu_item_id=item.id,
                            name=portion_name,
                            price=Decimal(portion_price),
                            display_order=p_order,
                        ))

            for b_order, (section, title, description, veg) in enumerate(BANNERS):
                db.add(Banner(
                    section=section,
                    title=title,
                    description=description,
                    is_vegetarian=veg,
                    display_order=b_order,
                ))

            await db.commit()
            print(f"✅ Seeded {len(CATALOG)} categories and {len(BANNERS)} banners")

        if admin_email:
            profile = (await db.execute(
                select(Profile).where(Profile.email == admin_email)
            )).scalar_one_or_none()
            if profile is None:
                profile = Profile(id=str(uuid.uuid4()), email=admin_email, full_name="Owner")
                db.add(profile)
                await db.flush()

            has_role = (await db.execute(
                select(UserRole.id).where(UserRole.user_id == profile.id)
            )).first()
            if not has_role:
                db.add(UserRole(user_id=profile.id, role=AppRole.ADMIN))
            await db.commit()

            print(f"🔑 Admin: {admin_email}")
            print(f"   Development token: {make_dev_token(profile.id, admin_email)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the sample catalog")
    parser.add_argument("--reset", action="store_true", help="Replace the existing catalog")
    parser.add_argument("--admin-email", help="Create this profile and make it an admin")
    args = parser.parse_args()

    asyncio.run(seed(args.reset, args.admin_email))

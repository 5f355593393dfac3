"""
Shared fixtures.

Environment is pinned before ``bhavan`` is imported: development services,
a throwaway SQLite database and temp directories for receipts/spool.
"""

import os
import tempfile
import uuid
from decimal import Decimal
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="bhavan-tests-"))
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["RECEIPTS_DIRECTORY"] = str(_TMP / "receipts")
os.environ["PRINT_SPOOL_DIRECTORY"] = str(_TMP / "spool")
os.environ["ORDER_STATUS_POLICY"] = "permissive"
os.environ["RECEIPT_TIMEZONE"] = "Asia/Kolkata"

import pytest
from httpx import ASGITransport, AsyncClient

from bhavan import main as main_module
from bhavan.database import Base, async_session_maker, engine
from bhavan.models import AppRole, Category, MenuItem, Portion, Profile, UserRole
from bhavan.services.geo import MockGeoService
from tests.helpers import auth_headers


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture(autouse=True)
def published(monkeypatch):
    """Order ids handed to the pipeline, instead of a real broker."""
    sent = []
    monkeypatch.setattr(main_module, "publish_order_created", lambda order_id: sent.append(order_id) or True)
    return sent


@pytest.fixture(autouse=True)
def steady_geo(monkeypatch):
    geo = MockGeoService(failure_rate=0.0, latency=0.0)
    monkeypatch.setattr(main_module, "get_geo_service", lambda: geo)
    return geo


@pytest.fixture
async def db():
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=main_module.app), base_url="http://test") as c:
        yield c


@pytest.fixture
def customer() -> dict:
    user_id = str(uuid.uuid4())
    email = "asha@example.com"
    return {"id": user_id, "email": email, "headers": auth_headers(user_id, email)}


@pytest.fixture
async def admin(db) -> dict:
    user_id = str(uuid.uuid4())
    email = "owner@example.com"
    db.add(Profile(id=user_id, email=email, full_name="Owner"))
    await db.flush()
    db.add(UserRole(user_id=user_id, role=AppRole.ADMIN))
    await db.commit()
    return {"id": user_id, "email": email, "headers": auth_headers(user_id, email)}


@pytest.fixture
def make_item(db):
    """Create a menu item (and optional portions) directly in the database."""

    async def _make(name="Dosa", price="80", portions=(), available=True, category=None, **fields):
        item = MenuItem(
            name=name,
            price=Decimal(price),
            is_available=available,
            category_id=category.id if category else None,
            **fields,
        )
        db.add(item)
        await db.flush()
        created = []
        for order, (portion_name, portion_price) in enumerate(portions):
            portion = Portion(
                menu_item_id=item.id,
                name=portion_name,
                price=Decimal(portion_price),
                display_order=order,
            )
            db.add(portion)
            created.append(portion)
        await db.commit()
        return item, created

    return _make


@pytest.fixture
def make_category(db):
    async def _make(name="Dosas", **fields):
        category = Category(name=name, **fields)
        db.add(category)
        await db.commit()
        return category

    return _make

"""
Catalog Service

Uniform list / create / update / delete over categories, menu items,
portions and banners for the admin console, and the filtered public menu.

Deleting a category never touches its menu items; deleting a menu item
removes its portions.
"""

import logging
from collections import defaultdict
from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bhavan.core.exceptions import NotFound, ValidationFailed
from bhavan.models import Banner, BannerSection, Category, MenuItem, Portion

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class CrudRepository(Generic[ModelT]):
    """
    List/create/update/delete for one table.

    Attributes:
        model: SQLAlchemy model class
        label: Human name used in messages ("Category", "Menu item", ...)
        sort_keys: Column names the admin list is ordered by
    """

    def __init__(self, model: Type[ModelT], label: str, sort_keys: Sequence[str]):
        self.model = model
        self.label = label
        self.sort_keys = tuple(sort_keys)

    def _order_by(self):
        return [getattr(self.model, key) for key in self.sort_keys]

    async def list(self, db: AsyncSession) -> list[ModelT]:
        result = await db.execute(select(self.model).order_by(*self._order_by()))
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, record_id: str) -> ModelT:
        record = await db.get(self.model, record_id)
        if record is None:
            raise NotFound(f"{self.label} not found")
        return record

    async def validate(self, db: AsyncSession, data: dict[str, Any]) -> None:
        """Cross-record checks beyond the request schema. Override per entity."""

    async def create(self, db: AsyncSession, payload: BaseModel) -> ModelT:
        data = payload.model_dump()
        await self.validate(db, data)
        record = self.model(**data)
        db.add(record)
        await db.commit()
        logger.info(f"{self.label} added: {record.id}")
        return record

    async def update(self, db: AsyncSession, record_id: str, payload: BaseModel) -> ModelT:
        record = await self.get(db, record_id)
        data = payload.model_dump()
        await self.validate(db, data)
        for key, value in data.items():
            setattr(record, key, value)
        await db.commit()
        logger.info(f"{self.label} updated: {record_id}")
        return record

    async def delete(self, db: AsyncSession, record_id: str) -> None:
        record = await self.get(db, record_id)
        await db.delete(record)
        await db.commit()
        logger.info(f"{self.label} deleted: {record_id}")


class MenuItemRepository(CrudRepository[MenuItem]):

    async def validate(self, db: AsyncSession, data: dict[str, Any]) -> None:
        category_id = data.get("category_id")
        if category_id and await db.get(Category, category_id) is None:
            raise ValidationFailed("Selected category does not exist")


class PortionRepository(CrudRepository[Portion]):

    async def list(self, db: AsyncSession) -> list[Portion]:
        # Parent item is loaded for display only
        result = await db.execute(
            select(Portion)
            .options(selectinload(Portion.menu_item))
            .order_by(*self._order_by())
        )
        return list(result.scalars().all())

    async def validate(self, db: AsyncSession, data: dict[str, Any]) -> None:
        if await db.get(MenuItem, data["menu_item_id"]) is None:
            raise ValidationFailed("Selected menu item does not exist")


categories = CrudRepository(Category, "Category", ("name",))
menu_items = MenuItemRepository(MenuItem, "Menu item", ("name",))
portions = PortionRepository(Portion, "Portion", ("menu_item_id", "display_order"))
banners = CrudRepository(Banner, "Banner", ("display_order",))


# =============================================================================
# PUBLIC MENU
# =============================================================================

def _matches(item: MenuItem, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in item.name.lower() or needle in (item.description or "").lower()


async def load_menu(
    db: AsyncSession,
    search: Optional[str] = None,
    category_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Read the customer-facing menu.

    Returns active categories (each with its matching available items and
    their available portions) and active banners keyed by section. Every
    list is ordered by display_order; categories without matching items are
    left out.
    """
    category_rows = (await db.execute(
        select(Category).where(Category.is_active.is_(True)).order_by(Category.display_order)
    )).scalars().all()

    item_rows = (await db.execute(
        select(MenuItem).where(MenuItem.is_available.is_(True)).order_by(MenuItem.display_order)
    )).scalars().all()

    portion_rows = (await db.execute(
        select(Portion).where(Portion.is_available.is_(True)).order_by(Portion.display_order)
    )).scalars().all()

    banner_rows = (await db.execute(
        select(Banner).where(Banner.is_active.is_(True)).order_by(Banner.display_order)
    )).scalars().all()

    portions_by_item: dict[str, list[Portion]] = defaultdict(list)
    for portion in portion_rows:
        portions_by_item[portion.menu_item_id].append(portion)

    groups = []
    for category in category_rows:
        if category_id and category.id != category_id:
            continue
        items = [
            {"item": item, "portions": portions_by_item.get(item.id, [])}
            for item in item_rows
            if item.category_id == category.id and _matches(item, search)
        ]
        if items:
            groups.append({"category": category, "items": items})

    banners_by_section: dict[str, list[Banner]] = {s.value: [] for s in BannerSection}
    for banner in banner_rows:
        banners_by_section[banner.section.value].append(banner)

    return {"categories": groups, "banners": banners_by_section}

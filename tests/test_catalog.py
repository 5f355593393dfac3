from sqlalchemy import select

from bhavan.database import async_session_maker
from bhavan.models import MenuItem, Portion


async def test_category_crud_and_sorting(client, admin):
    headers = admin["headers"]
    for name in ("Rice", "Dosas", "Beverages"):
        created = await client.post("/api/admin/categories", json={"name": name}, headers=headers)
        assert created.status_code == 201

    listed = (await client.get("/api/admin/categories", headers=headers)).json()
    assert [c["name"] for c in listed] == ["Beverages", "Dosas", "Rice"]

    rice = listed[2]
    updated = await client.put(
        f"/api/admin/categories/{rice['id']}",
        json={"name": "Rice Bowls", "is_active": False},
        headers=headers,
    )
    assert updated.json()["name"] == "Rice Bowls"
    assert updated.json()["is_active"] is False


async def test_blank_name_is_rejected(client, admin):
    response = await client.post("/api/admin/categories", json={"name": "   "}, headers=admin["headers"])
    assert response.status_code == 422


async def test_menu_item_needs_existing_category(client, admin):
    response = await client.post(
        "/api/admin/menu-items",
        json={"name": "Dosa", "price": 80, "category_id": "missing"},
        headers=admin["headers"],
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Selected category does not exist"


async def test_deleting_category_keeps_its_items(client, admin, make_category, make_item):
    dosas = await make_category("Dosas")
    dosa, _ = await make_item("Masala Dosa", "80", category=dosas)

    response = await client.delete(f"/api/admin/categories/{dosas.id}", headers=admin["headers"])

    assert response.status_code == 204
    async with async_session_maker() as s:
        item = await s.get(MenuItem, dosa.id)
    assert item is not None
    assert item.category_id is None


async def test_deleting_item_removes_its_portions(client, admin, make_item):
    biryani, portions = await make_item("Chicken Biryani", "0", portions=[("Half", "140"), ("Full", "240")])

    response = await client.delete(f"/api/admin/menu-items/{biryani.id}", headers=admin["headers"])

    assert response.status_code == 204
    async with async_session_maker() as s:
        left = (await s.execute(select(Portion).where(Portion.menu_item_id == biryani.id))).scalars().all()
    assert left == []


async def test_portions_list_includes_item_name(client, admin, make_item):
    await make_item("Chicken Biryani", "0", portions=[("Full", "240"), ("Half", "140")])

    listed = (await client.get("/api/admin/portions", headers=admin["headers"])).json()

    assert [(p["menu_item_name"], p["name"]) for p in listed] == [
        ("Chicken Biryani", "Full"),
        ("Chicken Biryani", "Half"),
    ]


async def test_banner_crud(client, admin):
    headers = admin["headers"]
    created = (await client.post(
        "/api/admin/banners",
        json={"section": "Dinner Menu", "title": "Ghee Roast", "display_order": 2},
        headers=headers,
    )).json()
    await client.post("/api/admin/banners", json={"title": "Thali", "display_order": 1}, headers=headers)

    listed = (await client.get("/api/admin/banners", headers=headers)).json()
    assert [b["title"] for b in listed] == ["Thali", "Ghee Roast"]
    assert listed[0]["section"] == "Lunch Menu"

    assert (await client.delete(f"/api/admin/banners/{created['id']}", headers=headers)).status_code == 204
    assert (await client.delete(f"/api/admin/banners/{created['id']}", headers=headers)).status_code == 404


async def test_public_menu_filters_and_groups(client, make_category, make_item):
    dosas = await make_category("Dosas", display_order=1)
    rice = await make_category("Rice", display_order=0)
    hidden = await make_category("Seasonal", is_active=False)
    await make_item("Masala Dosa", "80", category=dosas, description="Potato filling", display_order=1)
    await make_item("Plain Dosa", "60", category=dosas, display_order=0)
    await make_item("Rava Dosa", "90", category=dosas, available=False)
    await make_item("Bisi Bele Bath", "0", category=rice, portions=[("Half", "70"), ("Full", "120")])
    await make_item("Mango Rasayana", "90", category=hidden)

    menu = (await client.get("/api/menu")).json()

    assert [g["category"]["name"] for g in menu["categories"]] == ["Rice", "Dosas"]
    assert [i["name"] for i in menu["categories"][1]["items"]] == ["Plain Dosa", "Masala Dosa"]
    assert [p["name"] for p in menu["categories"][0]["items"][0]["portions"]] == ["Half", "Full"]
    assert set(menu["banners"]) == {"Lunch Menu", "Dinner Menu"}

    searched = (await client.get("/api/menu", params={"search": "potato"})).json()
    assert [i["name"] for g in searched["categories"] for i in g["items"]] == ["Masala Dosa"]

    only_rice = (await client.get("/api/menu", params={"category_id": rice.id})).json()
    assert [g["category"]["name"] for g in only_rice["categories"]] == ["Rice"]

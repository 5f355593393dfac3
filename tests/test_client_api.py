import pytest
from httpx import ASGITransport

from bhavan import main as main_module
from bhavan.client import Cart, LocalStorage, SessionState
from bhavan.client.api import ApiError, BhavanClient
from bhavan.services.auth import make_dev_token

DETAILS = {
    "customer_name": "Asha Rao",
    "customer_phone": "9876543210",
    "flat_no": "12B",
    "apartment_street": "Lakeview Apartments",
    "sector": "Sector 2",
    "area": "HSR Layout",
}


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "client.json"))


@pytest.fixture
async def api(storage):
    session = SessionState(storage)
    async with BhavanClient(
        "http://test", session, transport=ASGITransport(app=main_module.app)
    ) as client:
        yield client


async def test_browse_add_and_checkout(api, storage, customer, make_item, make_category, published):
    dosas = await make_category("Dosas")
    await make_item("Masala Dosa", "80", category=dosas)
    await make_item("Chicken Biryani", "0", category=dosas, portions=[("Half", "140"), ("Full", "240")])

    api.session.sign_in(make_dev_token(customer["id"], customer["email"]))
    info = await api.refresh_session()
    assert info["authenticated"] and api.session.current.user_id == customer["id"]

    menu = await api.get_menu()
    dosa, biryani = sorted(menu["categories"][0]["items"], key=lambda i: i["name"], reverse=True)
    cart = Cart(storage)
    cart.add(dosa, quantity=2)
    cart.add(biryani, portion=biryani["portions"][1])

    location = await api.locate(DETAILS["flat_no"], DETAILS["apartment_street"], DETAILS["sector"], DETAILS["area"])
    result = await api.checkout(cart, DETAILS, location["latitude"], location["longitude"])

    assert result["order"]["total_amount"] == 400.0
    assert result["order"]["status"] == "Pending"
    assert Cart(storage).lines == []
    assert published == [result["order"]["id"]]
    assert [o["id"] for o in await api.my_orders()] == [result["order"]["id"]]


async def test_local_checks_run_before_any_request(api, storage, customer):
    cart = Cart(storage)

    with pytest.raises(ApiError) as signed_out:
        await api.checkout(cart, DETAILS, 12.9, 77.6)
    api.session.sign_in(make_dev_token(customer["id"]))
    with pytest.raises(ApiError) as no_location:
        await api.checkout(cart, DETAILS, None, None)
    with pytest.raises(ApiError) as empty:
        await api.checkout(cart, DETAILS, 12.9, 77.6)

    assert signed_out.value.code == "not_authenticated"
    assert no_location.value.code == "location_required"
    assert empty.value.code == "empty_cart"
    assert empty.value.status_code == 0
    assert empty.value.title == "Cart is empty"


async def test_server_errors_become_api_errors(api, customer):
    api.session.sign_in(make_dev_token(customer["id"]))

    with pytest.raises(ApiError) as denied:
        await api.all_orders()

    assert denied.value.status_code == 403

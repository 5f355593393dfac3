import uuid

import pytest
from sqlalchemy import func, select

from bhavan.core.exceptions import NotFound, ValidationFailed
from bhavan.database import async_session_maker
from bhavan.models import Profile, UserRole
from bhavan.services import admins
from tests.helpers import auth_headers


async def add_profile(db, email: str) -> Profile:
    profile = Profile(id=str(uuid.uuid4()), email=email, full_name=email.split("@")[0].title())
    db.add(profile)
    await db.commit()
    return profile


async def role_count(user_id: str) -> int:
    async with async_session_maker() as s:
        return (await s.execute(select(func.count(UserRole.id)).where(UserRole.user_id == user_id))).scalar()


# =============================================================================
# SERVICE
# =============================================================================

async def test_grant_unknown_email_is_not_found(db):
    with pytest.raises(NotFound, match="They need to sign up first"):
        await admins.grant_admin(db, "ghost@example.com")

    async with async_session_maker() as s:
        assert (await s.execute(select(func.count(UserRole.id)))).scalar() == 0


async def test_grant_twice_is_rejected_without_duplicate(db):
    profile = await add_profile(db, "ravi@example.com")
    await admins.grant_admin(db, "ravi@example.com")

    with pytest.raises(ValidationFailed, match="User is already an admin"):
        await admins.grant_admin(db, "ravi@example.com")
    assert await role_count(profile.id) == 1


async def test_grant_then_list(db):
    profile = await add_profile(db, "meera@example.com")

    granted = await admins.grant_admin(db, "meera@example.com")

    assert granted.id == profile.id
    assert await admins.is_admin(db, profile.id)
    assert [p.email for p in await admins.list_admins(db)] == ["meera@example.com"]


async def test_revoke(db):
    profile = await add_profile(db, "kiran@example.com")
    await admins.grant_admin(db, "kiran@example.com")

    await admins.revoke_admin(db, profile.id)

    assert not await admins.is_admin(db, profile.id)
    with pytest.raises(NotFound):
        await admins.revoke_admin(db, profile.id)


# =============================================================================
# FUNCTION ENDPOINT
# =============================================================================

async def test_function_requires_authorization_header(client):
    response = await client.post("/functions/add-admin", json={"action": "list"})
    assert response.status_code == 401
    assert response.json() == {"error": "No authorization header"}


async def test_function_rejects_invalid_token(client):
    response = await client.post(
        "/functions/add-admin",
        json={"action": "list"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


async def test_function_rejects_non_admin(client, customer):
    response = await client.post("/functions/add-admin", json={"action": "list"}, headers=customer["headers"])
    assert response.status_code == 403
    assert response.json() == {"error": "Unauthorized - Admin access required"}


async def test_function_add_flow(client, admin, db):
    headers = admin["headers"]

    missing = await client.post("/functions/add-admin", json={"action": "add"}, headers=headers)
    assert (missing.status_code, missing.json()) == (400, {"error": "Email is required"})

    unknown = await client.post(
        "/functions/add-admin", json={"action": "add", "email": "ghost@example.com"}, headers=headers
    )
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "User not found. They need to sign up first."}

    profile = await add_profile(db, "divya@example.com")
    added = await client.post(
        "/functions/add-admin", json={"action": "add", "email": "divya@example.com"}, headers=headers
    )
    assert added.status_code == 200
    assert added.json() == {"success": True, "message": "Admin added successfully", "userId": profile.id}

    again = await client.post(
        "/functions/add-admin", json={"action": "add", "email": "divya@example.com"}, headers=headers
    )
    assert (again.status_code, again.json()) == (400, {"error": "User is already an admin"})

    listed = await client.post("/functions/add-admin", json={"action": "list"}, headers=headers)
    assert [a["email"] for a in listed.json()["admins"]] == ["owner@example.com", "divya@example.com"]
    assert set(listed.json()["admins"][0]) == {"id", "email", "full_name", "created_at"}


async def test_function_invalid_action(client, admin):
    response = await client.post("/functions/add-admin", json={"action": "promote"}, headers=admin["headers"])
    assert (response.status_code, response.json()) == (400, {"error": "Invalid action"})


async def test_new_user_can_be_granted_after_first_sign_in(client, admin):
    user_id = str(uuid.uuid4())
    await client.get("/api/session", headers=auth_headers(user_id, "arjun@example.com"))

    response = await client.post(
        "/functions/add-admin", json={"action": "add", "email": "arjun@example.com"}, headers=admin["headers"]
    )

    assert response.json()["userId"] == user_id
    session = await client.get("/api/session", headers=auth_headers(user_id, "arjun@example.com"))
    assert session.json()["is_admin"] is True


async def test_admin_routes_require_admin(client, customer):
    assert (await client.get("/api/admin/orders")).status_code == 401
    response = await client.get("/api/admin/orders", headers=customer["headers"])
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized - Admin access required"


async def test_revoke_endpoint(client, admin, db):
    profile = await add_profile(db, "vikram@example.com")
    await admins.grant_admin(db, "vikram@example.com")

    response = await client.delete(f"/api/admin/admins/{profile.id}", headers=admin["headers"])

    assert response.status_code == 204
    assert await role_count(profile.id) == 0

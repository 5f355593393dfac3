"""
Admin Role Service

Grants, lists and revokes the admin role. A grant targets an existing
profile by email; users must have signed in at least once.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bhavan.core.exceptions import NotFound, ValidationFailed
from bhavan.models import AppRole, Profile, UserRole

logger = logging.getLogger(__name__)

ALREADY_ADMIN = "User is already an admin"


async def is_admin(db: AsyncSession, user_id: str) -> bool:
    result = await db.execute(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == AppRole.ADMIN)
    )
    return result.first() is not None


async def grant_admin(db: AsyncSession, email: str) -> Profile:
    """
    Give the admin role to the profile registered under ``email``.

    Raises:
        ValidationFailed: email missing, or the user is already an admin
        NotFound: no profile uses that email
    """
    email = (email or "").strip()
    if not email:
        raise ValidationFailed("Email is required")

    profile = (await db.execute(select(Profile).where(Profile.email == email))).scalar_one_or_none()
    if profile is None:
        raise NotFound("User not found. They need to sign up first.")

    if await is_admin(db, profile.id):
        raise ValidationFailed(ALREADY_ADMIN)

    db.add(UserRole(user_id=profile.id, role=AppRole.ADMIN))
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent grant won the race
        await db.rollback()
        raise ValidationFailed(ALREADY_ADMIN)

    logger.info(f"🔑 Admin role granted to {email} ({profile.id})")
    return profile


async def list_admins(db: AsyncSession) -> list[Profile]:
    """Profiles holding the admin role, in grant order."""
    result = await db.execute(
        select(Profile)
        .join(UserRole, UserRole.user_id == Profile.id)
        .where(UserRole.role == AppRole.ADMIN)
        .order_by(UserRole.created_at)
    )
    return list(result.scalars().all())


async def revoke_admin(db: AsyncSession, user_id: str) -> None:
    result = await db.execute(
        select(UserRole).where(UserRole.user_id == user_id, UserRole.role == AppRole.ADMIN)
    )
    grant = result.scalar_one_or_none()
    if grant is None:
        raise NotFound("User is not an admin")

    await db.delete(grant)
    await db.commit()
    logger.info(f"🔒 Admin role revoked from {user_id}")

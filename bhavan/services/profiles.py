"""
Profile Service

Profiles mirror identity-provider users. One is created the first time a
user is seen, so admin grants can find people by email.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bhavan.core.exceptions import NotFound
from bhavan.models import Profile
from bhavan.schemas import ProfileUpdate
from bhavan.services.auth import AuthResult

logger = logging.getLogger(__name__)


async def ensure_profile(db: AsyncSession, user: AuthResult) -> Profile:
    """Return the caller's profile, creating it on first sight."""
    profile = await db.get(Profile, user.user_id)
    if profile is None:
        profile = Profile(id=user.user_id, email=user.email, full_name=user.full_name)
        db.add(profile)
        await db.commit()
        logger.info(f"👤 Profile created for {user.email or user.user_id}")
    elif user.email and profile.email != user.email:
        profile.email = user.email
        await db.commit()
    return profile


async def update_profile(db: AsyncSession, profile: Profile, payload: ProfileUpdate) -> Profile:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    await db.commit()
    logger.info(f"👤 Profile updated: {profile.id}")
    return profile


async def get_profile(db: AsyncSession, user_id: str) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFound("Profile not found")
    return profile

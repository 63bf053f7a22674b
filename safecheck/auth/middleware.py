"""API key authentication middleware."""

import hashlib
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safecheck.config import settings
from safecheck.database import get_db
from safecheck.errors import NotAuthenticated, StorageFailure
from safecheck.models.profile import Profile


API_KEY_HEADER = APIKeyHeader(name="Authorization", auto_error=False)


def hash_api_key(api_key: str) -> str:
    """Hash API key with salt for storage/lookup."""
    return hashlib.sha256(
        f"{settings.api_key_hash_salt}:{api_key}".encode()
    ).hexdigest()


def parse_bearer(auth_header: str | None) -> str:
    """Extract the API key from an Authorization: Bearer header."""
    if not auth_header or not auth_header.startswith("Bearer "):
        raise NotAuthenticated("Missing or invalid Authorization header")
    api_key = auth_header[7:].strip()
    if not api_key:
        raise NotAuthenticated("Missing API key")
    return api_key


async def get_profile_from_bearer(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth_header: str | None = Depends(API_KEY_HEADER),
) -> Profile:
    """Resolve the calling inspector's profile from a Bearer API key."""
    api_key_hash = hash_api_key(parse_bearer(auth_header))
    try:
        result = await db.execute(
            select(Profile).where(Profile.api_key_hash == api_key_hash)
        )
    except SQLAlchemyError as e:
        raise StorageFailure("Failed to look up API key") from e
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )
    return profile


async def get_owner_id(
    profile: Annotated[Profile, Depends(get_profile_from_bearer)],
) -> str:
    """Identifier of the authenticated actor."""
    return str(profile.id)


# Type alias for dependency injection
OwnerDep = Annotated[str, Depends(get_owner_id)]

import secrets
from hashlib import sha256
from typing import Optional
from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from docshare.models.api_key import ApiKey
from docshare.database import get_db


def generate_api_key() -> str:
    """Plain API key handed to the back office once (256 bits)."""
    return secrets.token_urlsafe(32)


def hash_api_key(api_key: str) -> str:
    """
    Hash an API key for storage.

    SHA-256 rather than bcrypt: keys are random, not user-chosen, and
    lookups go straight to the hash column.
    """
    return sha256(api_key.encode('utf-8')).hexdigest()


def verify_api_key(plain_key: str, hashed_key: str) -> bool:
    """Verify an API key against its hash using constant-time comparison."""
    return secrets.compare_digest(hash_api_key(plain_key), hashed_key)


async def get_api_key_from_header(
    x_api_key: Optional[str],
    db: AsyncSession
) -> Optional[ApiKey]:
    """
    Look up the active API key matching the X-API-Key header.

    Args:
        x_api_key: API key from X-API-Key header
        db: Database session

    Returns:
        ApiKey model if valid, None otherwise
    """
    if not x_api_key:
        return None

    result = await db.execute(
        select(ApiKey).where(
            ApiKey.key_hash == hash_api_key(x_api_key),
            ApiKey.is_active == True
        )
    )
    return result.scalar_one_or_none()


async def validate_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_db)
) -> ApiKey:
    """
    Validate the X-API-Key header.

    Raises:
        HTTPException: 401 if the key is invalid, inactive or missing
    """
    api_key = await get_api_key_from_header(x_api_key, db)

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key

import base64
import hashlib
import secrets
from functools import lru_cache
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from passlib.context import CryptContext
from docshare.config import settings

# Password hashing context for access link passwords
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.ACCESS_LINK_PASSWORD_ROUNDS,
)

ACCESS_TOKEN_BYTES = 32
PASSWORD_BYTES = 6


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def generate_access_token() -> str:
    """
    Generate an unguessable access token for a public link.

    Returns:
        64 character hex string (256 bits of randomness)
    """
    return secrets.token_hex(ACCESS_TOKEN_BYTES)


def generate_link_password() -> str:
    """
    Generate a short password for a public link.

    Returns:
        8 character URL-safe base64 string
    """
    return secrets.token_urlsafe(PASSWORD_BYTES)


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet:
    """Build the Fernet instance used for secrets stored at rest."""
    if settings.ENCRYPTION_KEY:
        return Fernet(settings.ENCRYPTION_KEY.encode("utf-8"))
    digest = hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_secret(value: Optional[str]) -> Optional[str]:
    """Encrypt a secret for storage. None stays None."""
    if value is None:
        return None
    return _get_fernet().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_secret(token: Optional[str]) -> Optional[str]:
    """
    Decrypt a secret previously stored with encrypt_secret.

    Args:
        token: Encrypted value

    Returns:
        Plain value, or None when nothing is stored

    Raises:
        ValueError: If the value cannot be decrypted with the current key
    """
    if not token:
        return None
    try:
        return _get_fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        raise ValueError("Stored secret cannot be decrypted with the configured key") from e

"""
JWT token utilities for access tokens and signed storage URLs.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from jose import JWTError, jwt
from voice_journal.config import settings
from voice_journal.schemas.auth import TokenData

STORAGE_TOKEN_TYPE = "storage"


def create_access_token(user_id: UUID, email: Optional[str] = None) -> str:
    """
    Create a JWT access token.

    Production tokens come from the identity provider sharing JWT_SECRET_KEY;
    this helper mints compatible tokens for scripts and tests.

    Args:
        user_id: User's UUID
        email: User's email address

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access"
    }
    if email:
        to_encode["email"] = email

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_token(token: str, expected_type: str = "access") -> TokenData:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT token string to verify
        expected_type: Expected token type

    Returns:
        TokenData object with decoded token information

    Raises:
        JWTError: If token is invalid, expired, or type doesn't match
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise JWTError(f"Token verification failed: {str(e)}")

    user_id_str: str | None = payload.get("sub")
    token_type: str = payload.get("type", "access")

    if user_id_str is None:
        raise JWTError("Token verification failed: missing subject")

    if token_type != expected_type:
        raise JWTError(f"Token verification failed: expected {expected_type}, got {token_type}")

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise JWTError("Token verification failed: subject is not a UUID")

    return TokenData(
        user_id=user_id,
        email=payload.get("email"),
        token_type=token_type
    )


def create_storage_token(key: str, expires_in: int) -> str:
    """
    Sign a storage key for time-limited download.

    Args:
        key: Storage object key
        expires_in: Lifetime in seconds

    Returns:
        Encoded JWT bound to the key
    """
    expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return jwt.encode(
        {"key": key, "exp": expire, "type": STORAGE_TOKEN_TYPE},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_storage_token(token: str, key: str) -> None:
    """
    Check that a signed-URL token is valid, unexpired and bound to `key`.

    Raises:
        JWTError: If the token is invalid, expired or issued for another key
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM]
    )
    if payload.get("type") != STORAGE_TOKEN_TYPE:
        raise JWTError("Not a storage token")
    if payload.get("key") != key:
        raise JWTError("Token was issued for a different object")

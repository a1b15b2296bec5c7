"""
JWT authentication dependencies.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.utils.jwt import verify_token
from voice_journal.utils.logger import get_logger

logger = get_logger("jwt_middleware")

# HTTP Bearer token scheme
security = HTTPBearer()


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"}
    )


def authenticate_token(token: str) -> AuthenticatedUser:
    """
    Turn a raw bearer token into request-scoped credentials.

    Args:
        token: Encoded JWT access token

    Returns:
        AuthenticatedUser carrying the user id and the token itself

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        token_data = verify_token(token, expected_type="access")
    except JWTError as e:
        logger.warning("JWT verification failed", error=str(e))
        raise _credentials_exception()

    logger.debug("User authenticated", user_id=str(token_data.user_id))
    return AuthenticatedUser(
        user_id=token_data.user_id,
        email=token_data.email,
        token=token
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
    """
    Dependency to get the current authenticated user from the bearer token.

    Returns:
        AuthenticatedUser for the request

    Raises:
        HTTPException: If token is invalid
    """
    return authenticate_token(credentials.credentials)

"""
Pydantic schemas for access-token data.
"""
from uuid import UUID
from pydantic import BaseModel, Field


class TokenData(BaseModel):
    """
    Schema for data encoded in JWT token.
    """
    user_id: UUID | None = None
    email: str | None = None
    token_type: str = "access"


class AuthenticatedUser(BaseModel):
    """
    Request-scoped credentials of the caller.

    The raw token is kept so downstream function invocations run with the
    caller's identity instead of a service-wide one.
    """
    user_id: UUID
    email: str | None = None
    token: str = Field(..., repr=False)

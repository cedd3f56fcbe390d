"""Auth domain schemas.

Request and response schemas for authentication operations.
"""

from pydantic import BaseModel, EmailStr, Field


class AuthRegister(BaseModel):
    """Request schema for email/password sign-up."""

    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class EmailPasswordLoginRequest(BaseModel):
    """Request schema for email/password login via Firebase Identity Toolkit."""

    email: EmailStr
    password: str


class OAuthSessionRequest(BaseModel):
    """ID token the client received at the end of an OAuth redirect."""

    id_token: str = Field(min_length=1)


class AuthMessage(BaseModel):
    """Generic auth message response."""

    message: str

"""
Pydantic schemas for authentication and user profiles.
"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict


class SignUpRequest(BaseModel):
    """
    POST /api/auth/signup
    """

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., max_length=256)
    name: str = Field(..., min_length=1, max_length=200)
    dob: date = Field(..., description="Date of birth; users must be 21+")
    state: str = Field("Florida", description="US state of residence")

    model_config = ConfigDict(str_strip_whitespace=True)


class SignInRequest(BaseModel):
    """
    POST /api/auth/signin
    """

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., max_length=256)

    model_config = ConfigDict(str_strip_whitespace=True)


class CustomTokenRequest(BaseModel):
    """
    POST /api/auth/token
    """

    token: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Issued session handle and the identity it is bound to."""

    token: str = Field(..., description="Bearer token for subsequent requests")
    user_id: str = Field(..., alias="userId")
    anonymous: bool = False

    model_config = ConfigDict(populate_by_name=True)


class UserProfile(BaseModel):
    """
    Profile document, written once at sign-up.
    """

    name: str = "User"
    state: str = "N/A"
    dob: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class MeResponse(BaseModel):
    """GET /api/auth/me"""

    user_id: str = Field(..., alias="userId")
    anonymous: bool
    profile: UserProfile

    model_config = ConfigDict(populate_by_name=True)
